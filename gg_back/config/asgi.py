# ASGI 설정

import os
import django
from django.core.asgi import get_asgi_application # HTTP + WebSocket + 기타 비동기 프로토콜 지원
from channels.routing import ProtocolTypeRouter, URLRouter

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
django.setup()  # 앱 레지스트리 초기화

from config.routing import websocket_urlpatterns

# ASGI(Asynchronous Server Gateway Interface)용 진입점
django_asgi_app = get_asgi_application()

# 회원 세션은 인증 경계가 아니므로 WebSocket 인증 미들웨어 없이 라우팅
application = ProtocolTypeRouter({
    "http": django_asgi_app,
    "websocket": URLRouter(websocket_urlpatterns),
})
