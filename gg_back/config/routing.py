from django.urls import path

from apps.members.consumers import MemberSessionConsumer

websocket_urlpatterns = [
    path("ws/member-session/", MemberSessionConsumer.as_asgi()),
]
