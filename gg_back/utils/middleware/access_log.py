import time
import logging
import re
from django.utils.deprecation import MiddlewareMixin

from utils.logging import mask_sensitive_data

logger = logging.getLogger('access')


# 요청 파라미터까지 기록할 경로 패턴 (API 경로만)
ACCESS_LOG_PATTERNS = [
    r'^/api/menus',
    r'^/api/members',
]

# 제외할 경로 (토큰 발급, 정적 파일 등)
ACCESS_LOG_EXCLUDE_PATTERNS = [
    r'^/api/token',
    r'^/static',
    r'^/media',
]


def should_log_params(path):
    """요청 파라미터를 기록할 경로인지 확인"""
    for pattern in ACCESS_LOG_EXCLUDE_PATTERNS:
        if re.match(pattern, path):
            return False

    for pattern in ACCESS_LOG_PATTERNS:
        if re.match(pattern, path):
            return True

    return False


def get_client_ip(request):
    """클라이언트 IP 추출 (프록시 고려)"""
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip


class AccessLogMiddleware(MiddlewareMixin):
    """모든 요청과 응답을 로깅하는 미들웨어"""

    def process_request(self, request):
        request.start_time = time.time()

    def process_response(self, request, response):
        duration = time.time() - getattr(request, 'start_time', time.time())

        path = request.get_full_path()
        user = getattr(request, 'user', None)

        message = (
            f"{get_client_ip(request)} "
            f"{user if user is not None and user.is_authenticated else 'Anonymous'} "
            f"{request.method} {path} {response.status_code} ({duration:.3f}s)"
        )

        if should_log_params(path.split('?')[0]) and request.GET:
            message += f" params={mask_sensitive_data(request.GET.dict())}"

        if response.status_code >= 400:
            logger.warning(message)
        else:
            logger.info(message)

        return response
