from rest_framework.views import exception_handler
from rest_framework.response import Response
from .exceptions import CommunityException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def _timestamp():
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def custom_exception_handler(exc, context):
    """DRF 기본 핸들러 + 커뮤니티 커스텀 핸들러"""

    # 커스텀 예외 처리
    if isinstance(exc, CommunityException):
        logger.warning(f"Community Exception: {exc.code} - {exc.message}", extra={
            'code': exc.code,
            'detail': exc.detail_info,
            'field': exc.field,
            'view': context.get('view'),
        })
        return Response(exc.get_full_details(), status=exc.status_code)

    # DRF 기본 예외 처리 (ValidationError, NotFound 등)
    response = exception_handler(exc, context)

    if response is not None:
        detail = response.data.get('detail') if isinstance(response.data, dict) else None
        error_detail = {
            'error': {
                'code': f"HTTP_{response.status_code}",
                'message': str(detail or 'The request could not be processed.'),
                'timestamp': _timestamp()
            }
        }

        # ValidationError의 경우 field 정보 포함
        if isinstance(response.data, dict):
            for field, errors in response.data.items():
                if field != 'detail':
                    error_detail['error']['field'] = field
                    error_detail['error']['detail'] = str(errors[0]) if isinstance(errors, list) else str(errors)
                    error_detail['error']['code'] = 'ERR_101'
                    break

        response.data = error_detail
        logger.warning(f"DRF Exception: {error_detail['error']['code']} - {error_detail['error']['message']}")
        return response

    # 예상치 못한 예외 (500 에러)
    logger.error(f"Unexpected Exception: {str(exc)}", exc_info=True, extra={
        'view': context.get('view'),
    })

    return Response({
        'error': {
            'code': 'ERR_500',
            'message': 'Internal server error.',
            'timestamp': _timestamp()
        }
    }, status=500)
