from rest_framework.exceptions import APIException
from rest_framework import status
from datetime import datetime, timezone


class CommunityException(APIException):
    """GG 커뮤니티 백엔드 기본 예외 클래스"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'ERR_500'
    default_detail = 'An unexpected error occurred.'

    def __init__(self, code=None, message=None, detail=None, field=None, status_code=None):
        super().__init__(detail=message or self.default_detail)
        self.code = code or self.default_code
        self.message = message or self.default_detail
        self.detail_info = detail
        self.field = field
        if status_code:
            self.status_code = status_code

    def get_full_details(self):
        error_detail = {
            'code': self.code,
            'message': self.message,
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
        }
        if self.detail_info:
            error_detail['detail'] = self.detail_info
        if self.field:
            error_detail['field'] = self.field
        return {'error': error_detail}


class ValidationException(CommunityException):
    """유효성 검증 실패 예외"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'ERR_101'
    default_detail = 'Invalid input.'


class ConflictException(CommunityException):
    """충돌 예외 (중복, 순환 참조)"""
    status_code = status.HTTP_409_CONFLICT
    default_code = 'ERR_301'
    default_detail = 'The request conflicts with existing data.'


class ExternalSystemException(CommunityException):
    """외부 시스템(메뉴 데이터 소스 등) 연동 실패 예외"""
    status_code = status.HTTP_502_BAD_GATEWAY
    default_code = 'ERR_501'
    default_detail = 'Failed to reach an external system.'
