from django.conf import settings
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import JoinSerializer, MemberSessionSerializer, VerifySerializer
from .services import create_simple_member, member_session_payload, verify_simple_member


class JoinView(APIView):
    """
    간편 회원 가입

    이미 가입된 이메일이면 기존 회원 정보를 그대로 반환합니다.
    응답의 member 를 sessionKey 슬롯에 저장하면 로그인 상태가 됩니다.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(summary="간편 회원 가입", request=JoinSerializer)
    def post(self, request):
        serializer = JoinSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        member, created = create_simple_member(
            email=data["email"],
            first_name=data["firstName"],
            last_name=data["lastName"],
            display_name=data["displayName"],
            joined_at=data["joinedAt"],
        )

        return Response({
            "success": True,
            "message": "Member created successfully" if created else "Member already exists",
            "sessionKey": settings.MEMBER_SESSION_KEY,
            "member": member_session_payload(member),
        }, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


class VerifyView(APIView):
    """간편 회원 로그인 (이메일 존재 여부 확인)"""
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(summary="간편 회원 확인", request=VerifySerializer)
    def post(self, request):
        serializer = VerifySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        member = verify_simple_member(serializer.validated_data["email"])
        if member is None:
            return Response({"exists": False})

        return Response({
            "exists": True,
            "sessionKey": settings.MEMBER_SESSION_KEY,
            "member": MemberSessionSerializer(member_session_payload(member)).data,
        })
