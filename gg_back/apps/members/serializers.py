from django.utils import timezone
from rest_framework import serializers


# 슬롯에 저장되는 회원 세션 형태 (프론트 localStorage 'gg_member' 와 동일한 camelCase)
class MemberSessionSerializer(serializers.Serializer):
    firstName = serializers.CharField(allow_blank=True, trim_whitespace=False)
    lastName = serializers.CharField(allow_blank=True, trim_whitespace=False)
    email = serializers.CharField(allow_blank=True, trim_whitespace=False)
    displayName = serializers.CharField(allow_blank=True, trim_whitespace=False)
    joinedAt = serializers.CharField(allow_blank=True, trim_whitespace=False)

    def validate(self, attrs):
        # 필드 값은 모두 문자열이어야 함 (숫자/불리언 자동 변환 방지)
        for field in self.fields:
            if not isinstance(self.initial_data.get(field), str):
                raise serializers.ValidationError({field: "Must be a string."})
        return attrs


class JoinSerializer(serializers.Serializer):
    """간편 회원 가입 요청"""
    email = serializers.EmailField()
    firstName = serializers.CharField(max_length=100)
    lastName = serializers.CharField(max_length=100)
    displayName = serializers.CharField(max_length=200, required=False, allow_blank=True)
    joinedAt = serializers.DateTimeField(required=False)

    def validate(self, attrs):
        if not attrs.get("displayName"):
            attrs["displayName"] = f"{attrs['firstName']} {attrs['lastName']}"
        if not attrs.get("joinedAt"):
            attrs["joinedAt"] = timezone.now()
        return attrs


class VerifySerializer(serializers.Serializer):
    """간편 회원 확인 요청"""
    email = serializers.EmailField()
