import logging

from django.db import IntegrityError, transaction

from utils.exceptions import ConflictException
from utils.logging import mask_email
from .models import SimpleMember

logger = logging.getLogger(__name__)


def member_session_payload(member):
    """SimpleMember -> 슬롯에 저장할 회원 세션 dict"""
    return {
        "firstName": member.first_name,
        "lastName": member.last_name,
        "email": member.email,
        "displayName": member.display_name,
        "joinedAt": member.joined_at.isoformat().replace("+00:00", "Z"),
    }


def create_simple_member(email, first_name, last_name, display_name, joined_at):
    """
    간편 회원 생성 (이메일 기준 멱등)

    Returns:
        (member, created) 튜플. 이미 있는 이메일이면 created=False
    """
    email = email.strip().lower()

    existing = SimpleMember.objects.filter(email=email).first()
    if existing:
        logger.info(f"Member already exists: {mask_email(email)}")
        return existing, False

    try:
        with transaction.atomic():
            member = SimpleMember.objects.create(
                email=email,
                first_name=first_name,
                last_name=last_name,
                display_name=display_name,
                joined_at=joined_at,
                is_active=True,
                receive_notifications=True,
            )
    except IntegrityError:
        # 동시 가입 요청으로 이미 생성된 경우
        member = SimpleMember.objects.filter(email=email).first()
        if member is None:
            raise ConflictException(message="Could not create member.", field="email")
        return member, False

    logger.info(f"Simple member created: {mask_email(email)}")
    return member, True


def verify_simple_member(email):
    """활성 간편 회원 조회 (없으면 None)"""
    return SimpleMember.objects.filter(email=email.strip().lower(), is_active=True).first()
