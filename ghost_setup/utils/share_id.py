"""공유 ID 생성/검증"""
import re
import secrets
import string

SHARE_ID_ALPHABET = string.ascii_letters + string.digits
SHARE_ID_LENGTH = 8
FALLBACK_SHARE_ID_LENGTH = 12

_SHARE_ID_PATTERN = re.compile(r"^[A-Za-z0-9]{6,12}$")


def generate_share_id(length: int = SHARE_ID_LENGTH) -> str:
    """영숫자 공유 ID 생성"""
    return "".join(secrets.choice(SHARE_ID_ALPHABET) for _ in range(length))


def is_valid_share_id(share_id: str) -> bool:
    """6~12자 영숫자인지 확인"""
    return bool(share_id) and bool(_SHARE_ID_PATTERN.match(share_id))
