import secrets
import string
from typing import Protocol

from django.utils import timezone


class _ExistsFunc(Protocol):
    def __call__(self, code: str) -> bool:
        ...


_HEX = string.digits + "ABCDEF"


def _random_code(length: int = 6, alphabet: str = _HEX) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_unique_code(
    *,
    length: int = 6,
    exists: _ExistsFunc,
    alphabet: str = _HEX,
    max_attempts: int = 12,
) -> str:
    """Return a random code that is unique under the provided exists() check."""
    for _ in range(max_attempts):
        code = _random_code(length, alphabet)
        if not exists(code):
            return code
    raise RuntimeError("unable to generate unique code")


def generate_order_number(*, exists: _ExistsFunc, when=None) -> str:
    """ORD-YYYYMMDD-XXXXXX with six uppercase hex digits."""
    day = (when or timezone.now()).strftime("%Y%m%d")
    prefix = f"ORD-{day}-"
    suffix = generate_unique_code(length=6, exists=lambda c: exists(prefix + c))
    return prefix + suffix


def generate_otp(length: int = 4) -> str:
    return _random_code(length, string.digits)
