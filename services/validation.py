"""Local input checks run before anything is sent to the gateway."""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from core import messages
from core.errors import ValidationFailed


PHONE_DIGITS = 11
MIN_PASSWORD_LENGTH = 6
DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024

_UPPER = re.compile(r"[A-Z]")
_DIGIT = re.compile(r"[0-9]")
_SYMBOL = re.compile(r"[^A-Za-z0-9]")
_NON_DIGIT = re.compile(r"\D")


class PasswordTier(str, Enum):
    weak = "weak"
    medium = "medium"
    strong = "strong"


@dataclass(frozen=True)
class PasswordStrength:
    score: int
    tier: PasswordTier
    valid: bool


def _password_checks(password: str) -> tuple[bool, bool, bool, bool]:
    return (
        len(password) >= MIN_PASSWORD_LENGTH,
        bool(_UPPER.search(password)),
        bool(_DIGIT.search(password)),
        bool(_SYMBOL.search(password)),
    )


def is_password_valid(password: Optional[str]) -> bool:
    return all(_password_checks(password or ""))


def password_strength(password: Optional[str]) -> PasswordStrength:
    """Score 0-4, one point each for length, uppercase, digit and symbol."""
    checks = _password_checks(password or "")
    score = sum(checks)
    if score <= 1:
        tier = PasswordTier.weak
    elif score <= 3:
        tier = PasswordTier.medium
    else:
        tier = PasswordTier.strong
    return PasswordStrength(score=score, tier=tier, valid=all(checks))


def normalize_phone(raw: Optional[str]) -> str:
    # Same as the input mask: strip non-digits, keep at most 11
    return _NON_DIGIT.sub("", raw or "")[:PHONE_DIGITS]


def validate_sign_up(password: str, confirm_password: Optional[str], phone: Optional[str]) -> str:
    """Return the normalized phone or raise :class:`ValidationFailed`."""
    normalized = normalize_phone(phone)
    if len(normalized) != PHONE_DIGITS:
        raise ValidationFailed(messages.PHONE_INVALID)
    if not is_password_valid(password):
        raise ValidationFailed(messages.PASSWORD_POLICY)
    if confirm_password is not None and password != confirm_password:
        raise ValidationFailed(messages.PASSWORD_MISMATCH)
    return normalized


def validate_booking_date(requested: date, today: Optional[date] = None) -> None:
    if requested < (today or date.today()):
        raise ValidationFailed(messages.BOOKING_DATE_IN_PAST)


def validate_image(content_type: Optional[str], size: int, max_bytes: int = DEFAULT_MAX_IMAGE_BYTES) -> None:
    if not (content_type or "").startswith("image/"):
        raise ValidationFailed(messages.IMAGE_TYPE_INVALID)
    if size > max_bytes:
        raise ValidationFailed(messages.IMAGE_TOO_LARGE)
