from __future__ import annotations

from core import messages


class PetShopError(Exception):
    """Base class for errors raised by the application layer."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(PetShopError):
    """Input rejected locally, before any gateway call."""


class GatewayError(PetShopError):
    """A read or write against the persistence gateway failed."""


class AuthProviderError(GatewayError):
    """The identity provider rejected an auth request.

    The message mirrors the provider's own wording so it can be mapped with
    :func:`map_auth_error`.
    """


class InvalidCredentials(AuthProviderError):
    def __init__(self, message: str = "Invalid login credentials") -> None:
        super().__init__(message)


class DuplicateRegistration(AuthProviderError):
    def __init__(self, message: str = "User already registered") -> None:
        super().__init__(message)


class EmailNotConfirmed(AuthProviderError):
    def __init__(self, message: str = "Email not confirmed") -> None:
        super().__init__(message)


class WeakPassword(AuthProviderError):
    def __init__(self, message: str = "Weak password: should be at least 6 characters") -> None:
        super().__init__(message)


_AUTH_MESSAGE_PATTERNS: tuple[tuple[str, str], ...] = (
    ("user already registered", messages.AUTH_DUPLICATE),
    ("invalid login credentials", messages.AUTH_INVALID_CREDENTIALS),
    ("email not confirmed", messages.AUTH_EMAIL_NOT_CONFIRMED),
    ("weak password", messages.AUTH_WEAK_PASSWORD),
)


def map_auth_error(error: BaseException | str | None) -> str:
    """Translate a provider auth error into the localized text shown to users.

    Unmatched messages are returned verbatim; anything that is not an error
    message at all falls back to a generic hint.
    """
    if error is None:
        return messages.AUTH_GENERIC
    if isinstance(error, str):
        raw = error
    elif isinstance(error, PetShopError):
        raw = error.message
    else:
        raw = str(error)
    if not raw:
        return messages.AUTH_GENERIC
    lowered = raw.lower()
    for pattern, localized in _AUTH_MESSAGE_PATTERNS:
        if pattern in lowered:
            return localized
    return raw
