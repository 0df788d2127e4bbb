"""Error taxonomy shared by the identity, directory and lifecycle flows.

Every error that can reach a view derives from ``BarrioError`` so views can
catch one class at the operation boundary and show ``str(exc)`` inline.
Backend exceptions are mapped onto the taxonomy by message, the same way
Supabase client errors are classified elsewhere: the provider wording is kept
verbatim except for two stable, user-facing messages (invalid credentials and
invalid/expired one-time code).
"""

import logging
from typing import Tuple, Type

import httpx

log = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Credenciales inválidas. Verifica tu email y contraseña."
INVALID_OR_EXPIRED_CODE_MESSAGE = "Código inválido o expirado."


class BarrioError(Exception):
    """Base class for errors surfaced to the user."""


class AuthError(BarrioError):
    pass


class InvalidCredentialsError(AuthError):
    def __init__(self, message: str = INVALID_CREDENTIALS_MESSAGE):
        super().__init__(message)


class InvalidOrExpiredCodeError(AuthError):
    def __init__(self, message: str = INVALID_OR_EXPIRED_CODE_MESSAGE):
        super().__init__(message)


class WeakPasswordError(AuthError):
    pass


class NotAuthenticatedError(AuthError):
    pass


class ExchangeError(AuthError):
    pass


class SendFailureError(AuthError):
    pass


class PermissionDeniedError(BarrioError):
    pass


class NotFoundError(BarrioError):
    pass


class TransportError(BarrioError):
    pass


class ValidationError(BarrioError):
    pass


class UnknownBackendError(BarrioError):
    pass


class UpdateError(BarrioError):
    pass


class DeleteError(BarrioError):
    pass


# Ordered: the first matching fragment wins.
BACKEND_ERROR_MAP: Tuple[Tuple[str, Type[BarrioError]], ...] = (
    ("invalid login credentials", InvalidCredentialsError),
    ("token has expired", InvalidOrExpiredCodeError),
    ("invalid token", InvalidOrExpiredCodeError),
    ("otp_expired", InvalidOrExpiredCodeError),
    ("otp has expired", InvalidOrExpiredCodeError),
    ("weak_password", WeakPasswordError),
    ("password should be", WeakPasswordError),
    ("auth session missing", NotAuthenticatedError),
    ("not authenticated", NotAuthenticatedError),
    ("row-level security", PermissionDeniedError),
    ("permission denied", PermissionDeniedError),
    ("not_admin", PermissionDeniedError),
    ("user not found", NotFoundError),
    ("not found", NotFoundError),
)

_NORMALIZED = (InvalidCredentialsError, InvalidOrExpiredCodeError)


def _message_of(exc: Exception) -> str:
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc)


def is_transport_failure(exc: Exception) -> bool:
    return isinstance(exc, (ConnectionError, TimeoutError, httpx.TransportError))


def classify_backend_error(exc: Exception, fallback: Type[BarrioError] = UnknownBackendError) -> BarrioError:
    """Map a raw client exception onto the taxonomy.

    Already-classified errors pass through untouched. Network failures become
    ``TransportError``. Everything else is matched against ``BACKEND_ERROR_MAP``
    and otherwise wrapped in ``fallback`` with the provider's message.
    """
    if isinstance(exc, BarrioError):
        return exc

    message = _message_of(exc)
    if is_transport_failure(exc):
        return TransportError(f"Error de conexión con el servidor: {message}")

    lowered = message.lower()
    for fragment, error_cls in BACKEND_ERROR_MAP:
        if fragment in lowered:
            if error_cls in _NORMALIZED:
                return error_cls()
            return error_cls(message)

    log.debug("Unclassified backend error (%s): %s", type(exc).__name__, message)
    return fallback(message or fallback.__name__)
