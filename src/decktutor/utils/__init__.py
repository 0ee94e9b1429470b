# Shared utilities and helpers

from .errors import (
    ApiError,
    DeckTutorError,
    NotAuthenticatedError,
    RecoveryAction,
    ResponseDecodeError,
    ResponseFormatError,
    TransportError,
)

__all__ = [
    "ApiError",
    "DeckTutorError",
    "NotAuthenticatedError",
    "RecoveryAction",
    "ResponseDecodeError",
    "ResponseFormatError",
    "TransportError",
]
