"""decktutor - Client for the DeckTutor card-game webservice.

decktutor wraps the search, account and configuration calls of the
DeckTutor webservice in an asyncio client, signing requests with the
rolling sequence authentication the service expects once logged in.
"""

__version__ = "0.1.0"

from .auth import AuthSession, compute_signature
from .client import DeckTutorClient
from .config import Config, ConfigError, load_config
from .schemas import CardLanguage, CardState, Game
from .utils.errors import (
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
    "AuthSession",
    "CardLanguage",
    "CardState",
    "Config",
    "ConfigError",
    "DeckTutorClient",
    "DeckTutorError",
    "Game",
    "NotAuthenticatedError",
    "RecoveryAction",
    "ResponseDecodeError",
    "ResponseFormatError",
    "TransportError",
    "__version__",
    "compute_signature",
    "load_config",
]
