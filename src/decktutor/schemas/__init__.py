"""Enumerations and payload types for the DeckTutor webservice."""

from .types import (
    CardLanguage,
    CardState,
    Game,
    LoginRequest,
    RegisterRequest,
    SerpRequest,
)

__all__ = [
    "CardLanguage",
    "CardState",
    "Game",
    "LoginRequest",
    "RegisterRequest",
    "SerpRequest",
]
