"""Enumerations and request payload types for the webservice."""

from enum import Enum
from typing import Annotated, Any, TypedDict


class Game(Enum):
    """Card games served by the webservice."""

    MTG = "mtg"
    WOW = "wow"
    YGO = "ygo"

    @property
    def label(self) -> str:
        return _GAME_LABELS[self]


class CardState(Enum):
    """Physical condition grades of a card."""

    MINT = "M"
    NEAR_MINT = "NM"
    EXCELLENT = "EX"
    VERY_GOOD = "VG"
    GOOD = "GD"
    PLAYED = "PL"
    POOR = "PO"

    @property
    def label(self) -> str:
        return _CARD_STATE_LABELS[self]


class CardLanguage(Enum):
    """Print languages of a card."""

    GERMAN = "de"
    ENGLISH = "en"
    SPANISH = "es"
    FRENCH = "fr"
    ITALIAN = "it"
    JAPANESE = "ja"
    KOREAN = "ko"
    PORTUGUESE = "pt"
    RUSSIAN = "ru"
    CHINESE_SIMPLIFIED = "zh"
    CHINESE_TRADITIONAL = "zh-tw"

    @property
    def label(self) -> str:
        return _CARD_LANGUAGE_LABELS[self]


_GAME_LABELS = {
    Game.MTG: "Magic the Gathering",
    Game.WOW: "World of Warcraft",
    Game.YGO: "Yu-Gi-Oh!",
}

_CARD_STATE_LABELS = {
    CardState.MINT: "Mint",
    CardState.NEAR_MINT: "Near Mint",
    CardState.EXCELLENT: "Excellent",
    CardState.VERY_GOOD: "Very Good",
    CardState.GOOD: "Good",
    CardState.PLAYED: "Played",
    CardState.POOR: "Poor",
}

_CARD_LANGUAGE_LABELS = {
    CardLanguage.GERMAN: "German",
    CardLanguage.ENGLISH: "English",
    CardLanguage.SPANISH: "Spanish",
    CardLanguage.FRENCH: "French",
    CardLanguage.ITALIAN: "Italian",
    CardLanguage.JAPANESE: "Japanese",
    CardLanguage.KOREAN: "Korean",
    CardLanguage.PORTUGUESE: "Portuguese",
    CardLanguage.RUSSIAN: "Russian",
    CardLanguage.CHINESE_SIMPLIFIED: "Chinese Simplified",
    CardLanguage.CHINESE_TRADITIONAL: "Chinese Traditional",
}


class LoginRequest(TypedDict):
    """Body of ``POST /account/login``."""

    login: Annotated[str, "Account nickname or email"]
    password: Annotated[str, "Account password"]


class RegisterRequest(TypedDict, total=False):
    """Body of ``POST /account/register``.

    The nested sections are passed through to the webservice untouched;
    the captcha fields are only present when a captcha was solved.
    """

    user: Annotated[dict[str, Any], "Account credentials section"]
    person: Annotated[dict[str, Any], "Personal details section"]
    address: Annotated[dict[str, Any], "Postal address section"]
    prefs: Annotated[dict[str, Any], "User preferences section"]
    privacy: Annotated[Any, "Privacy policy acceptance"]
    captcha_code: Annotated[str, "Code of the captcha being answered"]
    captcha_answer: Annotated[str, "Answer typed by the user"]


class SerpRequest(TypedDict):
    """Body of ``POST /search/serp``."""

    search: Annotated[dict[str, Any], "Search criteria object"]
    offset: Annotated[int, "Offset from which to return results"]
    limit: Annotated[int | None, "Number of results to return"]
    order: Annotated[str | None, "Ordering in the format column,dir"]
