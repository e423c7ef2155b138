"""Language identifiers, stopword tables and URL based language hints."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, FrozenSet
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

__all__ = [
    "KNOWN_LANGUAGES",
    "STOPWORDS_DIR",
    "StopwordTable",
    "language_hint",
    "load_stopwords",
    "normalize_language",
]

STOPWORDS_DIR = Path(__file__).resolve().parent / "resources" / "stopwords"

#: Identifier to English name for every language a site may be tagged with.
KNOWN_LANGUAGES: Dict[str, str] = {
    "ar": "Arabic",
    "ru": "Russian",
    "nl": "Dutch",
    "de": "German",
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "he": "Hebrew",
    "it": "Italian",
    "ko": "Korean",
    "no": "Norwegian",
    "fa": "Persian",
    "pl": "Polish",
    "pt": "Portuguese",
    "sv": "Swedish",
    "hu": "Hungarian",
    "fi": "Finnish",
    "da": "Danish",
    "zh": "Chinese",
    "id": "Indonesian",
    "vi": "Vietnamese",
    "sw": "Swahili",
    "tr": "Turkish",
    "el": "Greek",
    "uk": "Ukrainian",
}

_NAME_TO_ID = {name.lower(): identifier for identifier, name in KNOWN_LANGUAGES.items()}
_SECOND_LEVEL_LABELS = frozenset({"ac", "co", "com", "edu", "gov", "ltd", "net", "org", "plc"})


def normalize_language(value: str | None) -> str | None:
    """Return the two letter identifier for ``value``.

    Accepts identifiers (``"en"``), locales (``"en-US"``, ``"de_DE"``) and
    English names (``"german"``). Unknown languages keep their primary subtag.
    """

    if not value:
        return None
    lowered = value.strip().lower()
    if not lowered:
        return None
    if lowered in _NAME_TO_ID:
        return _NAME_TO_ID[lowered]
    primary = lowered.replace("_", "-").split("-", 1)[0]
    return primary or None


def load_stopwords(language: str, directory: Path = STOPWORDS_DIR) -> FrozenSet[str]:
    """Read the stopword list for ``language`` from ``directory``.

    Languages without a bundled list get an empty set, which disables stopword
    filtering instead of failing extraction.
    """

    path = directory / f"stopwords-{language}.txt"
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        logger.debug("No stopword list for language %r", language)
        return frozenset()
    return frozenset(line.strip().lower() for line in lines if line.strip() and not line.startswith("#"))


class StopwordTable:
    """Stopword sets keyed by language, read once per table instance."""

    def __init__(self, default_language: str = "en", directory: Path = STOPWORDS_DIR) -> None:
        self.default_language = normalize_language(default_language) or "en"
        self._directory = directory
        self._tables: Dict[str, FrozenSet[str]] = {}

    def for_language(self, language: str | None = None) -> FrozenSet[str]:
        identifier = normalize_language(language) or self.default_language
        if identifier not in self._tables:
            self._tables[identifier] = load_stopwords(identifier, self._directory)
        return self._tables[identifier]


def language_hint(url: str) -> str | None:
    """Guess a category's language from its host or first path segment.

    ``https://arabic.cnn.com/`` and ``https://cnn.com/Arabic/`` both hint at
    Arabic; ``https://cnn.com/Europe`` gives no hint. A country suffix such
    as ``.co.uk`` names a registry, not a language.
    """

    parts = urlsplit(url)
    host = (parts.hostname or "").lower()
    labels = host.split(".")
    country_suffix = len(labels) >= 3 and labels[-2] in _SECOND_LEVEL_LABELS
    segments = [segment for segment in parts.path.split("/") if segment]
    first_segment = segments[0].lower() if segments else None

    for identifier, name in KNOWN_LANGUAGES.items():
        full_name = name.lower()
        if host:
            if (
                (host.endswith(f".{identifier}") and not country_suffix)
                or host.startswith(f"{identifier}.")
                or host.startswith(f"{full_name}.")
            ):
                return identifier
        if first_segment == full_name:
            return identifier
    return None
