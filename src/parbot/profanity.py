"""Word-list based profanity filter."""

from __future__ import annotations

import re
from importlib import resources
from pathlib import Path

from loguru import logger

from parbot.errors import ProfanityFilterNoDatabaseError

DEFAULT_WORDLIST = "profanity.txt"
_TOKEN_RE = re.compile(r"[a-z]+")
_SUBSTITUTIONS = str.maketrans(
    {
        "0": "o",
        "1": "i",
        "3": "e",
        "4": "a",
        "5": "s",
        "7": "t",
        "@": "a",
        "$": "s",
        "ä": "ae",
        "ö": "oe",
        "ü": "ue",
        "ß": "ss",
    }
)


def _normalize(text: str) -> list[str]:
    folded = text.lower().translate(_SUBSTITUTIONS)
    return _TOKEN_RE.findall(folded)


class WordListProfanityFilter:
    """Flag text containing any listed word or phrase.

    Text is lower-cased and common character substitutions (``4`` for ``a``,
    ``$`` for ``s``, umlauts) are folded before matching whole words.
    """

    def __init__(self, entries: list[str]) -> None:
        self._words: set[str] = set()
        self._phrases: list[tuple[str, ...]] = []
        for entry in entries:
            tokens = _normalize(entry)
            if not tokens:
                continue
            if len(tokens) == 1:
                self._words.add(tokens[0])
            else:
                self._phrases.append(tuple(tokens))

    @classmethod
    def from_default(cls) -> WordListProfanityFilter:
        try:
            content = resources.files("parbot.data").joinpath(DEFAULT_WORDLIST).read_text(encoding="utf-8")
        except (OSError, ModuleNotFoundError) as exc:
            raise ProfanityFilterNoDatabaseError(DEFAULT_WORDLIST) from exc
        return cls(_parse_entries(content))

    @classmethod
    def from_file(cls, path: Path) -> WordListProfanityFilter:
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ProfanityFilterNoDatabaseError(str(path)) from exc
        return cls(_parse_entries(content))

    @property
    def size(self) -> int:
        return len(self._words) + len(self._phrases)

    def is_profane(self, text: str) -> bool:
        tokens = _normalize(text)
        if any(token in self._words for token in tokens):
            return True
        for phrase in self._phrases:
            width = len(phrase)
            for start in range(len(tokens) - width + 1):
                if tuple(tokens[start : start + width]) == phrase:
                    return True
        return False


def _parse_entries(content: str) -> list[str]:
    entries = [line.strip() for line in content.splitlines()]
    return [entry for entry in entries if entry and not entry.startswith("#")]


def load_profanity_filter(path: Path | None = None) -> WordListProfanityFilter:
    """Load the packaged word list, or ``path`` when given."""
    profanity_filter = WordListProfanityFilter.from_default() if path is None else WordListProfanityFilter.from_file(path)
    logger.debug("profanity.loaded entries={} source={}", profanity_filter.size, path or DEFAULT_WORDLIST)
    return profanity_filter
