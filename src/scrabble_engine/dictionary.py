import logging
import os
from typing import Iterable, Iterator, Protocol, Set

from .exceptions import DictionaryLoadError

log = logging.getLogger(__name__)


class WordValidator(Protocol):
    def is_valid_word(self, word: str) -> bool: ...


class WordSource(WordValidator, Protocol):
    def all_words(self) -> Iterable[str]: ...


class WordList:
    """In-memory word set. Lookups are case-insensitive."""

    def __init__(self, words: Iterable[str] = ()):
        self.words: Set[str] = set()
        for w in words:
            self.add_word(w)

    def add_word(self, word: str) -> None:
        word = word.strip().upper()
        if len(word) >= 2 and word.isalpha():
            self.words.add(word)

    def is_valid_word(self, word: str) -> bool:
        return bool(word) and word.strip().upper() in self.words

    def all_words(self) -> Iterator[str]:
        return iter(sorted(self.words))

    def __contains__(self, word: str) -> bool:
        return self.is_valid_word(word)

    def __len__(self) -> int:
        return len(self.words)


def load_dictionary(path: str) -> WordList:
    if not os.path.isfile(path):
        raise DictionaryLoadError(f"Dictionary file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        words = WordList(line for line in f if line.strip() and line[0].isalpha())
    if not words:
        raise DictionaryLoadError(f"Dictionary file has no usable words: {path}")
    log.info("Loaded %s words from %s", len(words), path)
    return words
