"""Exceptions for states the engine cannot recover from.

Game-rule violations (occupied cell, bad shape, unknown word) are not
exceptions: the engine reports them as ``False`` or a zero score.
"""


class ScrabbleEngineError(Exception):
    """Base exception for engine failures."""


class LedgerCorruptionError(ScrabbleEngineError):
    """Raised when a staged placement no longer matches the board."""


class DictionaryLoadError(ScrabbleEngineError):
    """Raised when a word list cannot be read or holds no usable words."""


class SnapshotError(ScrabbleEngineError):
    """Raised when a persisted game cannot be restored."""
