"""Exceptions raised while parsing, validating and running Ex commands."""

from __future__ import annotations


class ExError(Exception):
    """Base class; ``code`` is the Vim message id and ``str()`` the full text."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class ExParseError(ExError):
    """The command line could not be split into range, name and argument."""


class ExValidationError(ExError):
    """The name matches no command (or several), or its range, bang or
    argument is not allowed."""


class ArgumentGrammarError(ExError):
    """The argument does not follow the command's own grammar."""


class AccessError(ExError):
    """A write command was run against a read-only buffer."""


class LookupMiss(ExError):
    """An address names something that is not there: an unset mark or a
    pattern with no matching line."""


__all__ = [
    "AccessError",
    "ArgumentGrammarError",
    "ExError",
    "ExParseError",
    "ExValidationError",
    "LookupMiss",
]
