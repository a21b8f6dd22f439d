"""
Error hierarchy raised while translating templates into SQL.
"""

from __future__ import annotations


class TranslatorError(Exception):
    """
    Base error for translation failures.

    ``token`` is the offending template token (when known) and ``position``
    its character offset inside the fragment being translated.
    """

    def __init__(self, message: str, *, token: str | None = None, position: int | None = None) -> None:
        self.token = token
        self.position = position
        if token is not None:
            where = f" at position {position}" if position is not None else ""
            message = f"{message} (token {token!r}{where})"
        super().__init__(message)

    def locate(self, token: str, position: int | None) -> "TranslatorError":
        """
        Attach the template token that triggered the error, once.
        """
        if self.token is None:
            self.token = token
            self.position = position
            where = f" at position {position}" if position is not None else ""
            self.args = (f"{self.args[0]} (token {token!r}{where})",) + tuple(self.args[1:])
        return self


class ArgumentCountError(TranslatorError):
    """Raised when modifiers and supplied arguments do not line up."""


class EscapeError(TranslatorError):
    """Raised when a value cannot be escaped."""


class TypeMismatchError(EscapeError):
    """Raised when a value's type is incompatible with its modifier."""


class UnknownModifierError(EscapeError):
    """Raised for unrecognized modifier tokens or kinds."""


class MissingSubstitutionError(TranslatorError):
    """Raised when a ``:name:`` placeholder cannot be resolved."""

    def __init__(self, name: str, **kwargs) -> None:
        self.name = name
        super().__init__(f"Missing substitution for '{name}'", **kwargs)


class RecursionDepthError(TranslatorError, RecursionError):
    """Raised when sub-template expansion nests deeper than allowed."""


class MalformedConditionalError(TranslatorError):
    """Raised for unbalanced or nested ``%if``/``%else``/``%end`` sections."""


class TemplateSyntaxError(TranslatorError):
    """Raised when a template cannot be tokenized (e.g. unterminated quote)."""


class FluentStateError(RuntimeError):
    """Raised when a rendered fluent builder is modified."""
