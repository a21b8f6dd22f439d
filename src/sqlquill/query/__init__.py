"""
Template translation and fluent query construction.
"""

from .errors import (
    ArgumentCountError,
    EscapeError,
    FluentStateError,
    MalformedConditionalError,
    MissingSubstitutionError,
    RecursionDepthError,
    TemplateSyntaxError,
    TranslatorError,
    TypeMismatchError,
    UnknownModifierError,
)
from .escaper import escape, escape_identifier, infer_kind
from .fluent import Fluent, FluentState
from .modifiers import ModifierKind, tokenize
from .substitutions import (
    ALL,
    SubstitutionTable,
    add_substitution,
    remove_substitution,
    set_substitution_fallback,
    substitutions,
)
from .translator import Translator

__all__ = [
    "ALL",
    "ArgumentCountError",
    "EscapeError",
    "Fluent",
    "FluentState",
    "FluentStateError",
    "MalformedConditionalError",
    "MissingSubstitutionError",
    "ModifierKind",
    "RecursionDepthError",
    "SubstitutionTable",
    "TemplateSyntaxError",
    "Translator",
    "TranslatorError",
    "TypeMismatchError",
    "UnknownModifierError",
    "add_substitution",
    "escape",
    "escape_identifier",
    "infer_kind",
    "remove_substitution",
    "set_substitution_fallback",
    "substitutions",
    "tokenize",
]
