"""
Modifier kinds and the template tokenizer.

A template fragment is split once into literal text, delimited identifiers,
string literals, ``:name:`` substitutions and ``%`` modifiers. Tokenized
fragments are cached, so repeated translations of the same template only pay
for formatting.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

from .errors import TemplateSyntaxError, UnknownModifierError


class ModifierKind(Enum):
    AUTO = "?"
    IDENTIFIER = "n"
    TEXT = "s"
    TEXT_OR_NULL = "sN"
    BOOL = "b"
    INTEGER = "i"
    FLOAT = "f"
    DATE = "d"
    DATETIME = "t"
    TIME = "tm"
    BINARY = "bin"
    RAW = "sql"
    LIST = "l"
    IN_LIST = "in"
    ASSIGNMENTS = "a"
    VALUES = "v"
    MULTI_VALUES = "m"
    AND = "and"
    OR = "or"
    ORDER_BY = "by"
    EXPAND = "ex"
    LIKE_STARTS = "like~"
    LIKE_ENDS = "~like"
    LIKE_CONTAINS = "~like~"
    IF = "if"
    ELSE = "else"
    END = "end"
    OFFSET = "ofs"
    LIMIT = "lmt"

    @property
    def consumes(self) -> bool:
        return self not in (ModifierKind.ELSE, ModifierKind.END)

    @classmethod
    def from_token(cls, token: str) -> "ModifierKind":
        try:
            return MODIFIERS[token]
        except KeyError:
            raise UnknownModifierError(f"Unknown modifier %{token}", token=f"%{token}") from None


MODIFIERS: dict[str, ModifierKind] = {kind.value: kind for kind in ModifierKind}
MODIFIERS["SQL"] = ModifierKind.RAW

SCALAR_KINDS = frozenset(
    {
        ModifierKind.AUTO,
        ModifierKind.IDENTIFIER,
        ModifierKind.TEXT,
        ModifierKind.TEXT_OR_NULL,
        ModifierKind.BOOL,
        ModifierKind.INTEGER,
        ModifierKind.FLOAT,
        ModifierKind.DATE,
        ModifierKind.DATETIME,
        ModifierKind.TIME,
        ModifierKind.BINARY,
        ModifierKind.RAW,
        ModifierKind.LIKE_STARTS,
        ModifierKind.LIKE_ENDS,
        ModifierKind.LIKE_CONTAINS,
    }
)
CONDITIONAL_KINDS = frozenset({ModifierKind.IF, ModifierKind.ELSE, ModifierKind.END})


class TokenType(Enum):
    LITERAL = "literal"
    IDENTIFIER = "identifier"
    STRING = "string"
    SUBSTITUTION = "substitution"
    MODIFIER = "modifier"


@dataclass(frozen=True)
class Token:
    type: TokenType
    text: str
    position: int
    raw: str = ""
    modifier: ModifierKind | None = None

    @property
    def consumes(self) -> bool:
        return self.modifier is not None and self.modifier.consumes


_TOKEN_RE = re.compile(
    r"""
      `(?P<backtick>[^`]+)`
    | \[(?P<bracket>[^\]]+)\]
    | '(?P<single>(?:''|[^'])*)'
    | "(?P<double>(?:""|[^"])*)"
    | (?P<lone>['"`])
    | (?<!:):(?P<subst>[A-Za-z_][A-Za-z0-9_]*):
    | %(?P<mod>%|~?[A-Za-z][A-Za-z0-9]*~?)
    | (?P<auto>\?)
    """,
    re.VERBOSE,
)


@lru_cache(maxsize=512)
def tokenize(fragment: str) -> tuple[Token, ...]:
    tokens: list[Token] = []
    cursor = 0
    for match in _TOKEN_RE.finditer(fragment):
        start = match.start()
        if start > cursor:
            tokens.append(Token(TokenType.LITERAL, fragment[cursor:start], cursor))
        raw = match.group(0)
        group = match.lastgroup
        if group in ("backtick", "bracket"):
            tokens.append(Token(TokenType.IDENTIFIER, match.group(group), start, raw))
        elif group == "single":
            tokens.append(Token(TokenType.STRING, match.group(group).replace("''", "'"), start, raw))
        elif group == "double":
            tokens.append(Token(TokenType.STRING, match.group(group).replace('""', '"'), start, raw))
        elif group == "lone":
            raise TemplateSyntaxError("Unterminated quote in template", token=raw, position=start)
        elif group == "subst":
            tokens.append(Token(TokenType.SUBSTITUTION, match.group(group), start, raw))
        elif group == "auto":
            tokens.append(Token(TokenType.MODIFIER, raw, start, raw, ModifierKind.AUTO))
        else:
            name = match.group("mod")
            if name == "%":
                tokens.append(Token(TokenType.LITERAL, "%", start, raw))
            else:
                kind = MODIFIERS.get(name)
                if kind is None or kind is ModifierKind.AUTO:
                    raise UnknownModifierError(f"Unknown modifier {raw}", token=raw, position=start)
                tokens.append(Token(TokenType.MODIFIER, raw, start, raw, kind))
        cursor = match.end()
    if cursor < len(fragment):
        tokens.append(Token(TokenType.LITERAL, fragment[cursor:], cursor))
    return tuple(tokens)


def arity(fragment: str) -> int:
    """
    Number of arguments the fragment consumes.
    """
    return sum(1 for token in tokenize(fragment) if token.consumes)


def split_key(key: str) -> tuple[str, ModifierKind | None]:
    """
    Split a mapping key such as ``"price%f"`` into name and modifier kind.
    """
    name, sep, modifier = key.partition("%")
    if not sep:
        return key, None
    return name, ModifierKind.from_token(modifier)
