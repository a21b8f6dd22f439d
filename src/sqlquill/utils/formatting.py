"""
Readable multi-line rendering of SQL text for dumps and logs.
"""

from __future__ import annotations

import re

_MAJOR_KEYWORDS = (
    r"SELECT|UPDATE|INSERT(?:\s+INTO)?|DELETE|UNION(?:\s+ALL)?|FROM|WHERE|HAVING"
    r"|GROUP\s+BY|ORDER\s+BY|LIMIT|OFFSET|SET|VALUES"
    r"|(?:LEFT|RIGHT|INNER|CROSS)\s+JOIN|JOIN"
    r"|BEGIN|COMMIT|ROLLBACK(?:\s+TO\s+SAVEPOINT)?|(?:RELEASE\s+)?SAVEPOINT"
)

_DUMP_RE = re.compile(
    r"""('(?:''|\\.|[^'\\])*'|"(?:""|[^"])*"|`(?:``|[^`])*`)"""
    rf"|\s*\b({_MAJOR_KEYWORDS})\b",
    re.IGNORECASE,
)


def format_sql(sql: str) -> str:
    """
    Break ``sql`` onto a new line before each major keyword.

    Quoted literals and identifiers are left untouched.
    """

    def replace(match: re.Match[str]) -> str:
        if match.group(1) is not None:
            return match.group(1)
        return "\n" + " ".join(match.group(2).upper().split())

    return _DUMP_RE.sub(replace, sql).strip()
