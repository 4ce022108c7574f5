from __future__ import annotations

import re
from typing import TYPE_CHECKING

from ..errors import ConfigurationError

if TYPE_CHECKING:
    from ..dialects.base import Dialect

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def validate_identifier(name: str, identifier_type: str = "identifier") -> str:
    """
    Validate that an identifier (table/column name) is safe for SQL interpolation.

    Identifiers are always quoted through the active Dialect, but we still
    restrict them to letters, digits and underscores so that a quoted name
    can never break out of its quotes.

    ⚠️ SECURITY CONTRACT ⚠️
    Table and column names come from record types and setup code. They MUST
    NOT be built from user input; values always travel as bound parameters.

    Args:
        name: The identifier to validate
        identifier_type: Description of the identifier (for error messages)

    Returns:
        The validated identifier (unchanged if valid)

    Raises:
        ConfigurationError: If the identifier is not a string, is empty,
            contains unsafe characters or exceeds 64 characters

    Example:
        >>> validate_identifier("invoice_test", "table")
        'invoice_test'
        >>> validate_identifier("'; DROP TABLE--", "table")
        ConfigurationError: Invalid table '; DROP TABLE--': ...
    """
    if not isinstance(name, str):
        raise ConfigurationError(f"{identifier_type} must be a string, got {type(name).__name__}")

    if not name:
        raise ConfigurationError(f"{identifier_type} cannot be empty")

    if not _IDENTIFIER_RE.match(name):
        raise ConfigurationError(
            f"Invalid {identifier_type} {name!r}: "
            "must start with letter/underscore and contain only alphanumeric characters and underscores"
        )

    # MySQL caps identifiers at 64 characters, PostgreSQL at 63 (truncating silently).
    if len(name) > 64:
        raise ConfigurationError(f"{identifier_type} {name!r} exceeds the 64-character limit")

    return name


def rebind(query: str, dialect: "Dialect") -> str:
    """
    Rewrite ``?`` placeholders into the dialect's own bind variables.

    Question marks inside single- or double-quoted literals are left alone.

    Example:
        >>> rebind("select * from t where a = ? and b = ?", PostgresDialect(paramstyle="numeric_dollar"))
        'select * from t where a = $1 and b = $2'
    """
    out = []
    quote = None
    index = 0
    for ch in query:
        if quote is not None:
            if ch == quote:
                quote = None
            out.append(ch)
        elif ch in ("'", '"'):
            quote = ch
            out.append(ch)
        elif ch == "?":
            out.append(dialect.bind_var(index))
            index += 1
        else:
            out.append(ch)
    return "".join(out)
