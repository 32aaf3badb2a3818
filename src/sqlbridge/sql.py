"""
SQL text handling for positional placeholders.

Statements are assembled with `?` placeholders. This module tokenizes SQL
text once so that placeholders inside string literals, quoted identifiers and
comments are never mistaken for bind positions:

    SQL + Values → Tokenize → Rewrite placeholders → Bind / Render

Main entry points:
- `bind_params(sql, values)` - `?` → SQLAlchemy `text()` with named binds
- `format_sql(sql, values)` - literal rendering for the debug sink only
- `quote_identifier(name)` - backtick quoting for table/column names
"""
import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

import sqlalchemy as sa
from pymysql.converters import escape_item
from sqlbridge.exceptions import CompileError

__all__ = [
    'TokenType',
    'Token',
    'tokenize_sql',
    'make_placeholders',
    'quote_identifier',
    'bind_params',
    'format_sql',
]

# =============================================================================
# Data Structures
# =============================================================================


class TokenType(Enum):
    """Token types identified during SQL parsing."""
    SQL_TEXT = auto()
    STRING_LITERAL = auto()
    IDENTIFIER = auto()         # `quoted`
    COMMENT = auto()
    POSITIONAL_PH = auto()      # ?


@dataclass(slots=True)
class Token:
    """Token from SQL parsing."""
    type: TokenType
    text: str
    start: int
    end: int


# =============================================================================
# Regex Patterns
# =============================================================================

# MySQL string literals allow both doubled quotes and backslash escapes
_TOKENIZE = re.compile(r"""
    (?P<string>'(?:[^'\\]|\\.|'')*'|"(?:[^"\\]|\\.|"")*")
    |(?P<ident>`(?:[^`]|``)*`)
    |(?P<comment>/\*.*?\*/|--[^\n]*|\#[^\n]*)
    |(?P<qmark>\?)
""", re.VERBOSE | re.DOTALL)

# text() treats :name as a bind parameter, so literal colons are escaped
_COLON_NAME = re.compile(r'(?<![:\w\\]):(?=\w)')

_PARAM_PREFIX = 'p'


# =============================================================================
# Core Functions
# =============================================================================

def tokenize_sql(sql: str) -> list[Token]:
    """Parse SQL into tokens in a single pass.

    Parameters
        sql: SQL query string

    Returns
        List of tokens preserving all SQL text
    """
    tokens = []
    last_end = 0

    for match in _TOKENIZE.finditer(sql):
        start, end = match.span()

        if start > last_end:
            tokens.append(Token(
                type=TokenType.SQL_TEXT,
                text=sql[last_end:start],
                start=last_end,
                end=start
            ))

        if match.group('string'):
            ttype = TokenType.STRING_LITERAL
        elif match.group('ident'):
            ttype = TokenType.IDENTIFIER
        elif match.group('comment'):
            ttype = TokenType.COMMENT
        else:
            ttype = TokenType.POSITIONAL_PH

        tokens.append(Token(type=ttype, text=match.group(0), start=start, end=end))
        last_end = end

    if last_end < len(sql):
        tokens.append(Token(
            type=TokenType.SQL_TEXT,
            text=sql[last_end:],
            start=last_end,
            end=len(sql)
        ))

    return tokens


def make_placeholders(count: int) -> str:
    """Comma separated list of `count` placeholders.

    >>> make_placeholders(3)
    '?, ?, ?'
    """
    return ', '.join(['?'] * count)


def quote_identifier(identifier: str) -> str:
    """Safely quote a MySQL identifier with backticks.

    >>> quote_identifier('user')
    '`user`'
    >>> quote_identifier('we`ird')
    '`we``ird`'
    """
    if not isinstance(identifier, str) or not identifier:
        raise CompileError(f'Invalid identifier: {identifier!r}')
    return '`' + identifier.replace('`', '``') + '`'


def _check_arity(sql: str, tokens: list[Token], values: Sequence[Any]) -> None:
    expected = sum(1 for t in tokens if t.type == TokenType.POSITIONAL_PH)
    if expected != len(values):
        raise CompileError(
            f'Statement has {expected} placeholders but {len(values)} values: {sql[:80]}')


def bind_params(sql: str, values: Sequence[Any] | None = None) -> tuple[sa.TextClause, dict[str, Any]]:
    """Turn a `?` statement into a SQLAlchemy text clause with named binds.

    The i-th placeholder becomes `:p{i}`. Values are never spliced into the
    text; the driver binds them.

    Parameters
        sql: SQL with positional `?` placeholders
        values: Positional values, one per placeholder

    Returns
        Tuple of (text clause, parameter dict)
    """
    values = list(values or [])
    tokens = tokenize_sql(sql)
    _check_arity(sql, tokens, values)

    result = []
    params: dict[str, Any] = {}
    index = 0
    for token in tokens:
        if token.type == TokenType.POSITIONAL_PH:
            name = f'{_PARAM_PREFIX}{index}'
            result.append(f':{name}')
            params[name] = values[index]
            index += 1
        else:
            result.append(_COLON_NAME.sub(r'\\:', token.text))
    return sa.text(''.join(result)), params


def format_sql(sql: str, values: Sequence[Any] | None = None, charset: str = 'utf8mb4') -> str:
    """Render a statement with its values inlined, for debug output only.

    Never execute the returned text; use `bind_params` for execution.
    """
    values = list(values or [])
    if not values:
        return sql
    result = []
    index = 0
    for token in tokenize_sql(sql):
        if token.type == TokenType.POSITIONAL_PH and index < len(values):
            result.append(escape_item(values[index], charset))
            index += 1
        else:
            result.append(token.text)
    return ''.join(result)
