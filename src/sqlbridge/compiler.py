"""
Compile generic filters into MySQL boolean expressions.

`compile_filter(filter, name_to_sql)` walks the filter tree once, left to
right, and returns a `CompiledCondition`: the expression text with `?`
placeholders and the values to bind, in placeholder order.

Rules:
- field names pass through `name_to_sql` and are backtick quoted
- operand values are always bound, never written into the text
- children of AND / OR that are themselves AND / OR are parenthesized
- the empty filter compiles to an empty query; callers omit WHERE
- `IN` over an empty set is always false, `NOT IN` over an empty set always true
"""
import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlbridge.exceptions import CompileError
from sqlbridge.filters import COMPARISON_OPERATORS, LOGICAL_NODES, And
from sqlbridge.filters import Comparison, Everything, InSet, Not, NullCheck
from sqlbridge.filters import Or, Pattern, Range, filter_from_dict
from sqlbridge.sql import make_placeholders, quote_identifier
from sqlbridge.types import TypeConverter, is_scalar

__all__ = ['CompiledCondition', 'compile_filter', 'ALWAYS_FALSE', 'ALWAYS_TRUE']

logger = logging.getLogger(__name__)

ALWAYS_FALSE = 'FALSE'
ALWAYS_TRUE = 'TRUE'


def _identity(name: str) -> str:
    return name


@dataclass(frozen=True, slots=True)
class CompiledCondition:
    """Boolean SQL expression with its bound values.

    `query` holds exactly `len(values)` placeholders, in binding order.
    """
    query: str = ''
    values: list[Any] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.query


_EMPTY = CompiledCondition()


def compile_filter(filter: Any, name_to_sql: Callable[[str], str] | None = None) -> CompiledCondition:
    """Compile a filter tree into `(query, values)`.

    Parameters
        filter: A filter node, its plain-data mapping form, or None
        name_to_sql: Field name conversion applied before quoting

    Returns
        CompiledCondition; empty for a filter without restriction

    Raises
        CompileError: On unknown nodes, operators or malformed operands
    """
    if filter is None:
        return _EMPTY
    if isinstance(filter, Mapping):
        filter = filter_from_dict(filter)
    return _compile_node(filter, name_to_sql or _identity)


def _column(name: Any, name_to_sql: Callable[[str], str]) -> str:
    if not isinstance(name, str) or not name:
        raise CompileError(f'Invalid field name in filter: {name!r}')
    return quote_identifier(name_to_sql(name))


def _bind(value: Any, node: Any) -> Any:
    if not is_scalar(value):
        raise CompileError(f'Unsupported operand {value!r} in {type(node).__name__} node')
    return TypeConverter.convert_value(value)


def _compile_node(node: Any, name_to_sql: Callable[[str], str]) -> CompiledCondition:
    if isinstance(node, Everything):
        return _EMPTY

    if isinstance(node, Comparison):
        if node.op not in COMPARISON_OPERATORS:
            raise CompileError(f'Unknown comparison operator: {node.op!r}')
        col = _column(node.field, name_to_sql)
        return CompiledCondition(f'{col} {node.op} ?', [_bind(node.value, node)])

    if isinstance(node, InSet):
        return _compile_in(node, name_to_sql)

    if isinstance(node, NullCheck):
        col = _column(node.field, name_to_sql)
        return CompiledCondition(f'{col} IS NULL' if node.is_null else f'{col} IS NOT NULL')

    if isinstance(node, Pattern):
        return _compile_pattern(node, name_to_sql)

    if isinstance(node, Range):
        col = _column(node.field, name_to_sql)
        return CompiledCondition(f'{col} BETWEEN ? AND ?',
                                 [_bind(node.low, node), _bind(node.high, node)])

    if isinstance(node, (And, Or)):
        return _compile_logical(node, name_to_sql)

    if isinstance(node, Not):
        child = node.child
        if isinstance(child, Mapping):
            child = filter_from_dict(child)
        inner = _compile_node(child, name_to_sql)
        if inner.is_empty:
            return CompiledCondition(ALWAYS_FALSE)
        return CompiledCondition(f'NOT ({inner.query})', list(inner.values))

    raise CompileError(f'Unsupported filter node: {node!r}')


def _compile_in(node: InSet, name_to_sql: Callable[[str], str]) -> CompiledCondition:
    if isinstance(node.values, (str, bytes)) or not isinstance(node.values, (tuple, list)):
        raise CompileError(f'IN operand must be a sequence, got {node.values!r}')
    col = _column(node.field, name_to_sql)
    if not node.values:
        return CompiledCondition(ALWAYS_TRUE if node.negate else ALWAYS_FALSE)
    values = [_bind(v, node) for v in node.values]
    keyword = 'NOT IN' if node.negate else 'IN'
    return CompiledCondition(f'{col} {keyword} ({make_placeholders(len(values))})', values)


def _compile_pattern(node: Pattern, name_to_sql: Callable[[str], str]) -> CompiledCondition:
    col = _column(node.field, name_to_sql)
    if node.kind == 'regex':
        pattern = node.pattern
        if isinstance(pattern, re.Pattern):
            if pattern.flags & re.IGNORECASE:
                return CompiledCondition(f"REGEXP_LIKE({col}, ?, 'i')", [pattern.pattern])
            pattern = pattern.pattern
        if not isinstance(pattern, str):
            raise CompileError(f'Regular expression must be a string, got {pattern!r}')
        return CompiledCondition(f'{col} REGEXP ?', [pattern])

    if node.kind not in {'like', 'not_like'}:
        raise CompileError(f'Unknown pattern kind: {node.kind!r}')
    if not isinstance(node.pattern, str):
        raise CompileError(f'LIKE pattern must be a string, got {node.pattern!r}')
    keyword = 'LIKE' if node.kind == 'like' else 'NOT LIKE'
    return CompiledCondition(f'{col} {keyword} ?', [node.pattern])


def _compile_logical(node: And | Or, name_to_sql: Callable[[str], str]) -> CompiledCondition:
    children = node.children
    if isinstance(children, (str, bytes, Mapping)) or not isinstance(children, (tuple, list)):
        raise CompileError(f'{type(node).__name__} children must be a sequence')
    if not children:
        return _EMPTY if isinstance(node, And) else CompiledCondition(ALWAYS_FALSE)

    parts = []
    values: list[Any] = []
    unrestricted = False
    for child in children:
        if isinstance(child, Mapping):
            child = filter_from_dict(child)
        compiled = _compile_node(child, name_to_sql)
        if compiled.is_empty:
            unrestricted = True
            continue
        if isinstance(child, LOGICAL_NODES):
            parts.append(f'({compiled.query})')
        else:
            parts.append(compiled.query)
        values.extend(compiled.values)

    # an unrestricted branch makes the whole disjunction unrestricted
    if not parts or (unrestricted and isinstance(node, Or)):
        return _EMPTY
    joiner = ' AND ' if isinstance(node, And) else ' OR '
    return CompiledCondition(joiner.join(parts), values)
