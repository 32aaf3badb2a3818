"""
Generic filter model.

A filter is an immutable tree. Leaves compare one field; internal nodes
combine children with AND / OR or negate a single child. `Everything` (or
`None`) is the empty filter and places no restriction on the rows.

Build trees with the helper functions::

    >>> from sqlbridge import filters as f
    >>> tree = f.and_(f.eq('surname', 'Smith'), f.or_(f.gt('age', 18), f.is_null('age')))

or parse the ORM's plain-data form with `filter_from_dict`.
"""
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Union

from sqlbridge.exceptions import CompileError

__all__ = [
    'GenericFilter',
    'Everything',
    'Comparison',
    'InSet',
    'NullCheck',
    'Pattern',
    'Range',
    'And',
    'Or',
    'Not',
    'COMPARISON_OPERATORS',
    'PATTERN_KINDS',
    'everything', 'eq', 'ne', 'lt', 'le', 'gt', 'ge', 'in_', 'not_in',
    'like', 'not_like', 'regex', 'starts_with', 'ends_with', 'contains',
    'is_null', 'is_not_null', 'exists', 'between', 'and_', 'or_', 'not_',
    'escape_like',
    'filter_from_dict',
]

COMPARISON_OPERATORS = frozenset({'=', '!=', '<', '<=', '>', '>='})
PATTERN_KINDS = frozenset({'like', 'not_like', 'regex'})


@dataclass(frozen=True, slots=True)
class Everything:
    """The empty filter: every row matches."""


@dataclass(frozen=True, slots=True)
class Comparison:
    field: str
    op: str
    value: Any


@dataclass(frozen=True, slots=True)
class InSet:
    field: str
    values: tuple
    negate: bool = False


@dataclass(frozen=True, slots=True)
class NullCheck:
    field: str
    is_null: bool = True


@dataclass(frozen=True, slots=True)
class Pattern:
    """LIKE or regular expression match.

    For `regex`, `pattern` may be a compiled `re.Pattern`; `re.IGNORECASE`
    then selects a case-insensitive match.
    """
    field: str
    pattern: Any
    kind: str = 'like'


@dataclass(frozen=True, slots=True)
class Range:
    """Inclusive range, `low <= field <= high`."""
    field: str
    low: Any
    high: Any


@dataclass(frozen=True, slots=True)
class And:
    children: tuple


@dataclass(frozen=True, slots=True)
class Or:
    children: tuple


@dataclass(frozen=True, slots=True)
class Not:
    child: Any


GenericFilter = Union[Everything, Comparison, InSet, NullCheck, Pattern,
                      Range, And, Or, Not]

LOGICAL_NODES = (And, Or)


# =============================================================================
# Builders
# =============================================================================

def everything() -> Everything:
    return Everything()


def eq(field: str, value: Any) -> Comparison:
    return Comparison(field, '=', value)


def ne(field: str, value: Any) -> Comparison:
    return Comparison(field, '!=', value)


def lt(field: str, value: Any) -> Comparison:
    return Comparison(field, '<', value)


def le(field: str, value: Any) -> Comparison:
    return Comparison(field, '<=', value)


def gt(field: str, value: Any) -> Comparison:
    return Comparison(field, '>', value)


def ge(field: str, value: Any) -> Comparison:
    return Comparison(field, '>=', value)


def _as_tuple(values: Any) -> tuple:
    if isinstance(values, (str, bytes, Mapping)) or not isinstance(values, Iterable):
        raise CompileError(f'IN operand must be a sequence of values, got {values!r}')
    return tuple(values)


def in_(field: str, values: Iterable[Any]) -> InSet:
    return InSet(field, _as_tuple(values))


def not_in(field: str, values: Iterable[Any]) -> InSet:
    return InSet(field, _as_tuple(values), negate=True)


def like(field: str, pattern: str) -> Pattern:
    return Pattern(field, pattern, 'like')


def not_like(field: str, pattern: str) -> Pattern:
    return Pattern(field, pattern, 'not_like')


def regex(field: str, pattern: 'str | re.Pattern') -> Pattern:
    return Pattern(field, pattern, 'regex')


def escape_like(text: str) -> str:
    r"""Escape LIKE wildcards so the text matches literally.

    >>> escape_like('50%_off')
    '50\\%\\_off'
    """
    return text.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def starts_with(field: str, prefix: str) -> Pattern:
    return like(field, escape_like(prefix) + '%')


def ends_with(field: str, suffix: str) -> Pattern:
    return like(field, '%' + escape_like(suffix))


def contains(field: str, text: str) -> Pattern:
    return like(field, '%' + escape_like(text) + '%')


def is_null(field: str) -> NullCheck:
    return NullCheck(field, True)


def is_not_null(field: str) -> NullCheck:
    return NullCheck(field, False)


def exists(field: str, present: bool = True) -> NullCheck:
    """Field has a value (`present=True`) or is NULL."""
    return NullCheck(field, not present)


def between(field: str, low: Any, high: Any) -> Range:
    return Range(field, low, high)


def and_(*children: Any) -> And:
    return And(tuple(children))


def or_(*children: Any) -> Or:
    return Or(tuple(children))


def not_(child: Any) -> Not:
    return Not(child)


# =============================================================================
# Plain-data form
# =============================================================================

_DICT_COMPARISONS = {
    'eq': '=', 'ne': '!=', 'lt': '<', 'lte': '<=', 'gt': '>', 'gte': '>=',
}


def _key(data: Mapping[str, Any]) -> str:
    key = data.get('key')
    if not isinstance(key, str) or not key:
        raise CompileError(f'Filter node is missing its key: {dict(data)!r}')
    return key


def filter_from_dict(data: Mapping[str, Any] | None) -> GenericFilter:
    """Build a filter tree from its plain-data form.

    Nodes are mappings with an ``operation`` entry::

        {'operation': 'and', 'children': [...]}
        {'operation': 'not', 'child': {...}}
        {'operation': 'eq', 'key': 'age', 'value': 30}
        {'operation': 'in', 'key': 'id', 'values': [1, 2]}
        {'operation': 'regex', 'key': 'name', 'value': '^A', 'ignoreCase': True}
        {'operation': 'exists', 'key': 'age', 'exists': False}
        {'operation': 'between', 'key': 'age', 'low': 1, 'high': 9}
        {'operation': 'true'}

    Raises
        CompileError: On unknown operations or malformed nodes
    """
    if data is None:
        return Everything()
    if not isinstance(data, Mapping):
        raise CompileError(f'Filter node must be a mapping, got {type(data).__name__}')

    operation = data.get('operation')
    if not isinstance(operation, str):
        raise CompileError(f'Filter node has no operation: {dict(data)!r}')
    operation = operation.lower()

    if operation in {'true', 'all', 'any'}:
        return Everything()

    if operation in {'and', 'or'}:
        children = data.get('children')
        if not isinstance(children, Sequence) or isinstance(children, (str, bytes)):
            raise CompileError(f"'{operation}' node requires a list of children")
        nodes = tuple(filter_from_dict(c) for c in children)
        return And(nodes) if operation == 'and' else Or(nodes)

    if operation == 'not':
        if 'child' not in data:
            raise CompileError("'not' node requires a child")
        return Not(filter_from_dict(data['child']))

    if operation in _DICT_COMPARISONS:
        return Comparison(_key(data), _DICT_COMPARISONS[operation], data.get('value'))

    if operation in {'in', 'nin'}:
        return InSet(_key(data), _as_tuple(data.get('values', ())), negate=operation == 'nin')

    if operation in {'like', 'notlike', 'not_like'}:
        kind = 'like' if operation == 'like' else 'not_like'
        return Pattern(_key(data), data.get('value'), kind)

    if operation == 'regex':
        pattern = data.get('value', data.get('regexp'))
        if isinstance(pattern, str) and data.get('ignoreCase', data.get('ignore_case')):
            pattern = re.compile(pattern, re.IGNORECASE)
        return Pattern(_key(data), pattern, 'regex')

    if operation == 'exists':
        return NullCheck(_key(data), is_null=not data.get('exists', True))

    if operation == 'between':
        return Range(_key(data), data.get('low'), data.get('high'))

    raise CompileError(f'Unknown filter operation: {operation!r}')
