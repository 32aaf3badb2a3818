"""
Statement assembly for the driver operations.

Every builder returns a `StatementSpec` (SQL with `?` placeholders and the
positional values) or None when the operation is a no-op. Identifier
positions are quoted; column names pass through the identifier converter,
table and index names are used as given. Values always go to placeholders;
only LIMIT / OFFSET counts, which are validated non-negative integers, are
written into the text.
"""
import logging
from collections.abc import Iterable, Mapping, Sequence
from numbers import Number
from typing import Any

from sqlbridge.compiler import CompiledCondition, compile_filter
from sqlbridge.exceptions import CompileError, ValidationError
from sqlbridge.naming import NameConversion
from sqlbridge.sql import make_placeholders
from sqlbridge.strategy import DialectStrategy
from sqlbridge.types import ExtraFindOptions, StatementSpec, TypeConverter

__all__ = ['StatementBuilder', 'sanitize_count']

logger = logging.getLogger(__name__)


def sanitize_count(value: Any, name: str) -> int | None:
    """Validate a LIMIT / OFFSET count.

    None and negative numbers mean "no clause". Anything that is not an
    integer raises CompileError, so only integers ever reach the SQL text.
    """
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise CompileError(f'{name} must be an integer, got {value!r}')
    if value < 0:
        return None
    return int(value)


class StatementBuilder:
    """Builds parameterized statements for one data source.
    """

    def __init__(self, naming: NameConversion, strategy: DialectStrategy) -> None:
        self.naming = naming
        self.strategy = strategy

    def column(self, name: str) -> str:
        """Quoted storage name for an ORM field."""
        if not isinstance(name, str) or not name:
            raise CompileError(f'Invalid field name: {name!r}')
        return self.strategy.quote_identifier(self.naming.to_sql(name))

    def table(self, name: str) -> str:
        return self.strategy.quote_identifier(name)

    def condition(self, filter: Any) -> CompiledCondition:
        return compile_filter(filter, self.naming.to_sql)

    def _with_where(self, sql: str, values: list[Any], filter: Any) -> str:
        cond = self.condition(filter)
        if cond.query:
            sql += f' WHERE {cond.query}'
            values.extend(cond.values)
        return sql

    def _index_hint(self, sql: str, extra: ExtraFindOptions | Mapping | None) -> str:
        extra = ExtraFindOptions.coerce(extra)
        if extra is not None and extra.use_index:
            sql += f' {self.strategy.index_hint(extra.use_index)}'
        return sql

    def _set_list(self, updated: Mapping[str, Any], values: list[Any]) -> str:
        assignments = []
        for key, value in updated.items():
            assignments.append(f'{self.column(key)} = ?')
            values.append(TypeConverter.convert_value(value))
        return ', '.join(assignments)

    def find_by_key(self, table: str, key_name: str, key_value: Any) -> StatementSpec:
        sql = f'SELECT * FROM {self.table(table)} WHERE {self.column(key_name)} = ?'
        return StatementSpec(sql, [TypeConverter.convert_value(key_value)])

    def select(self, table: str, filter: Any = None, sort_by: str | None = None,
               sort_dir: str | None = None, skip: int | None = None,
               limit: int | None = None, projection: Iterable[str] | None = None,
               extra: ExtraFindOptions | Mapping | None = None) -> StatementSpec:
        """SELECT with projection, index hint, filter, sort and pagination.

        Args:
            table: Table name
            filter: Filter tree, its mapping form, or None for all rows
            sort_by: Field to sort by, None for the server's default order
            sort_dir: 'desc' for descending, anything else ascending
            skip: Rows to skip, None or negative for no OFFSET
            limit: Maximum rows, None or negative for no LIMIT
            projection: Fields to fetch in order, None for all
            extra: Index hint options
        """
        limit = sanitize_count(limit, 'limit')
        skip = sanitize_count(skip, 'skip')
        values: list[Any] = []

        if projection is not None:
            if isinstance(projection, str):
                raise CompileError('projection must be a collection of field names')
            fields = [self.column(f) for f in projection]
            if not fields:
                raise CompileError('projection must name at least one field')
            sql = f'SELECT {", ".join(fields)}'
        else:
            sql = 'SELECT *'

        sql += f' FROM {self.table(table)}'
        sql = self._index_hint(sql, extra)
        sql = self._with_where(sql, values, filter)

        if sort_by:
            direction = 'DESC' if str(sort_dir).lower() == 'desc' else 'ASC'
            sql += f' ORDER BY {self.column(sort_by)} {direction}'

        pagination = self.strategy.pagination_clause(limit, skip)
        if pagination:
            sql += f' {pagination}'

        return StatementSpec(sql, values)

    def count(self, table: str, filter: Any = None,
              extra: ExtraFindOptions | Mapping | None = None) -> StatementSpec:
        values: list[Any] = []
        sql = f'SELECT COUNT(*) AS `count` FROM {self.table(table)}'
        sql = self._index_hint(sql, extra)
        sql = self._with_where(sql, values, filter)
        return StatementSpec(sql, values)

    def insert(self, table: str, row: Mapping[str, Any],
               key: str | None = None) -> tuple[StatementSpec, bool]:
        """INSERT a single row.

        A key field that is missing or None is left out so the server can
        generate it; the second element of the result tells whether a
        generated key was requested.
        """
        generate = bool(key) and row.get(key) is None
        columns = []
        values: list[Any] = []
        for name, value in row.items():
            if generate and name == key:
                continue
            columns.append(self.column(name))
            values.append(TypeConverter.convert_value(value))

        sql = (f'INSERT INTO {self.table(table)} ({", ".join(columns)}) '
               f'VALUES ({make_placeholders(len(values))})')

        if generate:
            returning = self.strategy.returning_clause(self.naming.to_sql(key))
            if returning:
                sql += f' {returning}'

        return StatementSpec(sql, values), generate

    def batch_insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> StatementSpec | None:
        """Multi-row INSERT using the first row's fields as the column set.

        Raises
            ValidationError: If a row's fields differ from the first row's
        """
        if not rows:
            return None

        names = list(rows[0].keys())
        expected = set(names)
        if not names:
            raise ValidationError('Cannot batch insert rows without fields')

        values: list[Any] = []
        groups = []
        row_placeholders = f'({make_placeholders(len(names))})'
        for index, row in enumerate(rows):
            if set(row.keys()) != expected:
                missing = sorted(expected - set(row.keys()))
                extra = sorted(set(row.keys()) - expected)
                raise ValidationError(
                    f'Row {index} fields differ from the first row (missing: {missing}, extra: {extra})')
            values.extend(TypeConverter.convert_value(row[name]) for name in names)
            groups.append(row_placeholders)

        columns = ', '.join(self.column(name) for name in names)
        sql = f'INSERT INTO {self.table(table)} ({columns}) VALUES {", ".join(groups)}'
        return StatementSpec(sql, values)

    def update(self, table: str, key_name: str, key_value: Any,
               updated: Mapping[str, Any]) -> StatementSpec | None:
        if not updated:
            return None
        values: list[Any] = []
        sql = f'UPDATE {self.table(table)} SET {self._set_list(updated, values)}'
        sql += f' WHERE {self.column(key_name)} = ?'
        values.append(TypeConverter.convert_value(key_value))
        return StatementSpec(sql, values)

    def update_many(self, table: str, filter: Any,
                    updated: Mapping[str, Any]) -> StatementSpec | None:
        if not updated:
            return None
        values: list[Any] = []
        sql = f'UPDATE {self.table(table)} SET {self._set_list(updated, values)}'
        sql = self._with_where(sql, values, filter)
        return StatementSpec(sql, values)

    def delete(self, table: str, key_name: str, key_value: Any) -> StatementSpec:
        sql = f'DELETE FROM {self.table(table)} WHERE {self.column(key_name)} = ?'
        return StatementSpec(sql, [TypeConverter.convert_value(key_value)])

    def delete_many(self, table: str, filter: Any = None) -> StatementSpec:
        values: list[Any] = []
        sql = self._with_where(f'DELETE FROM {self.table(table)}', values, filter)
        return StatementSpec(sql, values)

    def sum(self, table: str, filter: Any, field: str) -> StatementSpec:
        col = self.column(field)
        values: list[Any] = []
        sql = self._with_where(f'SELECT SUM({col}) AS {col} FROM {self.table(table)}',
                               values, filter)
        return StatementSpec(sql, values)

    def increment(self, table: str, key_name: str, key_value: Any, field: str,
                  amount: Number) -> StatementSpec:
        if isinstance(amount, bool) or not isinstance(amount, Number):
            raise CompileError(f'increment amount must be a number, got {amount!r}')
        col = self.column(field)
        sql = (f'UPDATE {self.table(table)} SET {col} = {col} + ? '
               f'WHERE {self.column(key_name)} = ?')
        return StatementSpec(sql, [amount, TypeConverter.convert_value(key_value)])
