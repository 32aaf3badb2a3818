"""
MySQL / MariaDB data source driver for an ORM.

Generic filters compile to parameterized WHERE clauses, driver operations
build one statement each and results come back with ORM field names:

- Driver: connect(options) -> MySQLDriver
- Filters: eq, in_, and_, ... or their plain-data form via filter_from_dict
- Streaming: MySQLDriver.find_stream hands rows to a handler one at a time
"""
__version__ = '0.1.0'

from sqlbridge.compiler import CompiledCondition, compile_filter
from sqlbridge.driver import MySQLDriver, connect
from sqlbridge.exceptions import CompileError, ConnectionFailure, DatabaseError
from sqlbridge.exceptions import DbConnectionError, ExecutionError
from sqlbridge.exceptions import IntegrityError, IntegrityViolationError
from sqlbridge.exceptions import StreamError, StreamHandlerError
from sqlbridge.exceptions import StreamSourceError, ValidationError
from sqlbridge.filters import And, Comparison, Everything, InSet, Not
from sqlbridge.filters import NullCheck, Or, Pattern, Range, and_, between
from sqlbridge.filters import contains, ends_with, eq, everything, exists
from sqlbridge.filters import filter_from_dict, ge, gt, in_, is_not_null
from sqlbridge.filters import is_null, le, like, lt, ne, not_, not_in
from sqlbridge.filters import not_like, or_, regex, starts_with
from sqlbridge.naming import CaseConversion, CustomConversion
from sqlbridge.naming import IdentityConversion, NameConversion
from sqlbridge.options import MySQLOptions
from sqlbridge.stream import RowStream, StreamState
from sqlbridge.types import ExtraFindOptions, InsertResult, QueryResult

__all__ = [
    'connect',
    'MySQLDriver',
    'MySQLOptions',
    'compile_filter',
    'CompiledCondition',
    'filter_from_dict',
    'Everything',
    'Comparison',
    'InSet',
    'NullCheck',
    'Pattern',
    'Range',
    'And',
    'Or',
    'Not',
    'everything',
    'eq',
    'ne',
    'lt',
    'le',
    'gt',
    'ge',
    'in_',
    'not_in',
    'like',
    'not_like',
    'regex',
    'starts_with',
    'ends_with',
    'contains',
    'is_null',
    'is_not_null',
    'exists',
    'between',
    'and_',
    'or_',
    'not_',
    'NameConversion',
    'IdentityConversion',
    'CaseConversion',
    'CustomConversion',
    'RowStream',
    'StreamState',
    'ExtraFindOptions',
    'InsertResult',
    'QueryResult',
    'DatabaseError',
    'CompileError',
    'ValidationError',
    'ExecutionError',
    'IntegrityViolationError',
    'ConnectionFailure',
    'StreamError',
    'StreamHandlerError',
    'StreamSourceError',
    'DbConnectionError',
    'IntegrityError',
]
