"""
Driver-specific exception classes.
"""
import pymysql
import sqlalchemy as sa


class DatabaseError(Exception):
    """Base class for all sqlbridge errors.
    """


class CompileError(DatabaseError, ValueError):
    """Malformed or unsupported filter node or statement input.
    """


class ValidationError(DatabaseError):
    """Error in input validation.
    """


class ExecutionError(DatabaseError):
    """Driver, network or server reported fault.

    The driver exception is kept in `orig` and as `__cause__`.
    """

    def __init__(self, message: str, orig: BaseException | None = None) -> None:
        super().__init__(message)
        self.orig = orig


class IntegrityViolationError(ExecutionError):
    """Database constraint violation error.
    """


class ConnectionFailure(ExecutionError):
    """Error establishing or maintaining database connection.
    """


class StreamError(DatabaseError):
    """Base class for row stream failures.
    """

    def __init__(self, message: str, original: BaseException) -> None:
        super().__init__(message)
        self.original = original


class StreamHandlerError(StreamError):
    """The row handler raised while a stream was being consumed.
    """

    def __init__(self, message: str, original: BaseException, row=None) -> None:
        super().__init__(message, original)
        self.row = row


class StreamSourceError(StreamError):
    """The underlying row source failed.
    """


# PyMySQL reports most server-side statement errors as OperationalError,
# so only interface and pool errors count as connection failures.
DbConnectionError = (
    pymysql.err.InterfaceError,
    sa.exc.InterfaceError,
    sa.exc.DisconnectionError,
    sa.exc.TimeoutError,
    ConnectionFailure,
    )

IntegrityError = (
    pymysql.err.IntegrityError,
    sa.exc.IntegrityError,
    IntegrityViolationError,
    )


def wrap_driver_error(err: BaseException) -> ExecutionError:
    """Map a driver or SQLAlchemy exception onto the sqlbridge taxonomy.

    The message is the driver's own message, unchanged.
    """
    orig = getattr(err, 'orig', None) or err
    message = str(orig)
    if isinstance(err, IntegrityError) or isinstance(orig, IntegrityError):
        return IntegrityViolationError(message, orig)
    if (isinstance(err, DbConnectionError) or isinstance(orig, DbConnectionError)
            or getattr(err, 'connection_invalidated', False)):
        return ConnectionFailure(message, orig)
    return ExecutionError(message, orig)
