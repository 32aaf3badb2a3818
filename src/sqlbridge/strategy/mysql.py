"""
MySQL-specific strategy implementation.

MySQL has no INSERT ... RETURNING; generated keys are read from the
driver's last insert id after the statement completes.
"""
from sqlbridge.strategy.base import DialectStrategy, register_strategy


@register_strategy('mysql')
class MySQLStrategy(DialectStrategy):
    """MySQL-specific statement details.
    """

    @property
    def dialect_name(self) -> str:
        return 'mysql'

    @property
    def supports_returning(self) -> bool:
        return False
