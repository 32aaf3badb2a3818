"""
MariaDB-specific strategy implementation.

MariaDB (10.5+) speaks the MySQL protocol and supports INSERT ... RETURNING,
so generated keys come back as a result row.
"""
from sqlbridge.strategy.base import DialectStrategy, register_strategy


@register_strategy('mariadb')
class MariaDBStrategy(DialectStrategy):
    """MariaDB-specific statement details.
    """

    @property
    def dialect_name(self) -> str:
        return 'mariadb'

    @property
    def supports_returning(self) -> bool:
        return True
