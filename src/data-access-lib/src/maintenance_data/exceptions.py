"""
maintenance_data.exceptions — Errors raised by the maintenance record access layer.
"""


class MaintenanceRecordError(Exception):
    """
    Raised when a maintenance record lookup fails inside DynamoDB.

    The message is always the same regardless of the underlying failure, so
    callers can map it to one stable response.  The original exception is
    chained as __cause__ for diagnostics.

    Attributes:
        table_name: Table the lookup ran against.
        key:        Key dict that was looked up.
    """

    DEFAULT_MESSAGE = "Error retrieving the maintenance record"

    def __init__(self, *, table_name: str, key: dict[str, str]) -> None:
        self.table_name = table_name
        self.key = key
        super().__init__(self.DEFAULT_MESSAGE)


class UnknownFieldError(ValueError):
    """Raised when an update names a field outside the updatable set."""

    def __init__(self, fields: list[str]) -> None:
        self.fields = fields
        super().__init__(f"Unsupported update field(s): {', '.join(fields)}")
