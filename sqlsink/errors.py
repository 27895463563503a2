class SqlSinkError(Exception):
    """Base exception for sqlsink errors."""


class ParameterBindingError(SqlSinkError):
    """A placeholder in the SQL template has no value in the parameter source."""

    def __init__(self, name: str, sql: str | None = None) -> None:
        self.name = name
        self.sql = sql
        message = f"No value supplied for the SQL parameter {name!r}"
        if sql is not None:
            message = f"{message} in statement: {sql}"
        super().__init__(message)
