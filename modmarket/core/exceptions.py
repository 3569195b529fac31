from sqlalchemy.exc import IntegrityError


class UnsupportedOperatorError(Exception):
    """Exception raised when a condition uses an operator the SQL translator does not know."""

    def __init__(self, operator: str):
        self.operator = operator
        super().__init__(f"Unsupported operator: {operator}")


class QueryValidationError(Exception):
    """
    Exception raised when a complex query fails validation before execution.

    The individual problems are kept on `errors` so they can be returned to the client.
    """

    def __init__(self, errors: list[str], message: str = "Query validation failed"):
        self.message = message
        self.errors = errors
        super().__init__(self.message)

    def __str__(self):
        return f"{self.message}: {', '.join(self.errors)}"


class QueryExecutionError(Exception):
    """Exception raised when the database fails to run a translated query."""

    def __init__(self, message: str = "Query execution failed"):
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        return f"{self.message}"


def registered_exceptions() -> dict:
    """Returns a dictionary of registered exceptions and their default messages."""
    return {
        QueryValidationError: "The search query is invalid",
        QueryExecutionError: "The search could not be completed",
        UnsupportedOperatorError: "The search query uses an unsupported operator",
        IntegrityError: "Database integrity error",
    }
