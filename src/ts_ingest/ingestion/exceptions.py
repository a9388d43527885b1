"""
Custom exceptions for the ingestion module.

Provides specialized exception classes for handling the error conditions
met while parsing input files, resolving schema context and dispatching
batches to the remote store.
"""


class IngestionError(Exception):
    """
    Base exception for all ingestion-related errors.

    All other ingestion exceptions inherit from this class,
    allowing for broad exception catching when needed.
    """

    pass


class ParseError(IngestionError):
    """
    Raised when an input unit cannot be parsed.

    Used for malformed line protocol, invalid bracket usage, non-numeric
    timestamps and undecodable CSV/JSON records.

    Attributes:
        line_number: The line number where parsing failed (optional)
        line_content: The content of the problematic line (optional)
        message: Detailed error message
    """

    def __init__(
        self,
        message: str,
        line_number: int | None = None,
        line_content: str | None = None,
    ):
        self.line_number = line_number
        self.line_content = line_content
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with line context."""
        if self.line_number is not None and self.line_content:
            # Truncate long lines for readability
            content = (
                self.line_content[:100] + "..."
                if len(self.line_content) > 100
                else self.line_content
            )
            return f"{self.message} (line {self.line_number}: {content!r})"
        elif self.line_number is not None:
            return f"{self.message} (line {self.line_number})"
        elif self.line_content:
            return f"{self.message} ({self.line_content[:100]!r})"
        return self.message


class ConfigurationError(IngestionError):
    """
    Raised when the import configuration or schema context is invalid.

    Attributes:
        message: Detailed error message
        name: The offending tag/field/column name (optional)
    """

    def __init__(self, message: str, name: str | None = None):
        self.message = message
        self.name = name
        super().__init__(message)


class HeaderError(ConfigurationError):
    """
    Raised when a structured header cannot be mapped to the configuration.

    A configured tag or field missing from the header, a name claimed as
    both tag and field, or a missing time column. Header errors are fatal
    for the whole import since no schema is available to proceed with.
    """

    pass


class DatabaseRequiredError(ConfigurationError):
    """Raised when a data unit is enqueued before a database is known."""

    DEFAULT_MESSAGE = (
        "database is required, make sure `# CONTEXT-DATABASE:` token is exist"
    )

    def __init__(self, message: str | None = None):
        super().__init__(message or self.DEFAULT_MESSAGE)


class FormatNotFoundError(IngestionError):
    """
    Raised when an import format is not registered.

    Attributes:
        format_name: The name of the missing format
        available_formats: List of registered format names
    """

    def __init__(
        self,
        format_name: str,
        available_formats: list[str] | None = None,
    ):
        self.format_name = format_name
        self.available_formats = available_formats or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with available formats."""
        if self.available_formats:
            available = ", ".join(sorted(self.available_formats))
            return (
                f"Unknown format: '{self.format_name}'. "
                f"Available formats: {available}"
            )
        return f"Unknown format: '{self.format_name}'. No formats registered."


class TransportError(IngestionError):
    """
    Raised when a request to the remote store fails.

    Attributes:
        message: Detailed error message
        status_code: HTTP status code if the failure came from a response
        body: Response body excerpt (optional)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.body = body
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with response context."""
        parts = [self.message]
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        if self.body:
            parts.append(f"body: {self.body[:200]}")
        return " - ".join(parts)


class WriteResponseError(TransportError):
    """
    Raised when a column write is answered with a non-success code.

    Attributes:
        code: Response code returned by the write service
    """

    def __init__(self, code: int, message: str):
        self.code = code
        super().__init__(message)


class ImportCancelledError(TransportError):
    """Raised when the import is cancelled or its deadline passes."""

    def __init__(self, message: str = "import cancelled"):
        super().__init__(message)


class DrainError(IngestionError):
    """
    Raised once at end of input when the forced drain had failures.

    Attributes:
        errors: Every error raised by the individual drain rounds
    """

    def __init__(self, errors: list[Exception]):
        self.errors = list(errors)
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Join all causes, one per line."""
        causes = "\n".join(str(e) for e in self.errors)
        return f"{len(self.errors)} error(s) while draining buffers:\n{causes}"
