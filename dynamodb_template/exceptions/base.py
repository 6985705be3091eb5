from typing import Any, Dict, Optional

# Context keys naming the table or item a failure concerns; rendered first
LOCATION_KEYS = ('table_name', 'resource_id', 'duplicate_key')


class DynamoDBTemplateError(Exception):
    """Root of every error raised by dynamodb_template.

    Attributes:
        message: Human-readable error message
        original_error: The boto3/botocore or pydantic exception behind this error, if any
        context: Structured details such as the table name, offending key or
            cancellation reasons. Keys whose value is None are dropped.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.original_error = original_error
        self.context = {key: value for key, value in (context or {}).items() if value is not None}
        super().__init__(message)

    def _ordered_context(self):
        located = [(key, self.context[key]) for key in LOCATION_KEYS if key in self.context]
        rest = [(key, value) for key, value in self.context.items() if key not in LOCATION_KEYS]
        return located + rest

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value!r}" for key, value in self._ordered_context())
        return f"{self.message} [{details}]"

    def __repr__(self) -> str:
        parts = [repr(self.message)]
        if self.context:
            parts.append(f"context={dict(self._ordered_context())!r}")
        if self.original_error is not None:
            parts.append(f"caused_by={type(self.original_error).__name__}")
        return f"{self.__class__.__name__}({', '.join(parts)})"
