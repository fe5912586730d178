"""Exceptions raised by schemalite.

Only declaration mistakes raise. Field validation failures are collected on
the model instance and hook failures travel through callbacks and futures.
"""


class SchemaliteError(Exception):
    """Base class for all schemalite errors."""


class SchemaError(SchemaliteError, TypeError):
    """Raised when a model type is declared without a name or fields."""


class FieldDefinitionError(SchemaError):
    """Raised when a field specification cannot be normalized."""

    def __init__(self, field_name: str, spec: object) -> None:
        self.field_name = field_name
        self.spec = spec
        super().__init__(
            f"Invalid definition for field '{field_name}': "
            f"expected a type name or an options mapping, got {type(spec).__name__}"
        )


class HookError(SchemaliteError):
    """Wraps a non-exception error value reported by an external hook."""

    def __init__(self, error: object) -> None:
        self.error = error
        super().__init__(str(error))
