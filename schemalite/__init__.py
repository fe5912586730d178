"""
SchemaLite - declarative, validated and observable data models for Python

Declare a model type from a field mapping, create instances from plain
dicts, collect validation errors per field, listen to lifecycle events and
plug in your own persistence through save/remove/load/count hooks.

Example:
    from schemalite import Schema

    schema = Schema(save=lambda user, done: done(None))

    User = schema("User", {
        "username": {"type": "string", "required": True},
        "roles": {"type": "array", "default": ["user"]},
        "created_at": {"type": "date", "immutable": True},
    })

    user = User({"username": "alice"})
    user.on("change:username", print)
    user.username = "bob"
    user.save()
"""

__version__ = "1.0.0"
__author__ = "Your Name"
__email__ = "your.email@example.com"
__license__ = "MIT"

from .bridge import wrap
from .core import Model, ModelMeta, model_factory
from .events import EventEmitter
from .exceptions import FieldDefinitionError, HookError, SchemaError, SchemaliteError
from .fields import Field, FieldSpec, normalize, validate_value
from .schema import Schema, is_model
from .types import DEFAULT_TYPE, register_type, resolve

__all__ = [
    "Schema",
    "Model",
    "ModelMeta",
    "model_factory",
    "is_model",
    "Field",
    "FieldSpec",
    "normalize",
    "validate_value",
    "EventEmitter",
    "wrap",
    "DEFAULT_TYPE",
    "register_type",
    "resolve",
    "SchemaliteError",
    "SchemaError",
    "FieldDefinitionError",
    "HookError",
]
