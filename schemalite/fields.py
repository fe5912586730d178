import logging
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, List, Optional, Tuple

from .exceptions import FieldDefinitionError
from .types import DEFAULT_TYPE, canonical_tag, is_empty, resolve

logger = logging.getLogger(__name__)

Validator = Callable[[Any], Any]


# --- Canonical Field Descriptor ---
@dataclass(frozen=True)
class FieldSpec:
    """Normalized definition of a single model field."""

    type: str = DEFAULT_TYPE
    required: bool = False
    immutable: bool = False
    default: Any = None
    validate: Tuple[Validator, ...] = ()
    get: Optional[Callable[[Any], Any]] = None
    set: Optional[Callable[[Any, Any], None]] = None
    serialize: Optional[Callable[[Any], Any]] = None
    unserialize: Optional[Callable[[Any], Any]] = None

    def as_options(self) -> Dict[str, Any]:
        """Return a raw options mapping that normalizes back to this spec."""
        options = {f.name: getattr(self, f.name) for f in fields(self)}
        options["validate"] = list(self.validate)
        return options


def _validator_list(validate: Any) -> Tuple[Validator, ...]:
    if not validate:
        return ()
    if callable(validate):
        return (validate,)
    return tuple(validate)


def normalize(spec: Any, name: str = "<field>") -> FieldSpec:
    """Convert a type name or an options mapping into a FieldSpec.

    Falsy specs never reach this function: the caller drops such fields.
    """
    if isinstance(spec, FieldSpec):
        return spec
    if isinstance(spec, str):
        options: Mapping = {"type": spec}
    elif isinstance(spec, Mapping):
        options = spec
    else:
        raise FieldDefinitionError(name, spec)

    return FieldSpec(
        type=canonical_tag(options.get("type") or DEFAULT_TYPE),
        required=bool(options.get("required")),
        immutable=bool(options.get("immutable")),
        default=options.get("default"),
        validate=_validator_list(options.get("validate")),
        get=options.get("get"),
        set=options.get("set"),
        serialize=options.get("serialize"),
        unserialize=options.get("unserialize"),
    )


# --- Validation ---
def validator_name(validator: Validator) -> str:
    name = getattr(validator, "__name__", "")
    return "" if name == "<lambda>" else name


def run_validator(validator: Validator, value: Any) -> Optional[str]:
    """Run one validator, returning its failure message or None on success."""
    try:
        result = validator(value)
    except (ValueError, TypeError) as e:
        return str(e)
    if result is True:
        return None
    if isinstance(result, str):
        return result
    return "invalid " + validator_name(validator)


def validate_value(spec: FieldSpec, value: Any) -> List[str]:
    """Collect every failure message for assigning value to a field."""
    errors: List[str] = []

    if spec.serialize is not None:
        value = spec.serialize(value)

    # Empty values skip the type check; "required" reports them instead.
    predicate = resolve(spec.type).predicate
    if predicate is not None and not is_empty(value) and not predicate(value):
        errors.append(f"invalid {spec.type} value")

    if spec.required and is_empty(value):
        errors.append("is required")

    for validator in spec.validate:
        message = run_validator(validator, value)
        if message is not None:
            errors.append(message)

    return errors


# --- Field Binder ---
class Field:
    """Data descriptor enforcing a FieldSpec on model instances."""

    def __init__(self, name: str, spec: FieldSpec) -> None:
        self.name = name
        self.spec = spec

    def declared_on(self, instance: Any) -> bool:
        return self.name in type(instance)._fields

    def __get__(self, instance: Any, owner: Any = None) -> Any:
        if instance is None:
            return self
        if not self.declared_on(instance):
            try:
                return instance.__dict__[self.name]
            except KeyError:
                raise AttributeError(
                    f"'{type(instance).__name__}' object has no attribute '{self.name}'"
                ) from None
        spec = self.spec
        if spec.get is not None:
            return spec.get(instance)
        if spec.unserialize is not None:
            return spec.unserialize(instance.get_property(self.name))
        return instance.get_property(self.name)

    def __set__(self, instance: Any, value: Any) -> None:
        if not self.declared_on(instance):
            # Inherited descriptor for a field the subclass removed.
            instance.__dict__[self.name] = value
            return

        name, spec = self.name, self.spec

        if spec.immutable and name in instance._committed:
            logger.debug(
                "Ignoring write to immutable field '%s' of %s",
                name,
                instance.get_model_name(),
            )
            return

        errors = validate_value(spec, value)
        if errors:
            instance.set_field_errors(name, errors)
            return

        if spec.set is not None:
            spec.set(instance, value)
        elif spec.serialize is not None:
            instance.set_property(name, spec.serialize(value))
        else:
            instance.set_property(name, value)

        instance._committed.add(name)

    def __repr__(self) -> str:
        return f"Field({self.name!r}, type={self.spec.type!r})"


def bind_field(cls: Any, name: str, spec: FieldSpec) -> Field:
    field = Field(name, spec)
    setattr(cls, name, field)
    return field


def unbind_field(cls: Any, name: str) -> None:
    if isinstance(cls.__dict__.get(name), Field):
        delattr(cls, name)
