import asyncio
import datetime
import functools
import json
import logging
from collections.abc import Mapping
from concurrent.futures import Future
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Set

from .bridge import Callback, wrap
from .events import EmitterAccessor, EventEmitter
from .exceptions import SchemaError
from .fields import FieldSpec, bind_field, normalize, unbind_field

logger = logging.getLogger(__name__)


# --- Helpers ---
def extension_items(extension: Any) -> Dict[str, Any]:
    """Turn an ``extend`` option (mapping or (name, value) pair) into a dict."""
    if not extension:
        return {}
    if isinstance(extension, Mapping):
        return dict(extension)
    if isinstance(extension, tuple) and len(extension) == 2:
        return {extension[0]: extension[1]}
    raise SchemaError(
        f"extend expects a mapping or a (name, value) pair, got {type(extension).__name__}"
    )


def _extension_method(func: Callable[..., Any]) -> Callable[..., Any]:
    @functools.wraps(func)
    def method(self: Any, *args: Any, **kwargs: Any) -> Any:
        return func(self, *args, **kwargs)

    return method


def _json_default(value: Any) -> Any:
    if isinstance(value, Model):
        return value.to_json()
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _reserved_names() -> Set[str]:
    return set(dir(Model)) | {n for n in vars(ModelMeta) if not n.startswith("_")}


# --- Metaclass ---
class ModelMeta(type):
    """Metaclass that normalizes ``__fields__`` and binds them on the class.

    The class itself is the shared accessor template: every field is a data
    descriptor on it, so ``add_field``/``remove_field``/``extend`` are seen
    by existing instances too.
    """

    _fields: Dict[str, FieldSpec]
    _options: Dict[str, Any]
    _model_name: str
    _type_events: EventEmitter

    def __new__(mcls, name: str, bases: tuple, namespace: dict) -> Any:
        raw_fields = namespace.pop("__fields__", None)
        options = namespace.pop("__options__", None)

        if raw_fields is not None and not isinstance(raw_fields, Mapping):
            raise SchemaError(
                f"fields for model '{name}' must be a mapping, got {type(raw_fields).__name__}"
            )

        fields: Dict[str, FieldSpec] = {}
        inherited_options: Dict[str, Any] = {}
        for base in bases:
            if isinstance(base, ModelMeta):
                fields.update(base._fields)
                inherited_options.update(base._options)

        for field_name, spec in (raw_fields or {}).items():
            if not spec:
                if field_name in fields:
                    raise SchemaError(
                        f"Model '{name}' cannot drop inherited field '{field_name}'"
                    )
                continue
            fields[field_name] = normalize(spec, field_name)

        namespace["_fields"] = fields
        namespace["_options"] = {**inherited_options, **(options or {})}
        namespace["_model_name"] = name

        cls = super().__new__(mcls, name, bases, namespace)
        cls._type_events = EventEmitter()

        for field_name, spec in fields.items():
            mcls._check_field_name(name, field_name)
            bind_field(cls, field_name, spec)

        extension = cls._options.get("extend")
        if extension:
            cls.extend(extension)

        if fields:
            logger.debug("Declared model %s with fields %s", name, list(fields))
        return cls

    @staticmethod
    def _check_field_name(model_name: str, field_name: str) -> None:
        if not isinstance(field_name, str) or not field_name.isidentifier():
            raise SchemaError(f"Invalid field name {field_name!r} for model '{model_name}'")
        if field_name.startswith("_") or field_name in _reserved_names():
            raise SchemaError(
                f"Field name '{field_name}' of model '{model_name}' is reserved"
            )

    def add_field(cls, name: str, spec: Any) -> FieldSpec:
        """Declare a new field; existing instances see it immediately."""
        ModelMeta._check_field_name(cls._model_name, name)
        field_spec = normalize(spec, name)
        previous = cls._fields.get(name)
        cls._fields[name] = field_spec
        bind_field(cls, name, field_spec)

        # Subclasses copied their fields at declaration time.
        for sub in cls._descendants():
            if name not in sub._fields or sub._fields[name] is previous:
                sub._fields[name] = field_spec
                unbind_field(sub, name)
        return field_spec

    def remove_field(cls, name: str) -> None:
        spec = cls._fields.pop(name, None)
        unbind_field(cls, name)
        if spec is None:
            return
        for sub in cls._descendants():
            if sub._fields.get(name) is spec:
                del sub._fields[name]
                unbind_field(sub, name)

    def _descendants(cls) -> List["ModelMeta"]:
        found = []
        for sub in cls.__subclasses__():
            found.append(sub)
            found.extend(sub._descendants())
        return found

    def extend(cls, name: Any, value: Any = None) -> None:
        """Attach methods or plain values to every instance.

        Callables are invoked with the instance as first argument. Pass a
        mapping (or a (name, value) pair) to extend several at once.
        """
        if not name:
            return
        if not isinstance(name, str):
            for key, item in extension_items(name).items():
                cls.extend(key, item)
            return
        if name in cls._fields:
            raise SchemaError(
                f"Cannot extend model '{cls._model_name}': '{name}' is a field"
            )
        if callable(value) and not isinstance(value, type):
            setattr(cls, name, _extension_method(value))
        else:
            setattr(cls, name, value)

    def load(cls, query: Any, callback: Optional[Callback] = None) -> Future:
        run = wrap(
            cls._options.get("load"), (query,), label=f"{cls._model_name}.load"
        )
        return run(callback)

    def count(cls, query: Any, callback: Optional[Callback] = None) -> Future:
        run = wrap(
            cls._options.get("count"), (query,), label=f"{cls._model_name}.count"
        )
        return run(callback)


# --- Main Model Class ---
class Model(metaclass=ModelMeta):
    """Base class of every model type.

    Instances keep raw field values in a private property store and record
    validation failures per field instead of raising.
    """

    saved: bool = False

    on = EmitterAccessor("on")
    once = EmitterAccessor("once")
    off = EmitterAccessor("off")
    emit = EmitterAccessor("emit")
    listeners = EmitterAccessor("listeners")

    def __init__(self, data: Optional[Mapping] = None, **kwargs: Any) -> None:
        """Create an instance from initial data, then apply field defaults."""
        self._properties: Dict[str, Any] = {}
        self._errors: Dict[str, List[str]] = {}
        self._committed: Set[str] = set()
        self._events = EventEmitter()
        self.saved = False

        to_json_factory = self._options.get("to_json")
        if to_json_factory is not None:
            self.to_json = to_json_factory(self)

        self.set_properties({**(data or {}), **kwargs})

        for name, spec in list(self._fields.items()):
            if spec.default is not None and getattr(self, name) is None:
                default = spec.default
                setattr(self, name, default() if callable(default) else default)

        type(self).emit("create", self)

    # --- Model Type Access ---
    @classmethod
    def get_model_name(cls) -> str:
        return cls._model_name

    @classmethod
    def get_fields(cls) -> Dict[str, FieldSpec]:
        return cls._fields

    @classmethod
    def get_options(cls) -> Dict[str, Any]:
        return cls._options

    def get_model_class(self) -> type:
        return type(self)

    # --- Raw Property Store ---
    def get_property(self, name: str) -> Any:
        """Return the raw stored value, bypassing getters."""
        return self._properties.get(name)

    def set_property(self, name: str, value: Any) -> None:
        """Store a raw value, bypassing setters and validation.

        This is the only place change events are emitted from.
        """
        if name not in self._fields:
            raise AttributeError(
                f"'{self._model_name}' has no field '{name}'. "
                f"Valid fields are: {', '.join(self._fields)}."
            )
        self._properties[name] = value

        cls = type(self)
        self.emit(f"change:{name}", value)
        cls.emit(f"change:{name}", self, value)
        self.emit("change", name, value)
        cls.emit("change", self, name, value)

    def get_properties(self) -> Dict[str, Any]:
        return dict(self._properties)

    def set_properties(self, data: Optional[Mapping]) -> None:
        """Assign every declared field found in data; other keys are dropped."""
        for name, value in (data or {}).items():
            if name in self._fields:
                setattr(self, name, value)
            else:
                logger.debug("Dropping unknown field '%s' for %s", name, self._model_name)

    # --- Generic Access ---
    def get(self, name: Optional[str] = None) -> Any:
        if name is None:
            return {field: getattr(self, field) for field in self._fields}
        if name not in self._fields:
            return None
        return getattr(self, name)

    def set(self, name: Any, value: Any = None) -> None:
        if isinstance(name, Mapping):
            self.set_properties(name)
        elif name in self._fields:
            setattr(self, name, value)

    # --- Errors ---
    def set_field_errors(self, name: str, errors: List[str]) -> None:
        if errors:
            self._errors[name] = list(errors)
        else:
            self._errors.pop(name, None)

    def get_field_errors(self, name: str) -> List[str]:
        return list(self._errors.get(name, ()))

    def get_errors(self) -> Dict[str, List[str]]:
        return {name: list(errors) for name, errors in self._errors.items()}

    def has_errors(self) -> bool:
        return any(self._errors.values())

    def is_valid(self) -> bool:
        return not self.has_errors()

    def clear_errors(self, name: Optional[str] = None) -> None:
        if name is None:
            self._errors.clear()
        else:
            self._errors.pop(name, None)

    def is_new(self) -> bool:
        return not self.saved

    # --- Lifecycle ---
    def save(self, callback: Optional[Callback] = None) -> Optional[Future]:
        """Persist through the ``save`` hook.

        Does nothing and returns None while any field has errors.
        """
        if self.has_errors():
            logger.warning(
                "Not saving %s: invalid fields %s",
                self._model_name,
                ", ".join(self._errors),
            )
            return None

        cls = type(self)

        def before() -> None:
            cls.emit("beforeSave", self)
            self.emit("beforeSave")

        def after(error: Any) -> None:
            if error is None:
                self.saved = True
            cls.emit("save", self, error)
            self.emit("save", error)

        run = wrap(
            self._options.get("save"),
            (self,),
            before,
            after,
            label=f"{self._model_name}.save",
        )
        return run(callback)

    def remove(self, callback: Optional[Callback] = None) -> Future:
        """Delete through the ``remove`` hook."""
        cls = type(self)

        def before() -> None:
            cls.emit("beforeRemove", self)
            self.emit("beforeRemove")

        def after(error: Any) -> None:
            cls.emit("remove", self, error)
            self.emit("remove", error)

        run = wrap(
            self._options.get("remove"),
            (self,),
            before,
            after,
            label=f"{self._model_name}.remove",
        )
        return run(callback)

    async def save_async(self) -> Any:
        future = self.save()
        if future is None:
            return None
        return await asyncio.wrap_future(future)

    async def remove_async(self) -> Any:
        return await asyncio.wrap_future(self.remove())

    # --- Serialization ---
    def to_json(self) -> Dict[str, Any]:
        """Map every declared field to its current value, in declaration order."""
        return {name: getattr(self, name) for name in self._fields}

    def to_string(self, pretty: bool = False) -> str:
        return json.dumps(
            self.to_json(), indent=2 if pretty else None, default=_json_default
        )

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        fields_str = ", ".join(f"{f}={getattr(self, f)!r}" for f in self._fields)
        return f"{self._model_name}({fields_str})"


# --- Factory ---
def model_factory(
    name: str,
    fields: Optional[Mapping],
    options: Optional[Mapping] = None,
    base: type = Model,
) -> Any:
    """Build a model class named ``name`` from a field mapping.

    Each field spec is a type name (``"string"``, ``"int"``...) or a mapping
    with any of ``type, required, immutable, default, validate, get, set,
    serialize, unserialize``. Falsy specs leave the field out.
    """
    if not name or not isinstance(name, str):
        raise SchemaError("A model name is required.")
    if fields is None:
        raise SchemaError(f"Fields are required for model '{name}'.")
    if not isinstance(fields, Mapping):
        raise SchemaError(
            f"fields for model '{name}' must be a mapping, got {type(fields).__name__}"
        )
    if not isinstance(base, ModelMeta):
        raise SchemaError("base must be a Model subclass.")

    return ModelMeta(
        name,
        (base,),
        {
            "__fields__": dict(fields),
            "__options__": dict(options or {}),
            "__module__": base.__module__,
        },
    )
