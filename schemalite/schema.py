import logging
from collections.abc import Mapping
from typing import Any, Dict, Iterator, List, Optional

from .core import Model, extension_items, model_factory
from .exceptions import SchemaError

logger = logging.getLogger(__name__)


class Schema:
    """Registry of named model types sharing default fields and hooks.

    Options:
        fields: field specs added to every model; a model can drop one by
            mapping its name to a falsy value.
        save, remove, load, count: default persistence hooks.
        to_json: default serializer factory.
        extend: methods or values attached to every model.

    Per-model options override the shared ones; ``extend`` mappings merge.
    """

    def __init__(self, options: Optional[Mapping] = None, **kwargs: Any) -> None:
        merged = {**(options or {}), **kwargs}
        self._default_fields: Dict[str, Any] = dict(merged.pop("fields", None) or {})
        self._options: Dict[str, Any] = merged
        self._models: Dict[str, Any] = {}

    def define(
        self, name: str, fields: Optional[Mapping], options: Optional[Mapping] = None
    ) -> Any:
        """Declare a model type and register it under ``name``."""
        if fields is None:
            raise SchemaError(f"Fields are required for model '{name}'.")
        if not isinstance(fields, Mapping):
            raise SchemaError(
                f"fields for model '{name}' must be a mapping, got {type(fields).__name__}"
            )

        model = model_factory(
            name,
            {**self._default_fields, **fields},
            self._merge_options(options),
        )

        if name in self._models:
            logger.warning("Replacing previously declared model '%s'", name)
        self._models[name] = model
        return model

    def __call__(
        self, name: str, fields: Optional[Mapping], options: Optional[Mapping] = None
    ) -> Any:
        return self.define(name, fields, options)

    def _merge_options(self, options: Optional[Mapping]) -> Dict[str, Any]:
        own = dict(options or {})
        merged = {**self._options, **own}
        extension = {
            **extension_items(self._options.get("extend")),
            **extension_items(own.get("extend")),
        }
        if extension:
            merged["extend"] = extension
        return merged

    def get(self, name: str) -> Optional[Any]:
        return self._models.get(name)

    def models(self) -> List[Any]:
        return list(self._models.values())

    def get_options(self) -> Dict[str, Any]:
        return dict(self._options)

    def get_default_fields(self) -> Dict[str, Any]:
        return dict(self._default_fields)

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def __iter__(self) -> Iterator[str]:
        return iter(self._models)

    def __len__(self) -> int:
        return len(self._models)

    def __repr__(self) -> str:
        return f"Schema({', '.join(self._models)})"


def is_model(value: Any) -> bool:
    """Return True for model classes produced by this package."""
    return isinstance(value, type) and issubclass(value, Model) and value is not Model
