import importlib.util
import json
import sys
from ast import literal_eval
from pathlib import Path
from typing import Any, NamedTuple

import structlog
from pydantic import BaseModel, ConfigDict, Field, create_model
from pydantic.fields import FieldInfo
from uuid_extensions import uuid7

logger = structlog.get_logger("marrakesh.utils")


class ImportSpec(BaseModel):
    """Location of a Python file to import."""
    path: Path

    def load_module(self) -> Any:
        """Execute the file at `path` as a fresh module and return it."""
        module_name = f"marrakesh_user_{self.path.stem.replace('.', '_')}"
        spec = importlib.util.spec_from_file_location(module_name, self.path.as_posix())
        if not spec or not spec.loader:
            raise ValueError(f"Failed to load module {self.path}")
        module = importlib.util.module_from_spec(spec)
        # Dataclasses and pydantic resolve annotations through sys.modules.
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(module_name, None)
            raise
        return module


def create_model_from_argspec(name: str, argspec: NamedTuple) -> type[BaseModel]:
    """Create a dynamic pydantic model from the argspec of a function."""
    fields = {}
    defaults = {}
    if argspec.defaults:
        defaults = dict(zip(argspec.args[-len(argspec.defaults):], argspec.defaults, strict=True))
    kwonlydefaults = argspec.kwonlydefaults or {}
    for field_name in [*argspec.args, *argspec.kwonlyargs]:
        if field_name in ("self", "cls"):
            continue
        default = defaults.get(field_name, kwonlydefaults.get(field_name, ...)) # ... marks the field as required.
        field_info = default if isinstance(default, FieldInfo) else Field(default)
        field_type = argspec.annotations.get(field_name, Any)
        fields[field_name] = (field_type, field_info)
    return create_model(name, __config__=ConfigDict(extra="ignore"), **fields)


def coerce_to_dict(value: Any) -> dict[str, Any]:
    """Interpret tool call arguments (dicts, JSON strings, python literals) as a dict."""
    if value is None or value == "":
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            parsed = literal_eval(value)
        if isinstance(parsed, dict):
            return parsed
    raise ValueError(f"Cannot interpret {type(value).__name__} as a dictionary of arguments.")


def to_jsonable(value: Any) -> Any:
    """Dump all models living within a nested structure of arbitrary depth into plain json values."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    elif isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple, set, frozenset)): # noqa: UP038
        return [to_jsonable(v) for v in value]
    elif isinstance(value, Path):
        return value.as_posix()
    elif isinstance(value, Exception):
        return {"error_type": type(value).__name__, "message": str(value)}
    elif value is None or isinstance(value, (str, int, float, bool)): # noqa: UP038
        return value
    return str(value)


def generate_id() -> str:
    """Time ordered unique identifier."""
    return str(uuid7())
