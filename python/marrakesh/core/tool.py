import asyncio
import contextvars
import inspect
from collections.abc import Callable
from functools import cached_property
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..utils import create_model_from_argspec


class Tool(BaseModel):
    """A tool the model can call during an evaluation.

    Tools are explicit values holding everything a provider needs to know
    about the callable (name, description, input schema) next to the
    callable itself. They automatically:
    - Auto-generate names from function names
    - Generate parameter models from function signatures
    - Run sync handlers in the default thread pool so the event loop is never blocked
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True, ignored_types=(cached_property,))

    name: str
    """Name the model uses to call the tool."""
    description: str | None = None
    """Description shown to the model. Defaults to the handler's docstring."""
    handler: Callable[..., Any]
    """The callable function or method that this tool wraps."""
    params_model: type[BaseModel] | None = Field(default=None, exclude=True)
    """Explicit parameters model. Derived from the handler signature when omitted."""

    @model_validator(mode="before")
    @classmethod
    def validate_handler_and_name(cls, values: Any) -> Any:
        """Validate handler and auto-generate tool name and description if not provided.

        Raises:
            ValueError: If handler is missing, has no __name__, or is a lambda without explicit name
        """
        if not isinstance(values, dict):
            return values
        handler = values.get("handler", None)
        if handler is None:
            raise ValueError("You must provide a handler when creating a tool.")
        if not callable(handler):
            raise ValueError("Handler must be a function or a callable object.")

        if not values.get("name"):
            handler_name = getattr(handler, "__name__", None)
            if handler_name is None:
                raise ValueError(
                    "Handler must be a function or lambda with a __name__ attribute. "
                    "If you are using a callable object or functools.partial, please provide a 'name' explicitly."
                )
            if handler_name == "<lambda>":
                raise ValueError("A name must be specified when using a lambda function as a tool.")
            values["name"] = handler_name

        if values.get("description") is None:
            doc = inspect.getdoc(handler)
            if doc:
                values["description"] = doc.strip()

        return values

    @cached_property
    def resolved_params_model(self) -> type[BaseModel]:
        if self.params_model is not None:
            return self.params_model
        handler_argspec = inspect.getfullargspec(self.handler)
        params_model_name = self.name.title().replace("_", "").replace("-", "") + "Params"
        return create_model_from_argspec(name=params_model_name, argspec=handler_argspec)

    @cached_property
    def input_schema(self) -> dict[str, Any]:
        """JSON schema of the tool input."""
        schema = self.resolved_params_model.model_json_schema()
        schema.setdefault("properties", {})
        schema["type"] = "object"
        return schema

    @property
    def openai_chat_completions_schema(self) -> dict[str, Any]:
        """Generate OpenAI-compatible tool schema for this tool."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description or "",
                "parameters": self.input_schema,
            },
        }

    @property
    def anthropic_schema(self) -> dict[str, Any]:
        """Generate Anthropic-compatible tool schema for this tool."""
        return {
            "name": self.name,
            "description": self.description or "",
            "input_schema": self.input_schema,
        }

    async def execute(self, input: dict[str, Any] | None = None) -> Any:
        """Validate `input` against the parameters model and run the handler.

        Validation and handler errors propagate to the caller.
        """
        params_model = self.resolved_params_model
        validated = params_model.model_validate(input or {})
        kwargs = {k: getattr(validated, k) for k in params_model.model_fields}

        if inspect.iscoroutinefunction(self.handler):
            output = await self.handler(**kwargs)
        else:
            loop = asyncio.get_running_loop()
            ctx = contextvars.copy_context()

            def handler_func():
                return ctx.run(self.handler, **kwargs)

            output = await loop.run_in_executor(None, handler_func)

        # Callable objects with an async __call__.
        if inspect.isawaitable(output):
            output = await output
        return output


def tool(
    handler: Callable[..., Any] | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
    params_model: type[BaseModel] | None = None,
) -> Any:
    """Create a Tool from a callable. Usable as `tool(fn)`, `@tool` or `@tool(name=...)`."""

    def decorator(fn: Callable[..., Any]) -> Tool:
        values: dict[str, Any] = {"handler": fn, "description": description, "params_model": params_model}
        if name:
            values["name"] = name
        return Tool(**values)

    if handler is not None:
        return decorator(handler)
    return decorator
