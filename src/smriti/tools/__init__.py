"""Tool framework: wraps journal operations for function-calling agents."""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from smriti.core.exceptions import SmritiError


@dataclass
class ToolDefinition:
    """A tool that an agent can invoke via function calling."""

    name: str
    description: str
    parameters: dict[str, Any]  # JSON Schema
    function: Callable[..., str]
    args_schema: Any = None

    @classmethod
    def from_function(
        cls,
        func: Callable[..., str],
        name: str,
        description: str,
        args_schema: Any,
    ) -> ToolDefinition:
        """Create a ToolDefinition from a function and a Pydantic schema class.

        Arguments are validated against *args_schema* before *func* is called.
        """
        schema = args_schema.model_json_schema()
        schema.pop("title", None)
        schema.pop("$defs", None)
        for prop in schema.get("properties", {}).values():
            prop.pop("title", None)
        return cls(
            name=name,
            description=description,
            parameters=schema,
            function=func,
            args_schema=args_schema,
        )

    def to_litellm_schema(self) -> dict[str, Any]:
        """Convert to litellm/OpenAI function calling format."""
        params = self.parameters
        if params.get("type") == "object" and "required" not in params:
            params = {**params, "required": []}
        return {
            "type": "function",
            "function": {"name": self.name, "description": self.description, "parameters": params},
        }

    def execute(self, arguments: dict[str, Any] | str) -> str:
        """Validate arguments and run the tool, returning an error string on failure.

        Journal operations are reads, so the caller may simply call again.
        """
        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments) if arguments.strip() else {}
            except json.JSONDecodeError:
                return f"Error: could not parse arguments: {arguments}"
        if not isinstance(arguments, dict):
            return f"Error: arguments must be an object, got {type(arguments).__name__}"

        if self.args_schema is not None:
            from pydantic import ValidationError

            try:
                arguments = self.args_schema.model_validate(arguments).model_dump(exclude_none=True)
            except ValidationError as e:
                return f"Error: invalid arguments for {self.name}: {e}"

        try:
            return self.function(**arguments)
        except (SmritiError, TimeoutError) as e:
            logger.warning(f"Tool {self.name} failed: {e}")
            return f"Error: {e}"
        except Exception as e:
            logger.exception(f"Tool {self.name} failed unexpectedly")
            return f"Error executing {self.name}: {e}"
