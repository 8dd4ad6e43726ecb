"""Tool descriptors advertised to the thought/action synthesizer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple, Type

from pydantic import BaseModel

from cognisim.decoding import ModelValidator


@dataclass(frozen=True)
class ToolDescriptor:
    """A tool an agent may request.

    ``schema`` validates the parameters of a requested action. A descriptor
    without a schema accepts any parameters.
    """

    name: str
    description: str
    parameters: Tuple[str, ...] = ()
    schema: Optional[Any] = None  # Validator

    def check_parameters(self, parameters: Dict[str, Any]) -> Any:
        """Validate ``parameters``; raises ``ValidationFailure`` on mismatch."""

        if self.schema is None:
            return parameters
        return self.schema.validate(parameters)

    def json_schema(self) -> Dict[str, Any]:
        return self.schema.json_schema() if self.schema is not None else {}


def tool_from_model(name: str, description: str, model: Type[BaseModel]) -> ToolDescriptor:
    """Descriptor whose parameters are the fields of ``model``."""

    return ToolDescriptor(
        name=name,
        description=description,
        parameters=tuple(model.model_fields),
        schema=ModelValidator(model, name=f"{name} parameters"),
    )


def describe_tools(tools: Iterable[ToolDescriptor]) -> str:
    """One ``name: description`` line per tool."""

    return "\n".join(f"{tool.name}: {tool.description}" for tool in tools)


def tool_schemas(tools: Iterable[ToolDescriptor]) -> Dict[str, Dict[str, Any]]:
    return {tool.name: tool.json_schema() for tool in tools}


def tool_summaries(tools: Iterable[ToolDescriptor]) -> list[Dict[str, Any]]:
    """JSON-friendly view of the tools (no validators)."""

    return [
        {"name": tool.name, "description": tool.description, "parameters": list(tool.parameters)}
        for tool in tools
    ]


def find_tool(tools: Sequence[ToolDescriptor], name: str) -> Optional[ToolDescriptor]:
    for tool in tools:
        if tool.name == name:
            return tool
    return None


__all__ = [
    "ToolDescriptor",
    "describe_tools",
    "find_tool",
    "tool_from_model",
    "tool_schemas",
    "tool_summaries",
]
