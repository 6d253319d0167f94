"""Tool registry built on Pydantic v2 models."""

from collections.abc import Iterable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, create_model

from farm_assistant.constants import ToolCategory
from farm_assistant.errors import SchemaError

_JSON_TYPES: dict[str, Any] = {
    "string": str,
    "number": float,
    "integer": int,
    "boolean": bool,
    "array": list[Any],
    "object": dict[str, Any],
}


class ToolSpec(BaseModel):
    """Declarative tool specification shared by every provider schema."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}, "required": []}
    )
    category: ToolCategory
    requires_data_source: bool = False


def validate_parameters_schema(spec: ToolSpec) -> None:
    """Reject a parameter schema that is not a JSON-Schema object."""
    schema = spec.parameters
    if schema.get("type") != "object":
        raise SchemaError(f"Tool {spec.name}: parameters must be an object schema")

    properties = schema.get("properties", {})
    if not isinstance(properties, dict):
        raise SchemaError(f"Tool {spec.name}: properties must be a mapping")
    for prop_name, prop_schema in properties.items():
        if not isinstance(prop_schema, dict):
            raise SchemaError(f"Tool {spec.name}: property {prop_name} must be a schema object")
        prop_type = prop_schema.get("type")
        if prop_type is not None and prop_type not in _JSON_TYPES:
            raise SchemaError(f"Tool {spec.name}: property {prop_name} has unknown type {prop_type}")

    required = schema.get("required", [])
    if not isinstance(required, list) or not all(isinstance(item, str) for item in required):
        raise SchemaError(f"Tool {spec.name}: required must be a list of property names")
    missing = [item for item in required if item not in properties]
    if missing:
        raise SchemaError(
            f"Tool {spec.name}: required lists undeclared properties: {', '.join(missing)}"
        )


def _annotation_for(prop_schema: dict[str, Any]) -> Any:
    enum_values = prop_schema.get("enum")
    if enum_values:
        return Literal[tuple(enum_values)]
    return _JSON_TYPES.get(prop_schema.get("type", ""), Any)


def build_arguments_model(spec: ToolSpec) -> type[BaseModel]:
    """Derive a validation model from the same schema the providers see."""
    properties: dict[str, dict[str, Any]] = spec.parameters.get("properties", {})
    required = set(spec.parameters.get("required", []))

    fields: dict[str, Any] = {}
    for index, (prop_name, prop_schema) in enumerate(properties.items()):
        annotation = _annotation_for(prop_schema)
        constraints: dict[str, Any] = {"alias": prop_name}
        if "minimum" in prop_schema:
            constraints["ge"] = prop_schema["minimum"]
        if "maximum" in prop_schema:
            constraints["le"] = prop_schema["maximum"]
        if prop_name in required:
            fields[f"arg_{index}"] = (annotation, Field(..., **constraints))
        else:
            fields[f"arg_{index}"] = (annotation | None, Field(None, **constraints))

    return create_model(
        f"{spec.name}_arguments",
        __config__=ConfigDict(extra="ignore"),
        **fields,
    )


class ToolRegistry:
    """Stores tool specs in registration order."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}
        self._argument_models: dict[str, type[BaseModel]] = {}

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise SchemaError(f"Tool already registered: {spec.name}")
        validate_parameters_schema(spec)
        self._argument_models[spec.name] = build_arguments_model(spec)
        self._tools[spec.name] = spec

    def register_all(self, specs: Iterable[ToolSpec]) -> None:
        for spec in specs:
            self.register(spec)

    def get(self, name: str) -> ToolSpec:
        spec = self._tools.get(name)
        if spec is None:
            raise KeyError(f"Unknown tool: {name}")
        return spec

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def list_tools(
        self,
        categories: Iterable[str] | None = None,
        *,
        include_data_source_tools: bool = True,
    ) -> list[ToolSpec]:
        selected = set(categories) if categories is not None else None
        return [
            spec
            for spec in self._tools.values()
            if (selected is None or spec.category in selected)
            and (include_data_source_tools or not spec.requires_data_source)
        ]

    def validate_arguments(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """Validate a call's arguments; raises ``pydantic.ValidationError``."""
        self.get(name)
        model = self._argument_models[name]
        validated = model.model_validate(arguments)
        return validated.model_dump(by_alias=True, exclude_unset=True)
