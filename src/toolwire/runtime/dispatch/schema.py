"""JSON Schema and tool definitions derived from a ToolDescriptor.

The tag-to-schema mapping is the one the binder coerces to, so schema and
binder agree on required-ness and type. Patterns are anchored because the
binder matches the whole value.
"""

from __future__ import annotations

from typing import Any

from toolwire.foundation.content import to_jsonable
from toolwire.foundation.core import ParameterSpec, ParamType, ToolDescriptor
from toolwire.foundation.errors import JsonDict, ToolException

from .binder import ParameterBinder

SCHEMA_TYPES: dict[ParamType, str] = {
    ParamType.STRING: "string",
    ParamType.INTEGER: "integer",
    ParamType.FLOAT: "number",
    ParamType.BOOLEAN: "boolean",
    ParamType.ARRAY: "array",
    ParamType.OBJECT: "object",
}


def schema_type(tag: ParamType | str | None) -> str:
    """Schema type for a tag; unknown tags fall back to ``string``."""
    try:
        return SCHEMA_TYPES.get(ParamType(tag), "string") if tag is not None else "string"
    except ValueError:
        return "string"


def _default_value(spec: ParameterSpec) -> Any:
    """Typed default for documentation; unparseable literals are shown as-is."""
    binder = ParameterBinder()
    try:
        return to_jsonable(binder.coerce(spec, binder.parse_default(spec)))
    except (ToolException, TypeError, ValueError):
        return spec.default


def property_schema(spec: ParameterSpec) -> JsonDict:
    prop: JsonDict = {"type": schema_type(spec.type)}
    if spec.description:
        prop["description"] = spec.description
    if spec.minimum is not None:
        prop["minimum"] = spec.minimum
    if spec.maximum is not None:
        prop["maximum"] = spec.maximum
    if spec.enum_values:
        prop["enum"] = list(spec.enum_values)
    if spec.pattern:
        prop["pattern"] = f"^(?:{spec.pattern})$"
    if spec.type is ParamType.ARRAY:
        prop["items"] = {"type": schema_type(spec.items)} if spec.items is not None else {}
    if spec.has_default:
        prop["default"] = _default_value(spec)
    return prop


def describe(descriptor: ToolDescriptor) -> JsonDict:
    """``{type: "object", properties, required}`` for the caller-supplied parameters."""
    params = descriptor.input_parameters
    return {
        "type": "object",
        "properties": {p.name: property_schema(p) for p in params},
        "required": [p.name for p in params if p.required],
    }


def tool_definition(descriptor: ToolDescriptor) -> JsonDict:
    """Tool listing entry: ``{name, description, inputSchema, examples?}``."""
    definition: JsonDict = {
        "name": descriptor.name,
        "description": descriptor.description,
        "inputSchema": describe(descriptor),
    }
    if descriptor.examples:
        definition["examples"] = [e.to_wire() for e in descriptor.examples]
    if descriptor.streaming:
        definition["streaming"] = True
    if descriptor.tags:
        definition["tags"] = list(descriptor.tags)
    return definition
