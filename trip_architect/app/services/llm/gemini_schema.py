"""Translate pydantic models into Gemini's response schema format.

Gemini accepts an OpenAPI-like subset: upper-case type names, no ``$ref``,
no ``anyOf`` with null (``nullable`` instead) and no tuple (``prefixItems``)
arrays. Fixed-width tuples become arrays with equal min/max item counts.
"""
from __future__ import annotations

from typing import Any

from google.genai import types
from pydantic import BaseModel

_TYPE_NAMES = {
    "object": "OBJECT",
    "array": "ARRAY",
    "string": "STRING",
    "integer": "INTEGER",
    "number": "NUMBER",
    "boolean": "BOOLEAN",
}


def _resolve(node: dict[str, Any], defs: dict[str, Any]) -> dict[str, Any]:
    ref = node.get("$ref")
    if not ref:
        return node
    target = dict(defs[ref.rsplit("/", 1)[-1]])
    if "description" in node:
        target["description"] = node["description"]
    return target


def _translate(node: dict[str, Any], defs: dict[str, Any]) -> dict[str, Any]:
    node = _resolve(node, defs)

    if "anyOf" in node:
        options = [option for option in node["anyOf"] if option.get("type") != "null"]
        if len(options) != 1:
            raise ValueError(f"Gemini schema does not support unions: {node['anyOf']!r}")
        translated = _translate(options[0], defs)
        if len(options) < len(node["anyOf"]):
            translated["nullable"] = True
        if "description" in node:
            translated["description"] = node["description"]
        return translated

    result: dict[str, Any] = {}
    if "description" in node:
        result["description"] = node["description"]

    if "const" in node:
        result.update(type="STRING", enum=[str(node["const"])])
        return result
    if "enum" in node:
        result.update(type="STRING", enum=[str(value) for value in node["enum"]])
        return result

    json_type = node.get("type")
    if json_type not in _TYPE_NAMES:
        raise ValueError(f"Unsupported JSON schema type for Gemini: {json_type!r}")
    result["type"] = _TYPE_NAMES[json_type]

    if json_type == "object":
        properties = node.get("properties", {})
        result["properties"] = {name: _translate(prop, defs) for name, prop in properties.items()}
        result["required"] = list(node.get("required", []))
        result["property_ordering"] = list(properties)
    elif json_type == "array":
        if "prefixItems" in node:
            positions = [_translate(item, defs) for item in node["prefixItems"]]
            kinds = {position["type"] for position in positions}
            if len(kinds) != 1:
                raise ValueError(f"Gemini cannot express mixed-type tuples: {sorted(kinds)}")
            item: dict[str, Any] = {"type": kinds.pop()}
            if any(position.get("nullable") for position in positions):
                item["nullable"] = True
            result["items"] = item
            result["min_items"] = result["max_items"] = len(positions)
        else:
            result["items"] = _translate(node.get("items", {"type": "string"}), defs)
            if "minItems" in node:
                result["min_items"] = node["minItems"]
            if "maxItems" in node:
                result["max_items"] = node["maxItems"]
    elif json_type in ("integer", "number"):
        if "minimum" in node:
            result["minimum"] = node["minimum"]
        if "maximum" in node:
            result["maximum"] = node["maximum"]
    return result


def to_gemini_schema_dict(model: type[BaseModel]) -> dict[str, Any]:
    json_schema = model.model_json_schema()
    return _translate(json_schema, json_schema.get("$defs", {}))


def to_gemini_schema(model: type[BaseModel]) -> types.Schema:
    return types.Schema.model_validate(to_gemini_schema_dict(model))
