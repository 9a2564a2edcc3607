"""Shared fixtures for the test suite."""

from __future__ import annotations

import pytest


@pytest.fixture
def simple_schema():
    """A simple JSON Schema with an object and required fields."""
    return {
        "type": "object",
        "properties": {
            "name": {"type": "string"},
            "age": {"type": "integer"},
            "email": {"type": "string", "format": "email"},
        },
        "required": ["name"],
    }


@pytest.fixture
def closed_schema():
    """Object schema that rejects undeclared properties."""
    return {
        "type": "object",
        "properties": {"a": {"type": "string"}},
        "additionalProperties": False,
    }


@pytest.fixture
def array_schema():
    """JSON Schema with an array of objects."""
    return {
        "type": "object",
        "properties": {
            "items": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "value": {"type": "string"},
                    },
                    "required": ["id"],
                    "additionalProperties": False,
                },
            }
        },
    }


@pytest.fixture
def nested_schema():
    """Deeply nested schema with $ref."""
    return {
        "type": "object",
        "definitions": {
            "Address": {
                "type": "object",
                "properties": {
                    "street": {"type": "string"},
                    "city": {"type": "string"},
                },
                "required": ["street", "city"],
                "additionalProperties": False,
            }
        },
        "properties": {
            "name": {"type": "string"},
            "address": {"$ref": "#/definitions/Address"},
        },
        "required": ["name"],
    }


@pytest.fixture
def recursive_schema():
    """Tree of nodes where each child refers back to the node definition."""
    return {
        "$defs": {
            "Node": {
                "type": "object",
                "properties": {
                    "label": {"type": "string"},
                    "children": {
                        "type": "array",
                        "items": {"$ref": "#/$defs/Node"},
                    },
                },
                "required": ["label"],
                "additionalProperties": False,
            }
        },
        "$ref": "#/$defs/Node",
    }


@pytest.fixture
def profile_schema():
    """Profile document similar to what the generator is asked to build."""
    return {
        "type": "object",
        "properties": {
            "name": {"type": "string"},
            "age": {"type": "integer", "minimum": 0},
            "email": {"type": "string", "format": "email"},
            "address": {
                "type": "object",
                "properties": {
                    "street": {"type": "string"},
                    "city": {"type": "string"},
                    "country": {"type": "string"},
                },
                "additionalProperties": False,
            },
            "skills": {"type": "array", "items": {"type": "string"}},
        },
        "required": ["name", "email"],
        "additionalProperties": False,
    }
