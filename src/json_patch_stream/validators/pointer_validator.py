from __future__ import annotations

import logging
import re
from typing import Any, Optional

from json_patch_stream.validators.json_pointer import is_array_index, parse_json_pointer
from json_patch_stream.validators.schema_resolver import (
    DEFAULT_MAX_RESOLUTION_DEPTH,
    SchemaResolver,
    normalize_type,
)

logger = logging.getLogger(__name__)


class PointerValidator:
    """Decide whether a JSON Pointer can exist in some document valid for a schema.

    Only structure is considered: each token must be admitted by the effective
    schema of its container (object property or array index). Values are never
    inspected.
    """

    @classmethod
    def is_valid(
        cls,
        pointer: str,
        schema: Any,
        max_depth: int = DEFAULT_MAX_RESOLUTION_DEPTH,
    ) -> bool:
        try:
            tokens = parse_json_pointer(pointer)
        except ValueError:
            return False
        if not tokens:
            return True
        resolver = SchemaResolver.for_root(schema, max_depth=max_depth)
        return cls._walk(tokens, schema, resolver) is not None

    @classmethod
    def schema_at(
        cls,
        pointer: str,
        schema: Any,
        max_depth: int = DEFAULT_MAX_RESOLUTION_DEPTH,
    ) -> Optional[dict[str, Any]]:
        """Return the effective schema addressed by ``pointer``, or None if unreachable."""
        try:
            tokens = parse_json_pointer(pointer)
        except ValueError:
            return None
        resolver = SchemaResolver.for_root(schema, max_depth=max_depth)
        node = cls._walk(tokens, schema, resolver)
        if node is None:
            return None
        resolved = resolver.resolve(node)
        return resolved if isinstance(resolved, dict) else None

    # ------------------------------------------------------------ traversal
    @classmethod
    def _walk(cls, tokens: list[str], schema: Any, resolver: SchemaResolver) -> Any:
        current = schema
        for token in tokens:
            current = resolver.resolve(current)
            if not isinstance(current, dict):
                return None
            # A constant or enumerated value has no structural children.
            if "const" in current or "enum" in current:
                return None
            current = cls.next_schema(token, current, resolver)
            if current is None:
                logger.debug("Token %r is not admitted by its container schema", token)
                return None
        return current

    @classmethod
    def next_schema(
        cls, token: str, schema: dict[str, Any], resolver: SchemaResolver
    ) -> Optional[Any]:
        """Schema of the child ``token`` inside the (already resolved) ``schema``."""
        types = normalize_type(schema.get("type"))

        if cls._is_object_shaped(schema, types):
            result = cls._object_child(token, schema, resolver)
            if result is not None:
                return result

        if cls._is_array_shaped(schema, types):
            result = cls._array_child(token, schema)
            if result is not None:
                return result

        if types and len(types) > 1:
            for type_name in types:
                result = cls.next_schema(token, {**schema, "type": type_name}, resolver)
                if result is not None:
                    return result

        return None

    @staticmethod
    def _is_object_shaped(schema: dict[str, Any], types: Optional[list[str]]) -> bool:
        return (
            not types
            or "object" in types
            or "properties" in schema
            or "patternProperties" in schema
        )

    @staticmethod
    def _is_array_shaped(schema: dict[str, Any], types: Optional[list[str]]) -> bool:
        return bool(types and "array" in types) or "items" in schema or "prefixItems" in schema

    @staticmethod
    def _child(child: Any) -> Optional[Any]:
        if child is False:
            return None
        if child is True or child is None:
            return {}
        return child

    @classmethod
    def _object_child(
        cls, token: str, schema: dict[str, Any], resolver: SchemaResolver
    ) -> Optional[Any]:
        properties = schema.get("properties")
        if isinstance(properties, dict) and token in properties:
            return cls._child(properties[token])

        pattern_properties = schema.get("patternProperties")
        if isinstance(pattern_properties, dict):
            for pattern, child in pattern_properties.items():
                if cls._search(pattern, token):
                    return cls._child(child)

        if "propertyNames" in schema and not cls._name_allowed(
            token, resolver.resolve(schema["propertyNames"])
        ):
            return None

        additional = schema.get("additionalProperties")
        if additional is False:
            return None
        if isinstance(additional, dict):
            return additional

        dependent = schema.get("dependentSchemas")
        if isinstance(dependent, dict) and token in dependent:
            return cls._child(dependent[token])

        return {}

    @classmethod
    def _name_allowed(cls, token: str, names: Any) -> bool:
        if names is False:
            return False
        if not isinstance(names, dict):
            return True
        if "const" in names and names["const"] != token:
            return False
        if "enum" in names and isinstance(names["enum"], list) and token not in names["enum"]:
            return False
        pattern = names.get("pattern")
        if isinstance(pattern, str):
            try:
                if not re.search(pattern, token):
                    return False
            except re.error:
                logger.debug("Ignoring invalid propertyNames pattern %r", pattern)
        min_length = names.get("minLength")
        if isinstance(min_length, int) and len(token) < min_length:
            return False
        max_length = names.get("maxLength")
        if isinstance(max_length, int) and len(token) > max_length:
            return False
        return True

    @classmethod
    def _array_child(cls, token: str, schema: dict[str, Any]) -> Optional[Any]:
        if not is_array_index(token):
            return None
        index = int(token)

        max_items = schema.get("maxItems")
        if isinstance(max_items, (int, float)) and index >= max_items:
            return None

        items = schema.get("items")
        prefix_items = schema.get("prefixItems")
        if isinstance(prefix_items, list):
            if index < len(prefix_items):
                return cls._child(prefix_items[index])
            return cls._overflow_child(items)

        # Tuple form from drafts before 2020-12.
        if isinstance(items, list):
            if index < len(items):
                return cls._child(items[index])
            return cls._overflow_child(schema.get("additionalItems"))

        return cls._overflow_child(items)

    @staticmethod
    def _overflow_child(overflow: Any) -> Optional[Any]:
        if overflow is False:
            return None
        if isinstance(overflow, dict):
            return overflow
        return {}

    @staticmethod
    def _search(pattern: str, token: str) -> bool:
        try:
            return re.search(pattern, token) is not None
        except (re.error, TypeError):
            logger.debug("Ignoring invalid patternProperties pattern %r", pattern)
            return False


def is_valid_pointer(
    pointer: str,
    schema: Any,
    *,
    max_depth: int = DEFAULT_MAX_RESOLUTION_DEPTH,
) -> bool:
    """
    Check whether a JSON Pointer is structurally reachable under a JSON Schema.

    Args:
        pointer: RFC 6901 pointer. ``""`` and ``"/"`` address the root.
        schema: Root JSON Schema (draft 2020-12 or earlier).
        max_depth: Limit on nested reference/composition resolution.

    Returns:
        True if every token of the pointer is admitted by the schema.
    """
    if not isinstance(pointer, str):
        return False
    return PointerValidator.is_valid(pointer, schema, max_depth=max_depth)


def schema_at(
    pointer: str,
    schema: Any,
    *,
    max_depth: int = DEFAULT_MAX_RESOLUTION_DEPTH,
) -> Optional[dict[str, Any]]:
    """
    Return the effective schema at ``pointer``, or None when it is unreachable.

    The returned dict is a derived view; the input schema is never modified.
    """
    if not isinstance(pointer, str):
        return None
    return PointerValidator.schema_at(pointer, schema, max_depth=max_depth)
