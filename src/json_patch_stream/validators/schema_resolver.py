"""Collapse reference and composition keywords into an effective schema.

The resolver never looks at instance data, so composition is approximated:

* ``$ref`` / ``$dynamicRef`` are followed (``#``, ``#anchor`` and ``#/json/pointer``
  forms); anything else degrades to the permissive schema ``{}``.
* ``allOf`` branches are merged into the node.
* ``anyOf`` / ``oneOf`` resolve to their first branch.
* ``not`` is ignored.
* ``if`` / ``then`` / ``else`` merge both branches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from json_patch_stream.validators.json_pointer import decode_pointer_token, is_array_index

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESOLUTION_DEPTH: int = 64

# Keywords whose value is a single subschema.
_SUBSCHEMA_KEYWORDS: tuple[str, ...] = (
    "additionalProperties",
    "propertyNames",
    "additionalItems",
    "contains",
    "not",
    "if",
    "then",
    "else",
    "contentSchema",
)
# Keywords whose value is a list of subschemas.
_SUBSCHEMA_LIST_KEYWORDS: tuple[str, ...] = ("prefixItems", "allOf", "anyOf", "oneOf")
# Keywords whose value maps names to subschemas.
_SUBSCHEMA_MAP_KEYWORDS: tuple[str, ...] = (
    "properties",
    "patternProperties",
    "dependentSchemas",
    "$defs",
    "definitions",
)

_CONDITIONAL_KEYWORDS: tuple[str, ...] = ("if", "then", "else")


@dataclass
class SchemaContext:
    """Per-call resolution state. Never share one between calls."""

    root: Any
    definitions: dict[str, Any] = field(default_factory=dict)
    visited: set[str] = field(default_factory=set)
    anchors: dict[str, Any] = field(default_factory=dict)
    max_depth: int = DEFAULT_MAX_RESOLUTION_DEPTH
    depth: int = 0

    @classmethod
    def for_root(
        cls, root: Any, max_depth: int = DEFAULT_MAX_RESOLUTION_DEPTH
    ) -> "SchemaContext":
        """Build a fresh context for ``root`` and run the anchor pre-pass."""
        definitions: dict[str, Any] = {}
        if isinstance(root, dict):
            for key in ("$defs", "definitions"):
                defs = root.get(key)
                if isinstance(defs, dict):
                    definitions.update(defs)
        context = cls(root=root, definitions=definitions, max_depth=max_depth)
        collect_anchors(root, context)
        return context


def collect_anchors(schema: Any, context: SchemaContext) -> None:
    """Index ``$anchor`` / ``$dynamicAnchor`` declarations reachable from ``schema``.

    Best effort: walks the usual subschema keywords. Each dict is visited once,
    so self-referencing Python structures terminate.
    """
    seen: set[int] = set()
    stack = [schema]
    while stack:
        node = stack.pop()
        if not isinstance(node, dict) or id(node) in seen:
            continue
        seen.add(id(node))

        for key in ("$anchor", "$dynamicAnchor"):
            name = node.get(key)
            if isinstance(name, str) and name not in context.anchors:
                context.anchors[name] = node

        for key in _SUBSCHEMA_KEYWORDS:
            stack.append(node.get(key))
        items = node.get("items")
        if isinstance(items, list):
            stack.extend(items)
        else:
            stack.append(items)
        for key in _SUBSCHEMA_LIST_KEYWORDS:
            value = node.get(key)
            if isinstance(value, list):
                stack.extend(value)
        for key in _SUBSCHEMA_MAP_KEYWORDS:
            value = node.get(key)
            if isinstance(value, dict):
                stack.extend(value.values())


def normalize_type(type_val: Any) -> Optional[list[str]]:
    if not type_val:
        return None
    if isinstance(type_val, list):
        return type_val
    return [type_val]


def merge_schemas(left: dict[str, Any], right: dict[str, Any]) -> dict[str, Any]:
    """Fold ``right`` into ``left`` the way ``allOf`` branches combine.

    Right-hand side wins for plain keywords. ``properties`` and
    ``patternProperties`` are unioned, ``required`` is unioned, ``type`` is
    intersected (and dropped when the intersection is empty), and the
    ``minProperties`` / ``maxProperties`` bounds keep the tighter value.
    """
    merged = {**left, **right}

    for key in ("properties", "patternProperties"):
        if key in left or key in right:
            merged[key] = {**(left.get(key) or {}), **(right.get(key) or {})}

    if "required" in left or "required" in right:
        required: list[str] = []
        for name in [*(left.get("required") or []), *(right.get("required") or [])]:
            if name not in required:
                required.append(name)
        merged["required"] = required

    left_types = normalize_type(left.get("type"))
    right_types = normalize_type(right.get("type"))
    if left_types and right_types:
        common = [t for t in left_types if t in right_types]
        if not common:
            merged.pop("type", None)
        else:
            merged["type"] = common[0] if len(common) == 1 else common

    if "minProperties" in left or "minProperties" in right:
        merged["minProperties"] = max(
            left.get("minProperties") or 0, right.get("minProperties") or 0
        )
    if "maxProperties" in left or "maxProperties" in right:
        bounds = [
            s["maxProperties"]
            for s in (left, right)
            if isinstance(s.get("maxProperties"), (int, float))
        ]
        if bounds:
            merged["maxProperties"] = min(bounds)
        else:
            merged.pop("maxProperties", None)

    return merged


class SchemaResolver:
    """Turn a schema node into the effective schema used for one traversal step."""

    def __init__(self, context: SchemaContext) -> None:
        self.context = context

    @classmethod
    def for_root(
        cls, root: Any, max_depth: int = DEFAULT_MAX_RESOLUTION_DEPTH
    ) -> "SchemaResolver":
        return cls(SchemaContext.for_root(root, max_depth=max_depth))

    def resolve(self, schema: Any) -> Any:
        """Return the effective schema for ``schema``.

        Boolean ``True`` becomes ``{}``; ``False`` and other non-dict values are
        returned as-is for the caller to reject.
        """
        if schema is True:
            return {}
        if not isinstance(schema, dict):
            return schema

        ctx = self.context
        if ctx.depth >= ctx.max_depth:
            logger.warning(
                "Schema resolution exceeded max depth (%d); treating node as permissive",
                ctx.max_depth,
            )
            return {}

        ctx.depth += 1
        try:
            return self._resolve_node(schema)
        finally:
            ctx.depth -= 1

    # ------------------------------------------------------------ branches
    def _resolve_node(self, schema: dict[str, Any]) -> Any:
        for key in ("$ref", "$dynamicRef"):
            ref = schema.get(key)
            if isinstance(ref, str):
                return self.resolve_ref(ref)

        all_of = schema.get("allOf")
        if isinstance(all_of, list):
            merged = {k: v for k, v in schema.items() if k != "allOf"}
            for branch in all_of:
                resolved = self.resolve(branch)
                if isinstance(resolved, dict):
                    merged = merge_schemas(merged, resolved)
            return merged

        for key in ("anyOf", "oneOf"):
            branches = schema.get(key)
            if isinstance(branches, list) and branches:
                return self.resolve(branches[0])

        if "not" in schema:
            return self.resolve({k: v for k, v in schema.items() if k != "not"})

        if "if" in schema:
            merged = {k: v for k, v in schema.items() if k not in _CONDITIONAL_KEYWORDS}
            for key in ("then", "else"):
                if key not in schema:
                    continue
                resolved = self.resolve(schema[key])
                if isinstance(resolved, dict):
                    merged = merge_schemas(merged, resolved)
            return merged

        return schema

    def resolve_ref(self, ref: str) -> Any:
        """Resolve a reference string to its effective target, or ``{}``."""
        ctx = self.context
        if ref in ctx.visited:
            logger.debug("Reference cycle detected at %s", ref)
            return {}

        ctx.visited.add(ref)
        try:
            target = self._lookup_ref(ref)
            if target is None:
                logger.debug("Unresolvable reference %s; using permissive schema", ref)
                return {}
            return self.resolve(target)
        finally:
            ctx.visited.discard(ref)

    def _lookup_ref(self, ref: str) -> Any:
        ctx = self.context
        if ref == "#":
            return ctx.root if isinstance(ctx.root, (dict, bool)) else None

        if ref.startswith("#") and "/" not in ref:
            return ctx.anchors.get(ref[1:])

        if ref.startswith("#/"):
            segments = [decode_pointer_token(s) for s in ref[2:].split("/")]
            node = self._walk_root(segments)
            if node is None and len(segments) == 2 and segments[0] in ("$defs", "definitions"):
                # "#/definitions/X" against a "$defs" document, or vice versa.
                node = ctx.definitions.get(segments[1])
            return node if isinstance(node, (dict, bool)) else None

        # External documents and relative references are never fetched.
        return None

    def _walk_root(self, segments: list[str]) -> Any:
        node: Any = self.context.root
        for key in segments:
            if isinstance(node, dict):
                node = node.get(key)
            elif isinstance(node, list) and is_array_index(key) and int(key) < len(node):
                node = node[int(key)]
            else:
                return None
            if node is None:
                return None
        return node
