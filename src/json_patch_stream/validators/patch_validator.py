from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from json_patch_stream.validators.json_pointer import (
    decode_pointer_token,
    is_array_index,
    is_root_pointer,
    split_parent,
)
from json_patch_stream.validators.pointer_validator import PointerValidator
from json_patch_stream.validators.schema_resolver import DEFAULT_MAX_RESOLUTION_DEPTH

logger = logging.getLogger(__name__)

VALID_OPS: tuple[str, ...] = ("add", "remove", "replace", "move", "copy", "test")

# Batch-level errors are not tied to any operation.
BATCH_ERROR_INDEX: int = -1


@dataclass(frozen=True)
class PatchError:
    """A single problem found in a patch, tagged with its operation index."""

    operation: int
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"operation": self.operation, "message": self.message}


@dataclass(frozen=True)
class PatchValidationResult:
    valid: bool
    errors: list[PatchError] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "errors": [e.to_dict() for e in self.errors]}


class PatchValidator:
    """Structural validation of RFC 6902 patch operations against a JSON Schema.

    Each operation is checked on its own: the validator never simulates applying
    earlier operations. Beyond pointer reachability it enforces two patch-level
    rules: a property listed in its parent's ``required`` may not be removed (or
    moved away), and a value may not be moved into one of its own descendants.
    """

    def __init__(
        self, schema: Any, max_depth: int = DEFAULT_MAX_RESOLUTION_DEPTH
    ) -> None:
        self.schema = schema
        self.max_depth = max_depth

    # ------------------------------------------------------------------ public
    def validate(self, operations: Any) -> PatchValidationResult:
        if not isinstance(operations, list):
            return PatchValidationResult(
                valid=False,
                errors=[PatchError(BATCH_ERROR_INDEX, "Patch must be an array")],
            )

        errors: list[PatchError] = []
        for index, operation in enumerate(operations):
            messages = self.validate_operation(operation)
            if messages:
                logger.debug("Operation %d rejected: %s", index, "; ".join(messages))
            errors.extend(PatchError(index, m) for m in messages)

        return PatchValidationResult(valid=not errors, errors=errors)

    def validate_operation(self, operation: Any) -> list[str]:
        """Return the error messages for a single operation (empty when valid)."""
        if not isinstance(operation, dict):
            return ["Operation must be an object"]

        if "op" not in operation or operation["op"] in (None, ""):
            return ['Operation must have an "op" property']

        op = operation["op"]
        if not isinstance(op, str) or op not in VALID_OPS:
            return [f'Invalid operation "{op}". Must be one of: {", ".join(VALID_OPS)}']

        handler = getattr(self, f"_validate_{op}")
        return handler(operation)

    # ------------------------------------------------------------- per op
    def _validate_add(self, operation: dict[str, Any]) -> list[str]:
        shape = self._check_value_op_shape("Add", operation)
        if shape:
            return shape
        error = self._check_add_path(operation["path"])
        return [error] if error else []

    def _validate_remove(self, operation: dict[str, Any]) -> list[str]:
        if "path" not in operation:
            return ['Remove operation must have a "path" property']
        if not isinstance(operation["path"], str):
            return ["Path must be a string"]

        path = operation["path"]
        errors: list[str] = []
        if not self._reachable(path):
            errors.append(f'Path "{path}" is not valid according to schema')
        required = self._required_property(path)
        if required is not None:
            errors.append(f'Cannot remove required property "{required}"')
        return errors

    def _validate_replace(self, operation: dict[str, Any]) -> list[str]:
        shape = self._check_value_op_shape("Replace", operation)
        if shape:
            return shape
        return self._check_exact_path(operation["path"])

    def _validate_test(self, operation: dict[str, Any]) -> list[str]:
        shape = self._check_value_op_shape("Test", operation)
        if shape:
            return shape
        return self._check_exact_path(operation["path"])

    def _validate_move(self, operation: dict[str, Any]) -> list[str]:
        shape = self._check_from_op_shape("Move", operation)
        if shape:
            return shape

        source, destination = operation["from"], operation["path"]
        errors = self._check_from_and_destination(source, destination)

        if destination.startswith(source + "/"):
            errors.append("Cannot move to a location that is a child of the source")

        required = self._required_property(source)
        if required is not None:
            errors.append(
                f'Cannot move required property "{required}" away from its parent'
            )
        return errors

    def _validate_copy(self, operation: dict[str, Any]) -> list[str]:
        shape = self._check_from_op_shape("Copy", operation)
        if shape:
            return shape
        return self._check_from_and_destination(operation["from"], operation["path"])

    # ------------------------------------------------------------- shape
    @staticmethod
    def _check_value_op_shape(label: str, operation: dict[str, Any]) -> list[str]:
        if "path" not in operation:
            return [f'{label} operation must have a "path" property']
        if "value" not in operation:
            return [f'{label} operation must have a "value" property']
        if not isinstance(operation["path"], str):
            return ["Path must be a string"]
        return []

    @staticmethod
    def _check_from_op_shape(label: str, operation: dict[str, Any]) -> list[str]:
        errors: list[str] = []
        if "from" not in operation:
            errors.append(f'{label} operation must have a "from" property')
        if "path" not in operation:
            errors.append(f'{label} operation must have a "path" property')
        if errors:
            return errors

        if not isinstance(operation["from"], str):
            errors.append("From must be a string")
        if not isinstance(operation["path"], str):
            errors.append("Path must be a string")
        return errors

    # ------------------------------------------------------------- paths
    def _reachable(self, pointer: str) -> bool:
        return PointerValidator.is_valid(pointer, self.schema, max_depth=self.max_depth)

    def _check_exact_path(self, path: str) -> list[str]:
        if self._reachable(path):
            return []
        return [f'Path "{path}" is not valid according to schema']

    def _check_from_and_destination(self, source: str, destination: str) -> list[str]:
        errors: list[str] = []
        if not self._reachable(source):
            errors.append(f'From path "{source}" is not valid according to schema')
        error = self._check_add_path(destination)
        if error:
            errors.append(error)
        return errors

    def _check_add_path(self, path: str) -> Optional[str]:
        """Validate a destination that a value is added to (add, move, copy)."""
        if is_root_pointer(path):
            return None
        if not path.startswith("/"):
            return f'Path "{path}" is not a valid JSON Pointer'

        parent, target = split_parent(path)
        if not self._reachable(parent):
            return f'Parent path "{parent}" is not valid according to schema'

        # Appending to, or inserting into, an array never needs the index to exist.
        if target == "-" or is_array_index(target):
            return None

        if not self._reachable(path):
            return f'Path "{path}" is not valid according to schema'
        return None

    def _required_property(self, path: str) -> Optional[str]:
        """Name of the property ``path`` removes if its parent requires it, else None."""
        if is_root_pointer(path) or not path.startswith("/"):
            return None

        parent, target = split_parent(path)
        parent_schema = PointerValidator.schema_at(
            parent, self.schema, max_depth=self.max_depth
        )
        if not parent_schema:
            return None

        name = decode_pointer_token(target)
        required = parent_schema.get("required")
        if isinstance(required, list) and name in required:
            return name
        return None


def validate_patch(
    operations: Any,
    schema: Any,
    *,
    max_depth: int = DEFAULT_MAX_RESOLUTION_DEPTH,
) -> PatchValidationResult:
    """
    Validate JSON Patch operations against a JSON Schema without a document.

    Args:
        operations: List of JSON Patch operations (RFC 6902).
        schema: Root JSON Schema the patched document must follow.
        max_depth: Limit on nested reference/composition resolution.

    Returns:
        PatchValidationResult with ``valid`` and one PatchError per problem,
        tagged with the index of the offending operation (-1 for batch errors).
    """
    return PatchValidator(schema, max_depth=max_depth).validate(operations)
