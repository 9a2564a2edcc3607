"""Schema-aware validation of JSON Pointers and JSON Patch streams."""

from json_patch_stream.agent import PatchStreamAgent, stream_patch_operations
from json_patch_stream.validators import (
    PatchError,
    PatchValidationResult,
    SchemaResolver,
    is_valid_pointer,
    merge_schemas,
    schema_at,
    validate_patch,
)

__version__ = "0.1.0"

__all__ = [
    "PatchStreamAgent",
    "PatchError",
    "PatchValidationResult",
    "SchemaResolver",
    "is_valid_pointer",
    "merge_schemas",
    "schema_at",
    "stream_patch_operations",
    "validate_patch",
]
