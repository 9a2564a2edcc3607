from json_patch_stream.validators.patch_validator import (
    PatchError,
    PatchValidationResult,
    PatchValidator,
    validate_patch,
)
from json_patch_stream.validators.pointer_validator import (
    PointerValidator,
    is_valid_pointer,
    schema_at,
)
from json_patch_stream.validators.schema_resolver import (
    SchemaContext,
    SchemaResolver,
    merge_schemas,
)

__all__ = [
    "PatchError",
    "PatchValidationResult",
    "PatchValidator",
    "PointerValidator",
    "SchemaContext",
    "SchemaResolver",
    "is_valid_pointer",
    "merge_schemas",
    "schema_at",
    "validate_patch",
]
