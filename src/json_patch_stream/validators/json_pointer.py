"""JSON Pointer (RFC 6901) helpers shared by the validators."""

from __future__ import annotations

import re

ROOT_POINTERS: tuple[str, ...] = ("", "/")

_ARRAY_INDEX_RE = re.compile(r"0|[1-9][0-9]*")


def is_root_pointer(pointer: str) -> bool:
    return pointer in ROOT_POINTERS


def decode_pointer_token(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def parse_json_pointer(pointer: str) -> list[str]:
    """Split a pointer into unescaped reference tokens.

    ``""`` and ``"/"`` both address the document root and yield ``[]``.

    Raises:
        ValueError: If a non-root pointer does not start with ``/``.
    """
    if is_root_pointer(pointer):
        return []
    if not pointer.startswith("/"):
        raise ValueError(f'Invalid JSON Pointer (must start with "/"): {pointer}')
    return [decode_pointer_token(t) for t in pointer[1:].split("/")]


def split_parent(pointer: str) -> tuple[str, str]:
    """Return ``(parent_pointer, last_token)`` for a non-root pointer.

    The last token is returned still escaped, exactly as it appears in the
    pointer string.
    """
    last_slash = pointer.rfind("/")
    parent = "/" if last_slash == 0 else pointer[:last_slash]
    return parent, pointer[last_slash + 1:]


def is_array_index(token: str) -> bool:
    """True for a canonical non-negative decimal integer (no sign, no leading zeros)."""
    return bool(_ARRAY_INDEX_RE.fullmatch(token))
