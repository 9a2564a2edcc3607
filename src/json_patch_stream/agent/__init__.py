from json_patch_stream.agent.prompts import build_system_prompt
from json_patch_stream.agent.streaming import (
    JsonlLineBuffer,
    PatchStreamAgent,
    StreamStats,
    stream_patch_operations,
)

__all__ = [
    "JsonlLineBuffer",
    "PatchStreamAgent",
    "StreamStats",
    "build_system_prompt",
    "stream_patch_operations",
]
