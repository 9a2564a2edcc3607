"""Stream JSON Patch operations from a chat model, keeping only the valid ones.

The model is asked for JSONL output. Streamed text is cut into complete lines;
every line is parsed and validated against the target schema before it is
handed downstream. Rejected lines are logged and counted, never raised.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from json_patch_stream.agent.prompts import build_system_prompt
from json_patch_stream.validators.patch_validator import validate_patch

logger = logging.getLogger(__name__)


class JsonlLineBuffer:
    """Accumulate streamed text and release it one complete line at a time."""

    def __init__(self) -> None:
        self._buffer = ""

    def feed(self, text: str) -> list[str]:
        """Add ``text`` and return the lines it completed (without newlines)."""
        self._buffer += text
        *lines, self._buffer = self._buffer.split("\n")
        return lines

    def flush(self) -> list[str]:
        """Return the pending partial line, if it holds anything."""
        tail, self._buffer = self._buffer, ""
        return [tail] if tail.strip() else []


@dataclass
class StreamStats:
    """Counters for one streaming run."""

    accepted: int = 0
    rejected: int = 0
    rejections: list[dict[str, Any]] = field(default_factory=list)

    def reject(self, line: str, errors: list[str]) -> None:
        self.rejected += 1
        self.rejections.append({"line": line, "errors": errors})

    def to_dict(self) -> dict[str, Any]:
        return {
            "accepted": self.accepted,
            "rejected": self.rejected,
            "rejections": list(self.rejections),
        }


def _chunk_text(chunk: BaseMessage) -> str:
    """Plain text of a streamed message chunk (string or content-block form)."""
    content = chunk.content
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class PatchStreamAgent:
    """Generate a document as a validated stream of JSON Patch lines."""

    def __init__(
        self,
        schema: Any,
        model: Optional[BaseChatModel] = None,
        max_depth: Optional[int] = None,
    ) -> None:
        if model is None:
            from json_patch_stream.clients import get_chat_model

            model = get_chat_model()
        if max_depth is None:
            from json_patch_stream.settings import get_settings

            max_depth = get_settings().MAX_RESOLUTION_DEPTH

        self.schema = schema
        self.model = model
        self.max_depth = max_depth
        self.stats = StreamStats()

    def build_messages(self, user_prompt: str) -> list[BaseMessage]:
        return [
            SystemMessage(content=build_system_prompt(self.schema)),
            HumanMessage(content=user_prompt),
        ]

    def stream(self, user_prompt: str) -> Iterator[str]:
        """Yield each valid patch line produced for ``user_prompt``.

        ``self.stats`` is reset at the start of every run.
        """
        self.stats = StreamStats()
        buffer = JsonlLineBuffer()

        for chunk in self.model.stream(self.build_messages(user_prompt)):
            for line in buffer.feed(_chunk_text(chunk)):
                accepted = self.check_line(line)
                if accepted is not None:
                    yield accepted

        for line in buffer.flush():
            accepted = self.check_line(line)
            if accepted is not None:
                yield accepted

        logger.info(
            "Patch stream finished: %d accepted, %d rejected",
            self.stats.accepted,
            self.stats.rejected,
        )

    def check_line(self, line: str) -> Optional[str]:
        """Return the stripped line if it is a valid patch operation, else None."""
        line = line.strip()
        # Blank lines and Markdown fences are noise, not rejections.
        if not line or line.startswith("```"):
            return None

        try:
            operation = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning("Skipping unparseable patch line %r: %s", line, e)
            self.stats.reject(line, [f"invalid JSON: {e.msg}"])
            return None

        result = validate_patch([operation], self.schema, max_depth=self.max_depth)
        if not result.valid:
            messages = [err.message for err in result.errors]
            logger.warning("Invalid JSON Patch operation: %s %s", line, messages)
            self.stats.reject(line, messages)
            return None

        self.stats.accepted += 1
        return line


def stream_patch_operations(
    schema: Any,
    user_prompt: str,
    model: Optional[BaseChatModel] = None,
) -> Iterator[str]:
    """
    Stream validated JSON Patch lines that build a document for ``schema``.

    Args:
        schema: Target JSON Schema.
        user_prompt: Description of the document to build.
        model: Chat model to use. Defaults to the configured one.

    Returns:
        An iterator of JSONL lines, each a single valid patch operation.
    """
    agent = PatchStreamAgent(schema, model=model)
    yield from agent.stream(user_prompt)
