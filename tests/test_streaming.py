"""Tests for agent/streaming.py: line buffering and the validated patch stream."""

from __future__ import annotations

import json

from langchain_core.language_models.fake_chat_models import GenericFakeChatModel
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from json_patch_stream.agent.prompts import build_system_prompt
from json_patch_stream.agent.streaming import (
    JsonlLineBuffer,
    PatchStreamAgent,
    StreamStats,
    stream_patch_operations,
)


def _fake_model(*contents: str) -> GenericFakeChatModel:
    return GenericFakeChatModel(messages=iter([AIMessage(content=c) for c in contents]))


# ======================================================================
# JsonlLineBuffer
# ======================================================================
class TestJsonlLineBuffer:

    def test_partial_line_is_held(self):
        buffer = JsonlLineBuffer()
        assert buffer.feed('{"op": "ad') == []
        assert buffer.feed('d"}\n') == ['{"op": "add"}']

    def test_several_lines_in_one_chunk(self):
        buffer = JsonlLineBuffer()
        assert buffer.feed("a\nb\nc") == ["a", "b"]
        assert buffer.flush() == ["c"]

    def test_flush_drops_blank_tail(self):
        buffer = JsonlLineBuffer()
        buffer.feed("a\n   ")
        assert buffer.flush() == []

    def test_flush_empties_buffer(self):
        buffer = JsonlLineBuffer()
        buffer.feed("tail")
        buffer.flush()
        assert buffer.flush() == []


# ======================================================================
# StreamStats
# ======================================================================
class TestStreamStats:

    def test_reject_records_line(self):
        stats = StreamStats()
        stats.reject("bad", ["boom"])
        assert stats.rejected == 1
        assert stats.to_dict() == {
            "accepted": 0,
            "rejected": 1,
            "rejections": [{"line": "bad", "errors": ["boom"]}],
        }


# ======================================================================
# PatchStreamAgent.check_line
# ======================================================================
class TestCheckLine:

    def _agent(self, schema):
        return PatchStreamAgent(schema, model=_fake_model(), max_depth=64)

    def test_valid_line_is_returned_stripped(self, profile_schema):
        agent = self._agent(profile_schema)
        line = '  {"op": "add", "path": "/name", "value": "Alice"}  '
        assert agent.check_line(line) == line.strip()
        assert agent.stats.accepted == 1

    def test_invalid_operation_is_rejected(self, profile_schema):
        agent = self._agent(profile_schema)
        assert agent.check_line('{"op": "add", "path": "/bogus", "value": 1}') is None
        assert agent.stats.rejected == 1
        assert agent.stats.rejections[0]["errors"] == [
            'Path "/bogus" is not valid according to schema'
        ]

    def test_unparseable_line_is_rejected(self, profile_schema):
        agent = self._agent(profile_schema)
        assert agent.check_line("not json") is None
        assert agent.stats.rejected == 1
        assert agent.stats.rejections[0]["errors"][0].startswith("invalid JSON")

    def test_non_object_json_is_rejected(self, profile_schema):
        agent = self._agent(profile_schema)
        assert agent.check_line("[1, 2]") is None
        assert agent.stats.rejections[0]["errors"] == ["Operation must be an object"]

    def test_noise_is_ignored(self, profile_schema):
        agent = self._agent(profile_schema)
        assert agent.check_line("") is None
        assert agent.check_line("```json") is None
        assert agent.stats.rejected == 0
        assert agent.stats.accepted == 0


# ======================================================================
# PatchStreamAgent.stream
# ======================================================================
class TestStream:

    OUTPUT = "\n".join(
        [
            "```jsonl",
            '{"op": "add", "path": "/name", "value": "Alice"}',
            '{"op": "add", "path": "/bogus", "value": 1}',
            "oops",
            '{"op": "add", "path": "/skills", "value": []}',
            "```",
            '{"op": "add", "path": "/skills/-", "value": "Python"}',
        ]
    )

    def test_yields_only_valid_lines(self, profile_schema):
        agent = PatchStreamAgent(profile_schema, model=_fake_model(self.OUTPUT), max_depth=64)
        lines = list(agent.stream("Alice knows Python"))

        assert [json.loads(line)["path"] for line in lines] == ["/name", "/skills", "/skills/-"]
        assert agent.stats.accepted == 3
        assert agent.stats.rejected == 2

    def test_stats_reset_between_runs(self, profile_schema):
        model = _fake_model(self.OUTPUT, '{"op": "remove", "path": "/name"}\n')
        agent = PatchStreamAgent(profile_schema, model=model, max_depth=64)

        list(agent.stream("first"))
        assert list(agent.stream("second")) == []
        assert agent.stats.accepted == 0
        assert agent.stats.rejections[0]["errors"] == ['Cannot remove required property "name"']

    def test_build_messages(self, profile_schema):
        agent = PatchStreamAgent(profile_schema, model=_fake_model(), max_depth=64)
        system, human = agent.build_messages("make a profile")

        assert isinstance(system, SystemMessage)
        assert isinstance(human, HumanMessage)
        assert human.content == "make a profile"
        assert '"required"' in system.content

    def test_stream_patch_operations(self, simple_schema):
        model = _fake_model('{"op": "add", "path": "/name", "value": "Bob"}')
        lines = list(stream_patch_operations(simple_schema, "Bob", model=model))
        assert len(lines) == 1


class TestSystemPrompt:

    def test_embeds_schema(self, simple_schema):
        prompt = build_system_prompt(simple_schema)
        assert json.dumps(simple_schema, indent=2) in prompt
        assert "JSONL" in prompt
