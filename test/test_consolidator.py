#!/usr/bin/env python3
"""Tests for merging streamed assistant records."""

from claude_code_tree.consolidator import consolidate_messages
from claude_code_tree.models import MessageKind, TextBlock, ToolUseBlock
from claude_code_tree.parser import parse_lines


def _raw(records, *items):
    messages, errors = parse_lines(records.lines(*items), consolidate=False)
    assert errors == []
    return messages


class TestConsolidateMessages:
    def test_fragments_sharing_an_id_are_merged(self, records):
        raw = _raw(
            records,
            records.assistant([records.text("Let me check")], message_id="a1"),
            records.assistant([records.tool_use("t1", "Read", {"file_path": "x"})], message_id="a1"),
        )

        merged = consolidate_messages(raw)

        assert len(merged) == 1
        blocks = merged[0].content_blocks
        assert isinstance(blocks[0], TextBlock)
        assert isinstance(blocks[1], ToolUseBlock)
        assert blocks[0].text == "Let me check"
        assert blocks[1].id == "t1"

    def test_first_seen_order_is_kept(self, records):
        raw = _raw(
            records,
            records.assistant([records.text("one")], message_id="a1"),
            records.tool_result("t0", "x"),
            records.assistant([records.text("two")], message_id="a2"),
            records.assistant([records.text("one, continued")], message_id="a1"),
            records.init(),
        )

        merged = consolidate_messages(raw)

        assert [(m.kind, m.message_id) for m in merged] == [
            (MessageKind.ASSISTANT, "a1"),
            (MessageKind.USER, None),
            (MessageKind.ASSISTANT, "a2"),
            (MessageKind.SYSTEM, None),
        ]
        assert [b.text for b in merged[0].text_blocks] == ["one", "one, continued"]

    def test_idempotent(self, records):
        raw = _raw(
            records,
            records.assistant([records.text("a")], message_id="a1"),
            records.assistant([records.text("b")], message_id="a1"),
            records.assistant([records.text("c")]),
            records.tool_result("t1", "done"),
        )

        once = consolidate_messages(raw)
        twice = consolidate_messages(once)

        assert twice == once
        ids = [m.message_id for m in twice if m.message_id]
        assert len(ids) == len(set(ids))

    def test_input_is_not_mutated(self, records):
        raw = _raw(
            records,
            records.assistant([records.text("a")], message_id="a1"),
            records.assistant([records.text("b")], message_id="a1"),
        )

        merged = consolidate_messages(raw)

        assert len(raw[0].content_blocks) == 1
        assert len(merged[0].content_blocks) == 2
        assert merged[0] is not raw[0]

    def test_assistant_without_id_is_a_singleton(self, records):
        raw = _raw(
            records,
            records.assistant([records.text("a")]),
            records.assistant([records.text("b")]),
        )

        merged = consolidate_messages(raw)

        assert len(merged) == 2

    def test_non_assistant_records_pass_through(self, records):
        raw = _raw(records, records.init(), records.tool_result("t1", "ok"), records.result())

        merged = consolidate_messages(raw)

        assert len(merged) == 3
        assert all(a is b for a, b in zip(merged, raw))

    def test_empty_list(self):
        assert consolidate_messages([]) == []
