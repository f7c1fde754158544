#!/usr/bin/env python3
"""Tests for building the session tree."""

import json
import logging
import re

import pytest

from claude_code_tree.classifier import ContentClassifier
from claude_code_tree.errors import TreeInvariantError
from claude_code_tree.models import (
    ContentCategory,
    MessageNode,
    ResultNode,
    SessionInfo,
    SessionNode,
    SourceRef,
    TextNode,
    ToolNode,
    ToolUseBlock,
)
from claude_code_tree.parser import get_session_info, parse_lines
from claude_code_tree.tree_builder import attach_result, build_tree, tool_summary


def build(lines, session_info=None, **kwargs):
    messages, errors = parse_lines(lines)
    assert errors == []
    return build_tree(messages, session_info, **kwargs)


def only_tool(root: SessionNode) -> ToolNode:
    message = root.children[0]
    assert isinstance(message, MessageNode)
    tool = message.children[0]
    assert isinstance(tool, ToolNode)
    return tool


class TestScenarios:
    def test_read_tool_with_short_result(self, scenario_lines):
        messages, errors = parse_lines(scenario_lines)
        root = build_tree(messages, get_session_info(messages))

        assert errors == []
        assert root.session_id == "s1"
        assert root.model == "m1"
        assert root.display_text == "Session: s1"
        assert len(root.children) == 1

        message = root.children[0]
        assert isinstance(message, MessageNode)
        assert message.id == "msg-a1"
        assert message.display_text == "Claude: Used Read"

        tool = message.children[0]
        assert isinstance(tool, ToolNode)
        assert tool.tool_use_id == "t1"
        assert tool.tool_name == "Read"
        assert tool.display_text == "📖 Read x.txt"
        assert tool.has_result is True

        result = tool.result
        assert result is not None
        assert result.classification is not None
        assert result.classification.category == ContentCategory.FILE_CONTENT
        assert result.use_rich_display is False
        assert [child.display_text for child in result.children] == ["hello"]
        assert isinstance(result.children[0], TextNode)

    def test_init_record_seeds_session_without_hint(self, scenario_lines):
        root = build(scenario_lines)
        assert root.session_id == "s1"
        assert root.id == "session-s1"
        assert root.model == "m1"

    @pytest.mark.parametrize(
        "tool_name,category",
        [
            ("Read", ContentCategory.FILE_CONTENT),
            ("mcp__api__fetch", ContentCategory.JSON_API_RESPONSE),
        ],
    )
    def test_large_json_result_is_rich(self, records, tool_name, category):
        blob = json.dumps({"a": 1, "data": "x" * 280})
        assert len(blob) > 200
        root = build(
            records.lines(
                records.init(),
                records.assistant([records.tool_use("t1", tool_name, {"file_path": "x.json"})], "a1"),
                records.tool_result("t1", blob),
            )
        )

        result = only_tool(root).result

        assert result is not None
        assert result.classification is not None
        assert result.classification.category == category
        assert result.use_rich_display is True
        assert result.children == []

    def test_consolidated_message_has_preview_and_tool(self, records):
        root = build(
            records.lines(
                records.assistant([records.text("Let me look")], "a1"),
                records.assistant([records.tool_use("t1", "Grep", {"pattern": "x"})], "a1"),
            )
        )

        assert len(root.children) == 1
        message = root.children[0]
        assert isinstance(message, MessageNode)
        assert message.preview == "Let me look"
        assert len(message.children) == 1
        assert isinstance(message.children[0], ToolNode)

    def test_result_for_unknown_tool_use_is_ignored(self, records):
        root = build(
            records.lines(
                records.assistant([records.text("Hi")], "a1"),
                records.tool_result("ghost", "boo"),
            )
        )

        assert len(root.children) == 1
        assert all(not isinstance(node, ResultNode) for node in root.walk())


class TestToolResultLinkage:
    def test_tool_without_result(self, records):
        root = build(
            records.lines(records.assistant([records.tool_use("t1", "Bash", {"command": "ls"})], "a1"))
        )
        tool = only_tool(root)
        assert tool.has_result is False
        assert tool.children == []

    def test_exactly_one_result_child(self, records):
        root = build(
            records.lines(
                records.assistant([records.tool_use("X", "Bash", {"command": "ls"})], "a1"),
                records.tool_result("X", "a.txt"),
            )
        )
        tool = only_tool(root)
        results = [c for c in tool.children if isinstance(c, ResultNode)]
        assert tool.has_result is True
        assert len(results) == 1
        assert results[0].tool_use_id == "X"

    def test_tool_order_follows_blocks(self, records):
        root = build(
            records.lines(
                records.assistant(
                    [
                        records.tool_use("t1", "Read", {"file_path": "/a/b.py"}),
                        records.tool_use("t2", "Bash", {"command": "pytest"}),
                        records.tool_use("t3", "Write", {"file_path": "c.txt"}),
                    ],
                    "a1",
                )
            )
        )
        message = root.children[0]
        assert [c.tool_use_id for c in message.children if isinstance(c, ToolNode)] == ["t1", "t2", "t3"]
        assert message.display_text == "Claude: Used 3 tools: Read, Bash, Write"

    def test_second_result_violates_invariant(self, records):
        root = build(
            records.lines(
                records.assistant([records.tool_use("t1", "Bash", {"command": "ls"})], "a1"),
                records.tool_result("t1", "a.txt"),
            )
        )
        tool = only_tool(root)
        duplicate = ResultNode(id="result-t1-again", tool_use_id="t1")
        with pytest.raises(TreeInvariantError):
            attach_result(tool, duplicate)

    def test_source_refs_point_into_message_list(self, records):
        messages, _ = parse_lines(
            records.lines(
                records.init(),
                records.assistant([records.text("Hi"), records.tool_use("t1", "Bash", {})], "a1"),
                records.tool_result("t1", "ok"),
            )
        )
        root = build_tree(messages)
        tool = only_tool(root)
        assert tool.source == SourceRef(1, 1)
        assert tool.result is not None
        assert tool.result.source == SourceRef(2, 0)


class TestDeterminism:
    def test_empty_message_list(self):
        root = build_tree([])
        assert root.children == []
        assert root.session_id == "unknown"

    def test_none_is_a_contract_violation(self):
        with pytest.raises(TypeError):
            build_tree(None)  # type: ignore[arg-type]

    def test_same_input_same_tree(self, test_data_dir):
        lines = (test_data_dir / "stream_session.jsonl").read_text(encoding="utf-8").splitlines()
        messages, _ = parse_lines(lines)
        info = get_session_info(messages)

        first = build_tree(messages, info)
        second = build_tree(messages, info)

        assert first.to_dict() == second.to_dict()
        assert [n.id for n in first.walk()] == [n.id for n in second.walk()]

    def test_node_ids_are_unique(self, test_data_dir):
        lines = (test_data_dir / "stream_session.jsonl").read_text(encoding="utf-8").splitlines()
        messages, _ = parse_lines(lines)
        ids = [node.id for node in build_tree(messages).walk()]
        assert len(ids) == len(set(ids))

    def test_repeated_assistant_line_yields_one_tool_node(self, records):
        assistant = records.assistant(
            [records.tool_use("t1", "Read", {"file_path": "x.txt"})], "a1"
        )
        root = build(records.lines(assistant, assistant, records.tool_result("t1", "hello")))

        ids = [node.id for node in root.walk()]
        assert len(ids) == len(set(ids))

        message = root.children[0]
        assert isinstance(message, MessageNode)
        assert message.preview == "Used Read"
        assert [child.id for child in message.children] == ["tool-t1"]
        tool = only_tool(root)
        assert [child.id for child in tool.children] == ["result-t1"]

    def test_tool_use_id_shared_by_two_messages_is_shown_once(self, records):
        root = build(
            records.lines(
                records.assistant([records.tool_use("t1", "Bash", {"command": "ls"})], "a1"),
                records.assistant([records.tool_use("t1", "Bash", {"command": "ls"})], "a2"),
                records.tool_result("t1", "a.txt"),
            )
        )

        first, second = root.children
        assert [child.id for child in first.children] == ["tool-t1"]
        assert second.children == []
        ids = [node.id for node in root.walk()]
        assert len(ids) == len(set(ids))

    def test_message_without_id_gets_content_id(self, records):
        lines = records.lines(records.assistant([records.text("anonymous")]))
        first = build(lines).children[0]
        second = build(lines).children[0]
        assert re.fullmatch(r"msg-[0-9a-f]{12}", first.id)
        assert first.id == second.id

    def test_reappearing_message_id_is_processed_once(self, records):
        messages, _ = parse_lines(
            records.lines(
                records.assistant([records.text("one")], "a1"),
                records.assistant([records.text("two")], "a1"),
            ),
            consolidate=False,
        )
        root = build_tree(messages)
        assert len(root.children) == 1


class TestResultInlining:
    def _result(self, records, content, tool_name="Bash", is_error=False) -> ResultNode:
        root = build(
            records.lines(
                records.assistant([records.tool_use("t1", tool_name, {})], "a1"),
                records.tool_result("t1", content, is_error=is_error),
            )
        )
        result = only_tool(root).result
        assert result is not None
        return result

    def test_short_content_single_child(self, records):
        result = self._result(records, "a.txt\nb.txt")
        assert [c.display_text for c in result.children] == ["a.txt b.txt"]

    def test_compact_content_two_lines_and_marker(self, records):
        result = self._result(records, "one\ntwo\nthree\nfour")
        assert [c.display_text for c in result.children] == ["one", "two", "… 2 more lines"]

    def test_single_remaining_line_marker(self, records):
        result = self._result(records, "one\ntwo\nthree")
        assert [c.display_text for c in result.children] == ["one", "two", "… 1 more line"]

    def test_final_newline_is_not_an_extra_line(self, records):
        result = self._result(records, "a.txt\nb.txt\n")
        assert [c.display_text for c in result.children] == ["a.txt b.txt"]

    def test_compact_content_with_final_newline(self, records):
        result = self._result(records, "one\ntwo\nthree\nfour\n")
        assert [c.display_text for c in result.children] == ["one", "two", "… 2 more lines"]

    def test_blank_lines_are_not_previewed(self, records):
        result = self._result(records, "a\n\nb\nc")
        assert [c.display_text for c in result.children] == ["a", "b", "… 1 more line"]
        assert all(c.display_text for c in result.children)

    def test_text_child_ids_are_unique(self, records):
        result = self._result(records, "one\ntwo\nthree")
        ids = [c.id for c in result.children]
        assert len(set(ids)) == 3
        assert all(i.startswith("result-t1-text-") for i in ids)

    def test_five_lines_is_not_rich(self, records):
        result = self._result(records, "l1\nl2\nl3\nl4\nl5")
        assert result.use_rich_display is False
        assert [c.display_text for c in result.children] == ["l1 l2 l3 l4 l5"]

    def test_six_lines_is_rich_without_children(self, records):
        result = self._result(records, "l1\nl2\nl3\nl4\nl5\nl6")
        assert result.use_rich_display is True
        assert result.children == []

    def test_empty_content(self, records):
        result = self._result(records, "")
        assert result.children == []
        assert result.display_text == "Result"

    def test_error_result(self, records):
        result = self._result(records, "permission denied", is_error=True)
        assert result.is_error is True
        assert result.display_text == "❌ Error"
        assert result.use_rich_display is True
        assert result.children == []
        assert result.classification is not None
        assert result.classification.metadata["error_type"] == "permission_denied"

    def test_result_display_text_is_first_line(self, records):
        result = self._result(records, "x" * 100 + "\nsecond")
        assert result.display_text == "x" * 57 + "..."


class TestMessageNodes:
    def test_long_prose_is_chunked(self, records):
        text = " ".join(["word"] * 60)
        root = build(records.lines(records.assistant([records.text(text)], "a1")))
        message = root.children[0]

        assert len(message.children) >= 2
        assert message.children[0].display_text.startswith("Full text: word")
        assert all(c.display_text.startswith("          ") for c in message.children[1:])
        assert len(message.display_text) == 80

    def test_short_prose_has_no_children(self, records):
        root = build(records.lines(records.assistant([records.text("Done.")], "a1")))
        assert root.children[0].children == []
        assert root.children[0].display_text == "Claude: Done."

    def test_prose_newlines_are_cleaned(self, records):
        root = build(records.lines(records.assistant([records.text("a\nb\r\n  c")], "a1")))
        assert root.children[0].preview == "a b c"

    def test_tool_summary(self):
        one = [ToolUseBlock(id="1", name="Read")]
        two = [ToolUseBlock(id="1", name="Read"), ToolUseBlock(id="2", name="Bash")]
        assert tool_summary(one) == "Used Read"
        assert tool_summary(two) == "Used 2 tools: Read, Bash"

    @pytest.mark.parametrize(
        "name,tool_input,display",
        [
            ("Read", {"file_path": "/repo/src/app.py"}, "📖 Read app.py"),
            ("Edit", {"file_path": "notes.md"}, "✏️ Edit notes.md"),
            ("Bash", {"command": "pytest -x tests/unit/test_parser.py"}, "💻 Bash pytest -x tests/unit/test_p..."),
            ("mcp__context7__get_docs", {"libraryName": "textual"}, "🔌 mcp__context7__get_docs textual"),
            ("Task", {"description": "explore"}, "🔧 Task"),
            ("TodoWrite", {}, "🔧 TodoWrite"),
        ],
    )
    def test_tool_display_text(self, records, name, tool_input, display):
        root = build(records.lines(records.assistant([records.tool_use("t1", name, tool_input)], "a1")))
        assert only_tool(root).display_text == display

    def test_non_object_tool_input(self, records):
        root = build(
            records.lines(
                records.assistant([records.tool_use("t1", "Bash", ["ls", "-la"])], "a1"),
                records.tool_result("t1", "a.txt"),
            )
        )
        tool = only_tool(root)
        assert tool.display_text == "💻 Bash"
        assert tool.tool_input == ["ls", "-la"]
        assert tool.has_result is True


class TestSessionNode:
    def test_result_summary_node(self, records):
        root = build(records.lines(records.init(), records.result()))
        assert len(root.children) == 1
        summary = root.children[0]
        assert isinstance(summary, TextNode)
        assert summary.display_text == (
            "Session Complete: success | Cost: $0.0123 | Duration: 4500ms | Turns: 3"
        )

    def test_session_hint(self):
        info = SessionInfo(id="0123456789abcdef", model="m", timestamp="2025-06-01 10:00")
        root = build_tree([], info)
        assert root.display_text == "Session: 01234567 [2025-06-01 10:00]"
        assert root.expanded is True

    def test_fixture_transcript(self, test_data_dir):
        lines = (test_data_dir / "stream_session.jsonl").read_text(encoding="utf-8").splitlines()
        messages, errors = parse_lines(lines)
        root = build_tree(messages, get_session_info(messages))

        assert errors == []
        assert [type(c).__name__ for c in root.children] == [
            "MessageNode",
            "MessageNode",
            "MessageNode",
            "MessageNode",
            "TextNode",
        ]
        read_tool, bash_tool, mcp_tool = (m.children[0] for m in root.children[:3])

        read_result = read_tool.result
        assert read_result.classification.category == ContentCategory.FILE_CONTENT
        assert read_result.classification.metadata["file_type"] == "python"
        assert read_result.use_rich_display is True

        bash_result = bash_tool.result
        assert bash_result.classification.category == ContentCategory.COMMAND_OUTPUT
        assert [c.display_text for c in bash_result.children] == ["config.py main.py"]

        mcp_result = mcp_tool.result
        assert mcp_result.classification.category == ContentCategory.JSON_API_RESPONSE
        assert mcp_result.use_rich_display is True


class FailingClassifier(ContentClassifier):
    def classify(self, block, tool_name=None):
        raise RuntimeError("classifier exploded")


class TestClassificationFailure:
    def test_failure_falls_back_and_build_continues(self, records, caplog):
        lines = records.lines(
            records.assistant(
                [records.tool_use("t1", "Bash", {}), records.tool_use("t2", "Bash", {})], "a1"
            ),
            records.tool_result("t1", "one"),
            records.tool_result("t2", "two"),
        )
        with caplog.at_level(logging.WARNING, logger="claude_code_tree.tree_builder"):
            root = build(lines, classifier=FailingClassifier())

        tools = root.children[0].children
        assert all(t.has_result for t in tools)
        for tool in tools:
            assert tool.result.classification.category == ContentCategory.GENERIC_TEXT
            assert tool.result.classification.confidence == 0.0
            assert "classifier exploded" in tool.result.classification.metadata["classification_error"]
        assert "Classification failed" in caplog.text
