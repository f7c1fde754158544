"""Pytest configuration and shared fixtures."""

import json
from pathlib import Path
from typing import Any, Optional

import pytest


class Records:
    """Builders for stream-json records, as the CLI emits them."""

    @staticmethod
    def init(session_id: str = "s1", model: str = "m1", cwd: str = "/repo") -> dict[str, Any]:
        return {
            "type": "system",
            "subtype": "init",
            "session_id": session_id,
            "model": model,
            "cwd": cwd,
        }

    @staticmethod
    def text(text: str) -> dict[str, Any]:
        return {"type": "text", "text": text}

    @staticmethod
    def tool_use(tool_id: str, name: str, tool_input: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        return {"type": "tool_use", "id": tool_id, "name": name, "input": tool_input or {}}

    @staticmethod
    def assistant(
        content: list[dict[str, Any]], message_id: Optional[str] = None
    ) -> dict[str, Any]:
        message: dict[str, Any] = {"role": "assistant", "content": content}
        if message_id is not None:
            message["id"] = message_id
        return {"type": "assistant", "session_id": "s1", "message": message}

    @staticmethod
    def tool_result(tool_use_id: str, content: Any, is_error: bool = False) -> dict[str, Any]:
        block: dict[str, Any] = {
            "type": "tool_result",
            "tool_use_id": tool_use_id,
            "content": content,
        }
        if is_error:
            block["is_error"] = True
        return {
            "type": "user",
            "session_id": "s1",
            "message": {"role": "user", "content": [block]},
        }

    @staticmethod
    def result(
        subtype: str = "success", cost: float = 0.0123, duration: int = 4500, turns: int = 3
    ) -> dict[str, Any]:
        return {
            "type": "result",
            "subtype": subtype,
            "session_id": "s1",
            "total_cost_usd": cost,
            "duration_ms": duration,
            "num_turns": turns,
        }

    @staticmethod
    def lines(*records: dict[str, Any]) -> list[str]:
        return [json.dumps(record) for record in records]


@pytest.fixture
def records() -> type[Records]:
    return Records


@pytest.fixture
def test_data_dir() -> Path:
    """Return path to test data directory."""
    return Path(__file__).parent / "test_data"


@pytest.fixture
def scenario_lines(records: type[Records]) -> list[str]:
    """Init, one Read tool call and its one-word result."""
    return records.lines(
        records.init(),
        records.assistant(
            [records.tool_use("t1", "Read", {"file_path": "x.txt"})], message_id="a1"
        ),
        records.tool_result("t1", "hello"),
    )


@pytest.fixture
def write_jsonl(tmp_path: Path):
    """Write lines to a JSONL file under tmp_path and return its path."""

    def _write(lines: list[str], name: str = "transcript.jsonl") -> Path:
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
