from __future__ import annotations

from typing import List

from prosubmit.utils import load_available_programs, parse_program_list


class _FakeClient:
    def __init__(self, body: str) -> None:
        self.body = body
        self.calls: List[str] = []

    def list_programs(self) -> str:
        self.calls.append("list_programs")
        return self.body


def test_parse_json_list() -> None:
    assert parse_program_list('["convertToJson", "wordCount", "convertToJson"]') == [
        "convertToJson",
        "wordCount",
    ]


def test_parse_json_objects() -> None:
    text = '{"programs": [{"name": "convertToJson", "timeout": 10}, {"name": "wordCount"}]}'
    assert parse_program_list(text) == ["convertToJson", "wordCount"]


def test_parse_json_mapping_of_names() -> None:
    text = '{"convertToJson": "converts text", "wordCount": "counts words"}'
    assert parse_program_list(text) == ["convertToJson", "wordCount"]


def test_parse_text_lines() -> None:
    text = "\n".join(
        [
            "- convertToJson: converts a text file",
            "* wordCount   counts words",
            "",
            "!!! banner",
        ]
    )
    assert parse_program_list(text) == ["convertToJson", "wordCount"]


def test_parse_empty() -> None:
    assert parse_program_list("") == []
    assert parse_program_list("   \n") == []


def test_load_available_programs_uses_client() -> None:
    client = _FakeClient('["a", "b"]')
    assert load_available_programs(client) == ["a", "b"]  # type: ignore[arg-type]
    assert client.calls == ["list_programs"]
