"""Unit tests for session log shard helpers."""

import json

from log_fixtures import assistant_text, system, write_lines

from cli_agent_bridge.utils.session_log import (
    count_lines,
    list_shards,
    read_entries,
    snapshot_line_counts,
)


class TestShardListing:
    def test_missing_directory(self, tmp_path):
        assert list_shards(tmp_path / "nope") == []
        assert snapshot_line_counts(tmp_path / "nope") == {}

    def test_only_jsonl_files_sorted(self, tmp_path):
        (tmp_path / "b.jsonl").write_text("")
        (tmp_path / "a.jsonl").write_text("")
        (tmp_path / "notes.txt").write_text("")
        (tmp_path / "dir.jsonl").mkdir()
        assert [p.name for p in list_shards(tmp_path)] == ["a.jsonl", "b.jsonl"]


class TestCountLines:
    def test_partial_trailing_line_not_counted(self, tmp_path):
        path = tmp_path / "a.jsonl"
        path.write_text('{"type": "x"}\n{"type": "y"}\n{"type"')
        assert count_lines(path) == 2

    def test_missing_file(self, tmp_path):
        assert count_lines(tmp_path / "gone.jsonl") == 0

    def test_snapshot(self, tmp_path):
        write_lines(tmp_path / "a.jsonl", [system("x")] * 3)
        assert snapshot_line_counts(tmp_path) == {tmp_path / "a.jsonl": 3}


class TestReadEntries:
    def test_reads_from_offset_and_skips_malformed(self, tmp_path):
        path = tmp_path / "a.jsonl"
        write_lines(
            path,
            [assistant_text("old"), assistant_text("older"), "{broken", assistant_text("new")],
        )
        entries = read_entries(path, start_line=2)
        assert [e.text_blocks() for e in entries] == [["new"]]

    def test_raw_line_separator_does_not_split_entries(self, tmp_path):
        path = tmp_path / "a.jsonl"
        raw = json.dumps(
            {"type": "assistant", "message": {"content": [{"type": "text", "text": "a\u2028b"}]}},
            ensure_ascii=False,
        )
        write_lines(path, [raw, assistant_text("next")])
        assert count_lines(path) == 2
        assert len(read_entries(path)) == 2
        entries = read_entries(path, start_line=1)
        assert entries[0].text_blocks() == ["next"]

    def test_missing_file(self, tmp_path):
        assert read_entries(tmp_path / "gone.jsonl") == []
