"""Tests for reassembling streamed responses."""

import json

from localcoder.accumulator import DeltaAccumulator, accumulate
from localcoder.models import StreamChunk, ToolCallFragment


def fragment(index, id=None, name=None, arguments=None):
    return StreamChunk(
        tool_call_fragments=[
            ToolCallFragment(index=index, id=id, name=name, arguments=arguments)
        ]
    )


class TestText:
    def test_text_is_concatenated_in_order(self):
        text, calls = accumulate([StreamChunk(text="Hel"), StreamChunk(text="lo")])
        assert text == "Hello"
        assert calls == []

    def test_on_text_sees_every_fragment_as_it_arrives(self):
        seen = []
        acc = DeltaAccumulator(on_text=seen.append)
        acc.feed(StreamChunk(text="a"))
        assert seen == ["a"]
        acc.feed(StreamChunk(text="b"))
        assert seen == ["a", "b"]
        assert acc.text == "ab"

    def test_empty_and_missing_text_is_ignored(self):
        seen = []
        text, _ = accumulate(
            [StreamChunk(), StreamChunk(text=""), StreamChunk(text="x")], on_text=seen.append
        )
        assert text == "x"
        assert seen == ["x"]

    def test_empty_stream(self):
        assert accumulate([]) == ("", [])


class TestToolCalls:
    def test_single_call_split_across_chunks(self):
        text, calls = accumulate(
            [
                fragment(0, id="call_1", name="read_"),
                fragment(0, name="file"),
                fragment(0, arguments='{"file_'),
                fragment(0, arguments='path": "a.txt"}'),
            ]
        )
        assert text == ""
        assert len(calls) == 1
        assert calls[0].id == "call_1"
        assert calls[0].function_name == "read_file"
        assert json.loads(calls[0].function_args) == {"file_path": "a.txt"}

    def test_interleaved_indices_are_kept_apart(self):
        """Fragments of different calls may arrive in any order."""
        _, calls = accumulate(
            [
                fragment(1, id="b", name="write_file", arguments='{"file_path"'),
                fragment(0, id="a", name="list_files", arguments="{"),
                fragment(1, arguments=': "x", "content": "y"}'),
                fragment(0, arguments="}"),
            ]
        )
        assert [c.id for c in calls] == ["a", "b"]
        assert calls[0].function_args == "{}"
        assert json.loads(calls[1].function_args) == {"file_path": "x", "content": "y"}

    def test_calls_are_returned_in_index_order(self):
        _, calls = accumulate(
            [fragment(2, id="c", name="n2"), fragment(0, id="a", name="n0"), fragment(1, id="b", name="n1")]
        )
        assert [c.function_name for c in calls] == ["n0", "n1", "n2"]

    def test_later_id_replaces_earlier(self):
        _, calls = accumulate([fragment(0, id="first", name="x"), fragment(0, id="second")])
        assert calls[0].id == "second"

    def test_text_and_calls_together(self):
        text, calls = accumulate(
            [
                StreamChunk(text="Let me look."),
                fragment(0, id="call_1", name="list_files", arguments="{}"),
            ]
        )
        assert text == "Let me look."
        assert len(calls) == 1

    def test_invalid_json_arguments_are_kept(self):
        """The accumulator does not judge arguments; the dispatcher does."""
        _, calls = accumulate([fragment(0, id="c", name="read_file", arguments='{"file')])
        assert calls[0].function_args == '{"file'

    def test_chunk_with_text_and_fragment(self):
        chunk = StreamChunk(
            text="hi",
            tool_call_fragments=[ToolCallFragment(index=0, id="c", name="list_files")],
        )
        text, calls = accumulate([chunk])
        assert text == "hi"
        assert calls[0].function_args == ""
