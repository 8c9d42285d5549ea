"""
Core pytest configuration and fixtures for localcoder testing.

This module provides shared test fixtures, a scripted model provider that
replays canned streams, and the location-based test markers.
"""

import json
import os
from typing import Any, Dict, List, Optional, Sequence

import pytest
from localcoder.config import Settings
from localcoder.llm import LLM
from localcoder.models import (
    AssistantMessage,
    Message,
    StreamChunk,
    SystemMessage,
    ToolCall,
    ToolCallFragment,
    ToolMessage,
    UserMessage,
)

# ===== SCRIPTED PROVIDER =====


class ScriptedLLM(LLM):
    """Replays one list of chunks per ``stream_response`` call.

    Every request is recorded (a copy of the messages, the model and the
    tools) so tests can inspect exactly what the model was sent.
    """

    def __init__(self, responses: Sequence[List[StreamChunk]], models=None):
        self.responses = list(responses)
        self.requests: List[Dict[str, Any]] = []
        self.models = models if models is not None else ["scripted-v1"]

    def stream_response(self, messages, model, tools=None):
        self.requests.append(
            {"messages": list(messages), "model": model, "tools": tools}
        )
        if not self.responses:
            raise AssertionError("ScriptedLLM ran out of responses")
        for chunk in self.responses.pop(0):
            yield chunk

    def list_models(self):
        return list(self.models)


def text_response(*pieces: str) -> List[StreamChunk]:
    """A response made only of text chunks."""
    return [StreamChunk(text=piece) for piece in pieces]


def tool_response(
    name: str,
    args: Any,
    call_id: str = "call_1",
    index: int = 0,
    split: int = 3,
    text: Optional[str] = None,
) -> List[StreamChunk]:
    """A native tool call streamed the way servers do it.

    The first fragment carries id and name, the argument string follows in
    ``split`` pieces.
    """
    raw = args if isinstance(args, str) else json.dumps(args)
    chunks = []
    if text:
        chunks.append(StreamChunk(text=text))
    chunks.append(
        StreamChunk(
            tool_call_fragments=[ToolCallFragment(index=index, id=call_id, name=name)]
        )
    )
    step = max(1, -(-len(raw) // split)) if raw else 1
    for start in range(0, len(raw), step):
        chunks.append(
            StreamChunk(
                tool_call_fragments=[
                    ToolCallFragment(index=index, arguments=raw[start : start + step])
                ]
            )
        )
    return chunks


@pytest.fixture
def scripted_llm():
    """Factory for :class:`ScriptedLLM` instances."""
    return ScriptedLLM


@pytest.fixture(name="text_response")
def text_response_fixture():
    return text_response


@pytest.fixture(name="tool_response")
def tool_response_fixture():
    return tool_response


# ===== TEST DATA FIXTURES =====


@pytest.fixture
def sample_history() -> List[Message]:
    """A transcript covering every message variant."""
    call = ToolCall(
        id="call_1", function_name="read_file", function_args='{"file_path": "a.txt"}'
    )
    return [
        SystemMessage(content="You are helpful."),
        UserMessage(content="Show me a.txt"),
        AssistantMessage(content=None, tool_calls=[call]),
        ToolMessage(tool_call_id="call_1", content="hello"),
        AssistantMessage(content="It says hello."),
    ]


# ===== DIRECTORY FIXTURES =====


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """An empty working directory the tools operate in."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def settings(tmp_path, monkeypatch):
    """Settings isolated from the developer's environment and config file."""
    for name in list(os.environ):
        if name.startswith("LOCAL_LLM_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return Settings(model="test-model")


# ===== APP FIXTURES =====


@pytest.fixture
def test_app(settings):
    """
    Provides a LocalCoder app with an offline model and in-memory sessions.

    Ideal for integration tests that need the Flask server and the Dash
    callbacks without a model server.
    """
    from localcoder import LocalCoder
    from localcoder.llm import Echo
    from localcoder.store import InMemory

    return LocalCoder(settings=settings, llm=Echo(), store=InMemory())


# ===== CONFIGURATION =====


def pytest_configure(config):
    """Pytest configuration."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "slow: marks tests as slow-running")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on location."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
