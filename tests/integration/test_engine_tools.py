"""Integration tests for the turn engine driving the real builtin tools."""

import json
import os

import pytest
from localcoder.approval import ApprovalGate, AutoApprove
from localcoder.dispatcher import Dispatcher
from localcoder.engine import TurnEngine, TurnState
from localcoder.models import (
    AssistantMessage,
    SystemMessage,
    ToolMessage,
    UserMessage,
)
from localcoder.observers import RecordingObserver
from localcoder.tools import Builtin


def make_engine(llm, shell_timeout=120.0):
    dispatcher = Dispatcher(Builtin(shell_timeout), gate=ApprovalGate(AutoApprove()))
    return TurnEngine(llm, "test-model", dispatcher)


class TestRoundTrips:
    def test_plain_answer_adds_one_assistant_message(self, scripted_llm, text_response):
        history = [SystemMessage(content="sys")]
        engine = make_engine(scripted_llm([text_response("hello")]))

        engine.submit(history, "hi")

        assert history == [
            SystemMessage(content="sys"),
            UserMessage(content="hi"),
            AssistantMessage(content="hello"),
        ]
        assert engine.state is TurnState.DONE

    def test_list_files_then_answer(self, scripted_llm, tool_response, text_response, workspace):
        (workspace / "main.py").write_text("print('hi')")
        llm = scripted_llm([tool_response("list_files", {}), text_response("done")])
        engine = make_engine(llm)
        history = []

        engine.submit(history, "what is here?")

        assert len(history) == 4
        user, with_call, result, final = history
        assert user == UserMessage(content="what is here?")
        assert with_call.tool_calls[0].function_name == "list_files"
        assert result == ToolMessage(tool_call_id="call_1", content="[FILE] main.py")
        assert final == AssistantMessage(content="done")
        assert engine.state is TurnState.DONE


@pytest.mark.skipif(os.name != "posix", reason="uses POSIX shell commands")
class TestShellTurns:
    def test_timed_out_command_is_answered_and_turn_continues(
        self, scripted_llm, tool_response, text_response, workspace
    ):
        llm = scripted_llm(
            [
                tool_response("run_shell_command", {"command": "sleep 60"}),
                text_response("The command took too long."),
            ]
        )
        observer = RecordingObserver()
        engine = make_engine(llm, shell_timeout=1)

        answer = engine.run([UserMessage(content="wait a minute")], observer)

        assert answer == "The command took too long."
        sent = llm.requests[1]["messages"]
        assert sent[-1] == ToolMessage(
            tool_call_id="call_1", content="Error executing command: timed out after 1s"
        )
        assert "tool_error" not in observer.types()

    def test_write_then_run(self, scripted_llm, tool_response, text_response, workspace):
        script = "import sys\nprint('sum', sum(map(int, sys.argv[1:])))\n"
        llm = scripted_llm(
            [
                tool_response("write_file", {"file_path": "calc/add.py", "content": script}),
                tool_response(
                    "run_shell_command",
                    {"command": "python3 calc/add.py 2 3 || python calc/add.py 2 3"},
                    call_id="call_2",
                ),
                text_response("It prints sum 5."),
            ]
        )
        history = [UserMessage(content="write and run an adder")]
        make_engine(llm).run(history)

        tool_messages = [m for m in history if isinstance(m, ToolMessage)]
        assert tool_messages[0].content == "Successfully wrote to calc/add.py"
        assert "sum 5" in tool_messages[1].content

    def test_fenced_fallback_drives_real_tool(self, scripted_llm, text_response, workspace):
        (workspace / "todo.txt").write_text("buy milk")
        block = "```tool_request\n" + json.dumps(
            {"name": "read_file", "arguments": {"file_path": "todo.txt"}}
        ) + "\n```"
        llm = scripted_llm([text_response(block), text_response("Buy milk.")])
        history = [UserMessage(content="what's on my list?")]

        make_engine(llm).run(history)

        assert history[2] == ToolMessage(tool_call_id="text-tool-0", content="buy milk")
