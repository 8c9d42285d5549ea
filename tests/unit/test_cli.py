"""Tests for the terminal host."""

import io
from unittest.mock import patch

import pytest
from rich.console import Console
from localcoder.cli import (
    ConsoleObserver,
    build_parser,
    configure,
    main,
    review_enhanced_prompt,
    select_model,
)
from localcoder.errors import TransportError
from localcoder.llm import Echo
from localcoder.models import TurnEvent


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=120, color_system=None)


def output(console):
    return console.file.getvalue()


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.gui is False
        assert args.dual is False
        assert args.port is None
        assert args.model is None

    def test_flags(self):
        args = build_parser().parse_args(
            ["--gui", "-p", "8080", "--dual", "--thinking-model", "t", "--executing-model", "e"]
        )
        assert (args.gui, args.port, args.dual) == (True, 8080, True)
        assert (args.thinking_model, args.executing_model) == ("t", "e")


class TestConfigure:
    def test_model_flag_skips_selection(self, settings, console):
        args = build_parser().parse_args(["--model", "m1", "--port", "4000"])
        with patch("localcoder.cli.select_model") as select:
            configure(args, settings, Echo(), console)
        select.assert_not_called()
        assert settings.model == "m1"
        assert settings.port == 4000

    def test_dual_flag_selects_both_models(self, settings, console):
        args = build_parser().parse_args(["--dual"])
        with patch("localcoder.cli.Confirm.ask", return_value=False), patch(
            "localcoder.cli.select_model", side_effect=["big", "small"]
        ):
            configure(args, settings, Echo(), console)
        assert settings.dual_mode is True
        assert (settings.thinking_model, settings.executing_model) == ("big", "small")

    def test_dual_flag_with_one_shared_model(self, settings, console):
        args = build_parser().parse_args(["--dual"])
        with patch("localcoder.cli.Confirm.ask", return_value=True) as ask, patch(
            "localcoder.cli.select_model", return_value="both"
        ) as select:
            configure(args, settings, Echo(), console)
        assert "same model" in ask.call_args.args[0]
        select.assert_called_once()
        assert (settings.thinking_model, settings.executing_model) == ("both", "both")

    def test_shared_model_question_skipped_when_one_is_given(self, settings, console):
        args = build_parser().parse_args(["--dual", "--thinking-model", "big"])
        with patch("localcoder.cli.Confirm.ask") as ask, patch(
            "localcoder.cli.select_model", return_value="small"
        ):
            configure(args, settings, Echo(), console)
        ask.assert_not_called()
        assert (settings.thinking_model, settings.executing_model) == ("big", "small")


class TestSelectModel:
    def test_single_model_is_picked(self, console):
        assert select_model(Echo(), console) == "echo-v1"

    def test_choice_among_several(self, console, scripted_llm):
        llm = scripted_llm([], models=["a", "b", "c"])
        with patch("localcoder.cli.Prompt.ask", return_value="2"):
            assert select_model(llm, console) == "b"
        assert "3. c" in output(console)

    def test_unreachable_server_falls_back_to_manual_entry(self, console):
        class Down(Echo):
            def list_models(self):
                raise TransportError("Connection refused")

        with patch("localcoder.cli.Prompt.ask", side_effect=lambda *a, **kw: kw["default"]):
            assert select_model(Down(), console) == "local-model"
        assert "Could not fetch models" in output(console)


class TestReview:
    def test_preview_shows_first_lines(self, console):
        enhanced = "\n".join(f"line {i}" for i in range(12))
        with patch("localcoder.cli.Confirm.ask", side_effect=[False, True]):
            assert review_enhanced_prompt(console)(enhanced) is True
        shown = output(console)
        assert "line 7" in shown
        assert "line 8" not in shown
        assert "4 more lines" in shown

    def test_full_prompt_on_request(self, console):
        enhanced = "\n".join(f"line {i}" for i in range(12))
        with patch("localcoder.cli.Confirm.ask", side_effect=[True, True]):
            review_enhanced_prompt(console)(enhanced)
        assert "line 11" in output(console)

    def test_decline(self, console):
        with patch("localcoder.cli.Confirm.ask", side_effect=[False, False]):
            assert review_enhanced_prompt(console)("plan") is False
        assert "Cancelled" in output(console)


class TestConsoleObserver:
    def test_renders_tool_activity(self, console):
        observer = ConsoleObserver(console)
        observer.emit(TurnEvent(type="content", data={"text": "Checking"}))
        observer.emit(
            TurnEvent(type="tool_start", data={"name": "read_file", "args": {"file_path": "a"}})
        )
        observer.emit(TurnEvent(type="tool_result", data={"name": "read_file", "result": "x"}))
        observer.emit(TurnEvent(type="tool_error", data={"name": "write_file", "error": "bad"}))
        shown = output(console)
        assert "Checking\n" in shown
        assert "> read_file" in shown
        assert "read_file done" in shown
        assert "write_file failed: bad" in shown

    def test_enhancing_text_is_not_printed(self, console):
        observer = ConsoleObserver(console)
        observer.emit(TurnEvent(type="enhancing_content", data={"text": "hidden"}))
        assert "hidden" not in output(console)


class TestMain:
    def test_repl_round_with_echo(self, settings, capsys):
        with patch("localcoder.cli.Prompt.ask", side_effect=["hello there", "", "exit"]):
            assert main(["--echo"]) == 0
        out = capsys.readouterr().out
        assert "echo-v1" in out
        assert "hello there" in out
        assert "Goodbye" in out

    def test_eof_ends_session(self, settings, capsys):
        with patch("localcoder.cli.Prompt.ask", side_effect=EOFError):
            assert main(["--echo", "--model", "m"]) == 0
        assert "Goodbye" in capsys.readouterr().out

    def test_gui_flag_starts_web_host(self, settings):
        with patch("localcoder.LocalCoder") as app_cls:
            assert main(["--echo", "--gui", "--model", "m", "--port", "4321"]) == 0
        app_cls.return_value.run.assert_called_once_with(port=4321)
