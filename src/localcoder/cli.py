"""The ``local-coder`` command: a terminal REPL, or the web host with ``--gui``."""

import argparse
import json
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from .approval import ConsoleConfirm
from .assistant import Assistant
from .config import DEFAULT_MODEL, Settings
from .errors import LocalCoderError
from .llm import LLM, Echo
from .models import TurnEvent
from .observers import Observer

logger = logging.getLogger(__name__)

EXIT_COMMANDS = {"exit", "quit"}
PREVIEW_LINES = 8


class ConsoleObserver(Observer):
    """Renders turn events on the terminal."""

    def __init__(self, console: Console, indent: str = ""):
        super().__init__()
        self.console = console
        self.indent = indent
        self._in_text = False

    def finish(self) -> None:
        if self._in_text:
            self.console.print()
            self._in_text = False

    def handle(self, event: TurnEvent) -> None:
        data = event.data
        if event.type == "content":
            self.console.print(data["text"], end="", markup=False, highlight=False)
            self._in_text = True
        elif event.type == "enhancing_content":
            pass
        elif event.type == "tool_start":
            self.finish()
            args = data["args"]
            shown = json.dumps(args, indent=2) if isinstance(args, dict) else str(args)
            self.console.print(f"{self.indent}[bold yellow]> {data['name']}[/bold yellow]")
            for line in shown.splitlines()[:5]:
                self.console.print(f"{self.indent}  [dim]{escape(line)}[/dim]", highlight=False)
        elif event.type == "tool_result":
            self.console.print(f"{self.indent}[green]{data['name']} done[/green]")
        elif event.type == "tool_error":
            self.console.print(f"{self.indent}[red]{data['name']} failed: {escape(str(data['error']))}[/red]")
        elif event.type == "phase_start":
            self.finish()
            label = "ENHANCING PROMPT" if data["phase"] == "enhancing" else "EXECUTING"
            self.console.rule(f"[magenta]{label}[/magenta] [dim]{data['model']}[/dim]")
        elif event.type == "phase_end":
            self.finish()


def select_model(llm: LLM, console: Console, purpose: str = "") -> str:
    """Lets the user pick one of the server's models."""
    label = f" for {purpose}" if purpose else ""
    try:
        models = llm.list_models()
    except LocalCoderError as e:
        logger.warning("Listing models failed: %s", e)
        console.print(f"[red]Could not fetch models: {escape(str(e))}[/red]")
        models = []
    if not models:
        return Prompt.ask(f"Enter model name{label}", default=DEFAULT_MODEL, console=console)
    if len(models) == 1:
        console.print(f"[green]Found 1 model: [bold]{models[0]}[/bold][/green]")
        return models[0]
    for i, model in enumerate(models, 1):
        console.print(f"  {i}. {model}")
    choice = Prompt.ask(
        f"Select a model{label}",
        choices=[str(i) for i in range(1, len(models) + 1)],
        default="1",
        console=console,
    )
    return models[int(choice) - 1]


def review_enhanced_prompt(console: Console):
    def review(enhanced: str) -> bool:
        lines = [line for line in enhanced.splitlines() if line.strip()]
        for line in lines[:PREVIEW_LINES]:
            console.print(f"  [dim]{escape(line[:100])}[/dim]", highlight=False)
        if len(lines) > PREVIEW_LINES:
            console.print(f"  [dim]... ({len(lines) - PREVIEW_LINES} more lines)[/dim]")
        if Confirm.ask("Show full enhanced prompt?", default=False, console=console):
            console.print(enhanced, markup=False, highlight=False)
        proceed = Confirm.ask("Proceed with execution?", default=True, console=console)
        if not proceed:
            console.print("[yellow]Cancelled.[/yellow]")
        return proceed

    return review


def run_repl(assistant: Assistant, console: Console) -> None:
    settings = assistant.settings
    console.print(f"[green]Connected to[/green] {settings.base_url}")
    if settings.dual_mode:
        console.print(f"  Enhancer: {settings.thinking_model}")
        console.print(f"  Executor: {settings.executing_model}")
    else:
        console.print(f"  Model: {settings.model}")
    console.print("[dim]Type exit or quit to end the session.[/dim]")

    session = assistant.store.get_or_create("cli", dual_mode=settings.dual_mode)
    confirmer = ConsoleConfirm(console)
    review = review_enhanced_prompt(console)

    while True:
        try:
            message = Prompt.ask("[bold cyan]YOU[/bold cyan]", console=console)
        except (EOFError, KeyboardInterrupt):
            console.print()
            break
        if message.strip().lower() in EXIT_COMMANDS:
            break
        if not message.strip():
            continue

        observer = ConsoleObserver(console)
        try:
            assistant.chat(
                session,
                message,
                observer=observer,
                confirmer=confirmer,
                review=review,
            )
        except LocalCoderError as e:
            console.print(f"\n[red]Error: {escape(str(e))}[/red]")
        observer.finish()
    console.print("[yellow]Goodbye! Happy coding![/yellow]")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="local-coder",
        description="A CLI AI coding assistant using local LLMs",
    )
    parser.add_argument("-g", "--gui", action="store_true", help="start the web GUI instead of the CLI")
    parser.add_argument("-p", "--port", type=int, help="port for the web GUI")
    parser.add_argument("--dual", action="store_true", help="enhance each request with one model, execute it with another")
    parser.add_argument("--model", help="model for single mode")
    parser.add_argument("--thinking-model", help="model that enhances requests in dual mode")
    parser.add_argument("--executing-model", help="model that executes requests in dual mode")
    parser.add_argument("--echo", action="store_true", help="use the offline echo model")
    return parser


def configure(args: argparse.Namespace, settings: Settings, llm: LLM, console: Console) -> None:
    if args.port:
        settings.port = args.port
    if args.dual:
        settings.dual_mode = True
    if args.model:
        settings.use_model(args.model)
    if args.thinking_model:
        settings.thinking_model = args.thinking_model
    if args.executing_model:
        settings.executing_model = args.executing_model

    if settings.dual_mode:
        pick_thinking = not args.thinking_model and settings.thinking_model == DEFAULT_MODEL
        pick_executing = not args.executing_model and settings.executing_model == DEFAULT_MODEL
        if pick_thinking and pick_executing and Confirm.ask(
            "Use the same model for both thinking and executing?",
            default=False,
            console=console,
        ):
            model = select_model(llm, console, "thinking and executing")
            settings.thinking_model = settings.executing_model = model
            return
        if pick_thinking:
            settings.thinking_model = select_model(llm, console, "thinking")
        if pick_executing:
            settings.executing_model = select_model(llm, console, "executing")
    elif not args.model and settings.model == DEFAULT_MODEL:
        settings.use_model(select_model(llm, console))


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    console = Console()
    try:
        settings = Settings()
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        return 1
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    assistant = Assistant(settings=settings, llm=Echo() if args.echo else None)
    configure(args, settings, assistant.llm, console)

    if args.gui:
        from . import LocalCoder

        app = LocalCoder(
            settings=settings, llm=assistant.llm, tools=assistant.tools, store=assistant.store
        )
        console.print(f"Web GUI running at http://localhost:{settings.port}")
        app.run(port=settings.port)
    else:
        run_repl(assistant, console)
    return 0


if __name__ == "__main__":
    sys.exit(main())
