"""Running finalized tool calls."""

import json
import logging
from typing import Any, Dict, Optional

from .approval import DENIED_MESSAGE, ApprovalGate
from .models import ToolCall, ToolResult, TurnEvent
from .observers import Observer
from .tools import Tool, ToolNotFound

logger = logging.getLogger(__name__)

PARSE_ERROR = "Error: Failed to parse tool arguments"
TRUNCATION_NOTICE = "\n... (truncated)"


class Dispatcher:
    """Maps tool calls to the registered callables and runs them.

    Every dispatch produces exactly one :class:`ToolResult`, whatever happens,
    and is reported to the observer as ``tool_start`` followed by either
    ``tool_result`` or ``tool_error``.

    Parameters
    ----------
    tools : Tool
        The registry to resolve names against.
    gate : ApprovalGate
        Consulted after the arguments parse and before the tool runs.
    display_limit : int, default=5000
        Characters of output included in ``tool_result`` events. The full
        output is always returned.
    """

    def __init__(
        self, tools: Tool, gate: Optional[ApprovalGate] = None, display_limit: int = 5000
    ):
        self.tools = tools
        self.gate = gate if gate is not None else ApprovalGate()
        self.display_limit = display_limit

    def dispatch(
        self,
        tool_call: ToolCall,
        observer: Optional[Observer] = None,
        auto_approve: bool = False,
    ) -> ToolResult:
        observer = observer if observer is not None else Observer()
        name = tool_call.function_name

        args = self._parse_arguments(tool_call.function_args)
        if args is None:
            observer.emit(_start(name, tool_call.function_args))
            observer.emit(_error(name, "Failed to parse arguments"))
            return self._result(tool_call, PARSE_ERROR, is_error=True)

        observer.emit(_start(name, args))

        try:
            func = self.tools.resolve(name)
        except ToolNotFound:
            message = f"Error: Unknown tool '{name}'"
            observer.emit(_error(name, message))
            return self._result(tool_call, message, is_error=True)

        if not self.gate.allow(tool_call, args, auto_approve):
            observer.emit(
                TurnEvent(type="tool_result", data={"name": name, "result": DENIED_MESSAGE})
            )
            return self._result(tool_call, DENIED_MESSAGE)

        logger.info("Running %s (%s)", name, tool_call.id)
        try:
            content = func(**args)
        except TypeError as e:
            message = f"Error: Invalid arguments for {name}: {e}"
            observer.emit(_error(name, message))
            return self._result(tool_call, message, is_error=True)
        except Exception as e:
            logger.exception("Tool %s raised", name)
            observer.emit(_error(name, str(e)))
            return self._result(tool_call, f"Error: {e}", is_error=True)

        content = content if isinstance(content, str) else str(content)
        observer.emit(
            TurnEvent(
                type="tool_result",
                data={"name": name, "result": self._for_display(content)},
            )
        )
        return self._result(tool_call, content)

    @staticmethod
    def _parse_arguments(raw: str) -> Optional[Dict[str, Any]]:
        try:
            args = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            return None
        return args if isinstance(args, dict) else None

    def _for_display(self, content: str) -> str:
        if len(content) > self.display_limit:
            return content[: self.display_limit] + TRUNCATION_NOTICE
        return content

    @staticmethod
    def _result(tool_call: ToolCall, content: str, is_error: bool = False) -> ToolResult:
        return ToolResult(
            tool_call_id=tool_call.id,
            function_name=tool_call.function_name,
            content=content,
            is_error=is_error,
        )


def _start(name: str, args: Any) -> TurnEvent:
    return TurnEvent(type="tool_start", data={"name": name, "args": args})


def _error(name: str, error: str) -> TurnEvent:
    return TurnEvent(type="tool_error", data={"name": name, "error": error})
