"""Human confirmation before side-effecting tools run."""

import json
import logging
import threading
import time
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Tuple

from .models import ToolCall, TurnEvent
from .tools import ToolKind

logger = logging.getLogger(__name__)

SIDE_EFFECT_TOOLS = frozenset({ToolKind.WRITE_FILE, ToolKind.RUN_SHELL_COMMAND})

DENIED_MESSAGE = "Tool execution denied by user."


class Confirm(ABC):
    """Interface for obtaining an allow/deny decision for one tool call."""

    @abstractmethod
    def confirm(self, prompt: str, tool_call: ToolCall, args: Dict[str, Any]) -> bool:
        """Returns True when the user allows the tool call to run."""
        pass


class AutoApprove(Confirm):
    """Allows everything without asking."""

    def confirm(self, prompt, tool_call, args):
        return True


class DenyAll(Confirm):
    """Refuses every call that needs approval."""

    def confirm(self, prompt, tool_call, args):
        return False


class ConsoleConfirm(Confirm):
    """Asks on the terminal with a yes/no prompt, defaulting to yes."""

    def __init__(self, console=None, indent: str = ""):
        from rich.console import Console

        self.console = console or Console()
        self.indent = indent

    def confirm(self, prompt, tool_call, args):
        from rich.prompt import Confirm as RichConfirm

        return RichConfirm.ask(
            f"{self.indent}[yellow]{prompt}[/yellow]",
            console=self.console,
            default=True,
        )


class PendingApprovals(Confirm):
    """Approval round-trip for hosts that talk to the user over HTTP.

    ``confirm`` announces the call through ``notify`` (an
    ``approval_required`` event) and blocks the calling thread until another
    thread calls :meth:`ApprovalRegistry.resolve` with the announced id, until
    ``timeout`` seconds pass, or until ``cancelled`` reports that nobody is
    listening any more. The last two count as a denial.

    The announced id is the model's call id. Calls that arrived without one
    are announced under a generated ``approval-<hex>`` id instead.

    Parameters
    ----------
    session_id : str
        Session the pending calls belong to.
    notify : callable
        Receives the ``approval_required`` :class:`TurnEvent`.
    registry : ApprovalRegistry
        Shared table through which HTTP handlers resolve pending calls.
    timeout : float, default=300.0
        Seconds to wait for a decision.
    cancelled : callable, optional
        Polled while waiting; a true result ends the wait as a denial.
    poll_interval : float, default=0.25
        Seconds between polls of ``cancelled``.
    """

    def __init__(
        self,
        session_id: str,
        notify: Callable[[TurnEvent], None],
        registry: "ApprovalRegistry",
        timeout: float = 300.0,
        cancelled: Optional[Callable[[], bool]] = None,
        poll_interval: float = 0.25,
    ):
        self.session_id = session_id
        self.notify = notify
        self.registry = registry
        self.timeout = timeout
        self.cancelled = cancelled
        self.poll_interval = poll_interval

    def confirm(self, prompt, tool_call, args):
        approval_id = tool_call.id or f"approval-{uuid.uuid4().hex}"
        waiter = self.registry.open(self.session_id, approval_id)
        try:
            self.notify(
                TurnEvent(
                    type="approval_required",
                    data={
                        "id": approval_id,
                        "name": tool_call.function_name,
                        "args": args,
                    },
                )
            )
            return self._wait(waiter, approval_id)
        finally:
            self.registry.close(self.session_id, approval_id)

    def _wait(self, waiter: "_Waiter", approval_id: str) -> bool:
        deadline = time.monotonic() + self.timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.warning(
                    "Approval for %s timed out after %ss", approval_id, self.timeout
                )
                return False
            if waiter.event.wait(min(self.poll_interval, remaining)):
                return waiter.approved
            if self.cancelled is not None and self.cancelled():
                logger.info("Approval for %s abandoned: turn cancelled", approval_id)
                return False


class _Waiter:
    __slots__ = ("event", "approved")

    def __init__(self) -> None:
        self.event = threading.Event()
        self.approved = False


class ApprovalRegistry:
    """Thread-safe table of tool calls awaiting a decision."""

    def __init__(self):
        self._lock = threading.Lock()
        self._waiting: Dict[Tuple[str, str], _Waiter] = {}

    def open(self, session_id: str, call_id: str) -> _Waiter:
        waiter = _Waiter()
        with self._lock:
            self._waiting[(session_id, call_id)] = waiter
        return waiter

    def close(self, session_id: str, call_id: str) -> None:
        with self._lock:
            self._waiting.pop((session_id, call_id), None)

    def resolve(self, session_id: str, call_id: str, approved: bool) -> bool:
        """Delivers a decision. Returns False if nothing was waiting."""
        with self._lock:
            waiter = self._waiting.get((session_id, call_id))
        if waiter is None:
            return False
        waiter.approved = bool(approved)
        waiter.event.set()
        return True


class ApprovalGate:
    """Decides whether a tool call may run.

    Read-only tools always run. ``write_file`` and ``run_shell_command`` run
    when the turn is auto-approved or when the confirmer allows them.
    """

    def __init__(self, confirmer: Optional[Confirm] = None):
        self.confirmer = confirmer if confirmer is not None else DenyAll()

    @staticmethod
    def requires_approval(tool_name: str) -> bool:
        return ToolKind.from_name(tool_name) in SIDE_EFFECT_TOOLS

    def allow(
        self, tool_call: ToolCall, args: Dict[str, Any], auto_approve: bool
    ) -> bool:
        if auto_approve or not self.requires_approval(tool_call.function_name):
            return True
        prompt = f"Execute {tool_call.function_name}({json.dumps(args)[:200]})?"
        allowed = self.confirmer.confirm(prompt, tool_call, args)
        if not allowed:
            logger.warning("User denied %s (%s)", tool_call.function_name, tool_call.id)
        return allowed
