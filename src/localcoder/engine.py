"""
The turn engine.

A turn starts when a user message has been appended to a history and ends
when the model answers without asking for any tool. In between, each round
streams one model response, recovers the tool calls it contains (natively or
from text), runs them one after another and appends every result before
asking the model again.
"""

import logging
from enum import Enum
from typing import List, Optional

from .accumulator import accumulate
from .dispatcher import Dispatcher
from .fallback import extract_tool_calls
from .llm import LLM
from .models import AssistantMessage, Message, ToolMessage, TurnEvent, UserMessage
from .observers import Observer

logger = logging.getLogger(__name__)


class TurnState(str, Enum):
    STREAMING = "streaming"
    DISPATCHING = "dispatching"
    DONE = "done"
    CANCELLED = "cancelled"


class TurnEngine:
    """Single-phase control loop bound to one model.

    Parameters
    ----------
    llm : LLM
        Provider the responses are streamed from.
    model : str
        Model name passed to the provider.
    dispatcher : Dispatcher
        Runs the tool calls; its registry is advertised to the model.
    """

    def __init__(self, llm: LLM, model: str, dispatcher: Dispatcher):
        self.llm = llm
        self.model = model
        self.dispatcher = dispatcher
        self.state: Optional[TurnState] = None
        self.rounds = 0

    def submit(
        self,
        history: List[Message],
        content: str,
        observer: Optional[Observer] = None,
        auto_approve: bool = False,
    ) -> str:
        """Appends a user message and runs the turn it starts."""
        history.append(UserMessage(content=content))
        return self.run(history, observer=observer, auto_approve=auto_approve)

    def run(
        self,
        history: List[Message],
        observer: Optional[Observer] = None,
        auto_approve: bool = False,
    ) -> str:
        """Drives the turn to completion, mutating ``history`` in place.

        Returns the text of the final assistant message. A
        :class:`~localcoder.errors.TransportError` from the provider ends the
        turn immediately and propagates; everything appended until then stays.
        """
        observer = observer if observer is not None else Observer()
        tools = self.dispatcher.tools.get_tools()
        self.state = TurnState.STREAMING
        self.rounds = 0

        while True:
            if observer.cancelled:
                logger.info("Turn cancelled after %d rounds", self.rounds)
                self.state = TurnState.CANCELLED
                return ""

            text, tool_calls = self._stream_round(history, tools, observer)
            self.rounds += 1
            history.append(
                AssistantMessage(content=text or None, tool_calls=tool_calls)
            )

            if not tool_calls:
                self.state = TurnState.DONE
                return text

            self.state = TurnState.DISPATCHING
            for tool_call in tool_calls:
                result = self.dispatcher.dispatch(
                    tool_call, observer=observer, auto_approve=auto_approve
                )
                history.append(ToolMessage.from_result(result))
            self.state = TurnState.STREAMING

    def _stream_round(self, history, tools, observer):
        def on_text(fragment: str) -> None:
            observer.emit(TurnEvent(type="content", data={"text": fragment}))

        text, tool_calls = accumulate(
            self.llm.stream_response(history, self.model, tools=tools or None),
            on_text=on_text,
        )

        if not tool_calls and text:
            tool_calls = extract_tool_calls(text)
            if tool_calls:
                logger.info("Recovered %d tool calls from text", len(tool_calls))
        return text, tool_calls
