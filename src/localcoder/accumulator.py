"""Reassembly of streamed model responses.

Providers deliver a response as a sequence of :class:`~localcoder.models.StreamChunk`
objects. Text arrives in pieces and so do tool calls: the id may come in any
chunk, and the function name and argument string are split across many.
:class:`DeltaAccumulator` folds the chunks back into the assembled text and
the finalized tool calls.
"""

from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .models import StreamChunk, ToolCall, ToolCallFragment

TextCallback = Callable[[str], None]


class _PendingCall:
    __slots__ = ("id", "name", "arguments")

    def __init__(self) -> None:
        self.id = ""
        self.name = ""
        self.arguments = ""


class DeltaAccumulator:
    """Folds stream chunks into ``(text, tool_calls)``.

    Tool-call records are keyed by fragment index, so fragments for several
    calls may interleave in any order. Within one index, fragments are
    concatenated in arrival order; a later id replaces an earlier one.

    Parameters
    ----------
    on_text : callable, optional
        Called with every text fragment as soon as it arrives.
    """

    def __init__(self, on_text: Optional[TextCallback] = None):
        self.on_text = on_text
        self._text: List[str] = []
        self._calls: Dict[int, _PendingCall] = {}

    def feed(self, chunk: StreamChunk) -> None:
        if chunk.text:
            self._text.append(chunk.text)
            if self.on_text is not None:
                self.on_text(chunk.text)
        for fragment in chunk.tool_call_fragments:
            self._feed_fragment(fragment)

    def _feed_fragment(self, fragment: ToolCallFragment) -> None:
        pending = self._calls.setdefault(fragment.index, _PendingCall())
        if fragment.id:
            pending.id = fragment.id
        if fragment.name:
            pending.name += fragment.name
        if fragment.arguments:
            pending.arguments += fragment.arguments

    @property
    def text(self) -> str:
        return "".join(self._text)

    def finalize(self) -> Tuple[str, List[ToolCall]]:
        """Returns the assembled text and the tool calls in index order.

        Calls whose arguments are not valid JSON are kept; the dispatcher
        reports them.
        """
        calls = [
            ToolCall(
                id=pending.id,
                function_name=pending.name,
                function_args=pending.arguments,
            )
            for _, pending in sorted(self._calls.items())
        ]
        return self.text, calls


def accumulate(
    chunks: Iterable[StreamChunk], on_text: Optional[TextCallback] = None
) -> Tuple[str, List[ToolCall]]:
    """Consumes ``chunks`` to exhaustion and finalizes the response."""
    accumulator = DeltaAccumulator(on_text=on_text)
    for chunk in chunks:
        accumulator.feed(chunk)
    return accumulator.finalize()
