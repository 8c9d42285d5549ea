"""Recovery of tool calls written as text.

Some local models have no structured tool-call channel and describe the call
in their answer instead, either as a fenced code block::

    ```tool_request
    {"name": "read_file", "arguments": {"file_path": "app.py"}}
    ```

or as a bare JSON object inside a sentence. :func:`extract_tool_calls` turns
those into regular :class:`~localcoder.models.ToolCall` objects. Fenced blocks
are tried first; inline objects are only looked for when no fenced block
produced a call.
"""

import json
import logging
import re
from typing import Any, Iterator, List, Optional, Tuple

from .models import ToolCall

logger = logging.getLogger(__name__)

TEXT_TOOL_ID_PREFIX = "text-tool-"

FENCED_BLOCK_PATTERN = re.compile(
    r"```(?:tool_request|json)?[ \t]*\r?\n?(?P<body>.*?)```",
    re.IGNORECASE | re.DOTALL,
)
INLINE_OBJECT_PATTERN = re.compile(r'\{\s*"name"\s*:\s*"')

_decoder = json.JSONDecoder()


def _as_call(candidate: Any) -> Optional[Tuple[str, str]]:
    """Returns ``(name, arguments_json)`` for a ``{name, arguments}`` object."""
    if not isinstance(candidate, dict):
        return None
    name = candidate.get("name")
    arguments = candidate.get("arguments")
    if not isinstance(name, str) or not name or not isinstance(arguments, dict):
        return None
    return name, json.dumps(arguments)


def _fenced_candidates(text: str) -> Iterator[Tuple[str, str]]:
    for match in FENCED_BLOCK_PATTERN.finditer(text):
        body = match.group("body").strip()
        if not body.startswith(("{", "[")):
            continue
        try:
            parsed, _ = _decoder.raw_decode(body)
        except json.JSONDecodeError:
            logger.warning("Dropping fenced tool call with malformed JSON")
            continue
        items = parsed if isinstance(parsed, list) else [parsed]
        for item in items:
            call = _as_call(item)
            if call is not None:
                yield call


def _inline_candidates(text: str) -> Iterator[Tuple[str, str]]:
    pos = 0
    while True:
        match = INLINE_OBJECT_PATTERN.search(text, pos)
        if match is None:
            return
        try:
            parsed, end = _decoder.raw_decode(text, match.start())
        except json.JSONDecodeError:
            logger.warning("Dropping inline tool call with malformed JSON")
            pos = match.end()
            continue
        call = _as_call(parsed)
        if call is None:
            pos = match.end()
            continue
        yield call
        pos = end


def extract_tool_calls(text: str) -> List[ToolCall]:
    """Finds tool calls written as fenced blocks, or failing that, inline JSON.

    Every call found by the winning pattern is returned, in order of
    appearance, with ids ``text-tool-0``, ``text-tool-1``... Candidates whose
    JSON does not parse are dropped and logged.
    """
    if not text:
        return []
    found = list(_fenced_candidates(text))
    if not found:
        found = list(_inline_candidates(text))
    return [
        ToolCall(
            id=f"{TEXT_TOOL_ID_PREFIX}{i}", function_name=name, function_args=args
        )
        for i, (name, args) in enumerate(found)
    ]
