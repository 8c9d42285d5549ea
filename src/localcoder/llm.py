"""Concrete implementations for LLM providers."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional, Sequence

from .errors import TransportError
from .models import Message, StreamChunk, ToolCallFragment, USER_ROLE

logger = logging.getLogger(__name__)


def to_api_messages(messages: Sequence[Message]) -> List[Dict[str, Any]]:
    """Renders a transcript in the chat-completions message format."""
    return [message.to_api() for message in messages]


class LLM(ABC):
    """Abstract Base Class for all LLM providers."""

    @abstractmethod
    def stream_response(
        self,
        messages: Sequence[Message],
        model: str,
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> Iterator[StreamChunk]:
        """Streams a response from the LLM provider.

        Parameters
        ----------
        messages : Sequence[Message]
            The conversation so far.
        model : str
            The specific model to use for the generation.
        tools : List[Dict[str, Any]], optional
            Tool specifications in the chat-completions format. When omitted
            the model is not offered any tools.

        Returns
        -------
        Iterator[StreamChunk]
            The response, chunk by chunk, in arrival order.

        Raises
        ------
        TransportError
            If the server cannot be reached or the stream breaks.
        """
        pass

    @abstractmethod
    def list_models(self) -> List[str]:
        """Returns the ids of the models the server can run."""
        pass


class OpenAI(LLM):
    """Any OpenAI-compatible chat-completions server (LM Studio by default).

    Parameters
    ----------
    base_url : str
        Root of the API, e.g. ``http://localhost:1234/v1``.
    api_key : str
        Sent as the bearer token; local servers accept any value.
    client : optional
        A preconfigured ``openai.OpenAI`` client, used instead of building one.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:1234/v1",
        api_key: str = "lm-studio",
        client: Any = None,
    ):
        if client is None:
            from openai import OpenAI as OpenAIClient

            client = OpenAIClient(base_url=base_url, api_key=api_key)
        self.client = client
        self.base_url = base_url

    def stream_response(self, messages, model, tools=None):
        from openai import OpenAIError

        kwargs: Dict[str, Any] = {}
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"

        logger.debug(
            "Requesting %s with %d messages (tools=%s)", model, len(messages), bool(tools)
        )
        try:
            stream = self.client.chat.completions.create(
                model=model,
                messages=to_api_messages(messages),
                stream=True,
                **kwargs,
            )
            for chunk in stream:
                converted = self._convert_chunk(chunk)
                if converted is not None:
                    yield converted
        except OpenAIError as e:
            raise TransportError(str(e) or type(e).__name__) from e

    @staticmethod
    def _convert_chunk(chunk: Any) -> Optional[StreamChunk]:
        if not chunk.choices:
            return None
        delta = chunk.choices[0].delta
        if delta is None:
            return None
        fragments = []
        for tool_call in delta.tool_calls or []:
            function = tool_call.function
            fragments.append(
                ToolCallFragment(
                    index=tool_call.index,
                    id=tool_call.id,
                    name=function.name if function else None,
                    arguments=function.arguments if function else None,
                )
            )
        return StreamChunk(text=delta.content, tool_call_fragments=fragments)

    def list_models(self) -> List[str]:
        from openai import OpenAIError

        try:
            return [model.id for model in self.client.models.list()]
        except OpenAIError as e:
            raise TransportError(str(e) or type(e).__name__) from e


class Echo(LLM):
    """Streams the last user message back, word by word. Never calls tools."""

    def __init__(self, delay: float = 0.0):
        self.delay = delay

    def stream_response(self, messages, model, tools=None):
        user_prompt = next(
            (m.content for m in reversed(messages) if m.role == USER_ROLE),
            "No message provided",
        )
        content = f"**Echo LLM - static response for testing**\n\n{user_prompt}"
        words = content.split(" ")
        for i, word in enumerate(words):
            if self.delay:
                time.sleep(self.delay)
            yield StreamChunk(text=word if i == len(words) - 1 else word + " ")

    def list_models(self) -> List[str]:
        return ["echo-v1"]
