"""
The main entrypoint for the localcoder package.

A local coding assistant: a language model served by an OpenAI-compatible
server (LM Studio, llama.cpp, vLLM...) converses with the user and calls a
fixed set of filesystem and shell tools, either directly or through an
enhance-then-execute pipeline of two models.

This module contains :class:`LocalCoder`, the web host. The terminal host
lives in :mod:`localcoder.cli`; both drive the same
:class:`~localcoder.assistant.Assistant`.
"""

from typing import Optional

from dash import Dash

from . import layout, llm, store, tools
from .approval import ApprovalRegistry
from .assistant import Assistant
from .config import Settings


class LocalCoder(Dash):
    """
    The web host: a Dash chat UI plus a JSON/SSE API on the same server.

    The injected pillars are wired into an :class:`Assistant`, which runs the
    turns. Browser turns go through the Dash callbacks; API clients use
    ``POST /api/chat``, which streams turn events as server-sent events and
    asks for approvals through ``POST /api/approve``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        llm: Optional["llm.LLM"] = None,
        tools: Optional["tools.Tool"] = None,
        store: Optional["store.Store"] = None,
        layout: Optional["layout.Layout"] = None,
        **kwargs,
    ) -> None:
        """
        Initialize the LocalCoder application with configurable pillars.

        Parameters
        ----------
        settings : Settings, optional
            Connection and model configuration. Defaults to ``Settings()``,
            read from ``LOCAL_LLM_*`` variables and ``.local-coder-config.json``.
        llm : llm.LLM, optional
            Model provider. Defaults to ``llm.OpenAI`` for ``settings.base_url``.
        tools : tools.Tool, optional
            Tool catalog. Defaults to ``tools.Builtin()``.
        store : store.Store, optional
            Session store. Defaults to ``store.InMemory()``.
        layout : layout.Layout, optional
            Layout builder. Defaults to ``layout.Minimal()``.
        **kwargs
            Additional arguments passed to the Dash constructor.

        Raises
        ------
        ValueError
            If the layout is missing component IDs the callbacks need.

        Examples
        --------
        >>> app = LocalCoder()
        >>> app.run(port=3000)

        Offline, for trying the UI:

        >>> app = LocalCoder(llm=llm.Echo())
        """
        layout_module = globals()["layout"]

        self.layout_builder = layout if layout is not None else layout_module.Minimal()

        if "external_stylesheets" not in kwargs:
            kwargs["external_stylesheets"] = []
        kwargs["external_stylesheets"].extend(
            self.layout_builder.get_external_stylesheets()
        )
        if "external_scripts" not in kwargs:
            kwargs["external_scripts"] = []
        kwargs["external_scripts"].extend(self.layout_builder.get_external_scripts())

        super().__init__(**kwargs)

        self.assistant = Assistant(settings=settings, llm=llm, tools=tools, store=store)
        self.approvals = ApprovalRegistry()

        self.layout = self.layout_builder.build_layout()
        missing = layout_module.missing_component_ids(self.layout)
        if missing:
            raise ValueError(f"Layout is missing required components: {missing}")

        self._register_callbacks()
        self._register_routes()

    @property
    def settings(self) -> Settings:
        return self.assistant.settings

    def _register_callbacks(self) -> None:
        """Registers the callbacks of the browser UI."""
        from .callbacks import register_callbacks

        register_callbacks(self)

    def _register_routes(self) -> None:
        """Registers the JSON/SSE API on the underlying Flask server."""
        from .server import register_routes

        register_routes(self)
