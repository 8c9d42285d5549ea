"""Wiring of settings, model provider, tools and sessions shared by all hosts."""

import logging
from typing import Optional

from .approval import ApprovalGate, Confirm
from .config import Settings
from .dispatcher import Dispatcher
from .engine import TurnEngine
from .llm import LLM, OpenAI
from .models import Session, SystemMessage
from .observers import Observer
from .orchestrator import DualPhaseOrchestrator, Review
from .prompts import SINGLE_MODEL_SYSTEM_PROMPT
from .store import InMemory, Store
from .tools import Builtin, Tool

logger = logging.getLogger(__name__)


class Assistant:
    """Runs conversation turns in single-phase or dual-phase mode.

    Engines are built per turn from the current settings, so model changes
    made by a host apply to the next turn without restarting.

    Parameters
    ----------
    settings : Settings, optional
        Defaults to ``Settings()``, read from the environment and config file.
    llm : LLM, optional
        Defaults to an OpenAI-compatible client for ``settings.base_url``.
    tools : Tool, optional
        Defaults to the builtin filesystem and shell tools.
    store : Store, optional
        Defaults to in-memory sessions.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        llm: Optional[LLM] = None,
        tools: Optional[Tool] = None,
        store: Optional[Store] = None,
    ):
        self.settings = settings if settings is not None else Settings()
        self._owns_llm = llm is None
        self.llm = llm if llm is not None else self._connect()
        self.tools = (
            tools if tools is not None else Builtin(self.settings.shell_timeout)
        )
        self.store = store if store is not None else InMemory()

    def _connect(self) -> LLM:
        return OpenAI(base_url=self.settings.base_url, api_key=self.settings.api_key)

    def reconnect(self) -> None:
        """Rebuilds the model client after the base URL or API key changed."""
        if self._owns_llm:
            logger.info("Reconnecting to %s", self.settings.base_url)
            self.llm = self._connect()

    def dispatcher(self, confirmer: Optional[Confirm] = None) -> Dispatcher:
        return Dispatcher(
            self.tools,
            gate=ApprovalGate(confirmer),
            display_limit=self.settings.display_limit,
        )

    def engine(self, confirmer: Optional[Confirm] = None) -> TurnEngine:
        return TurnEngine(self.llm, self.settings.model, self.dispatcher(confirmer))

    def orchestrator(self, confirmer: Optional[Confirm] = None) -> DualPhaseOrchestrator:
        return DualPhaseOrchestrator(
            self.llm,
            enhancer_model=self.settings.thinking_model,
            executor_model=self.settings.executing_model,
            dispatcher=self.dispatcher(confirmer),
        )

    def chat(
        self,
        session: Session,
        message: str,
        observer: Optional[Observer] = None,
        auto_approve: bool = False,
        confirmer: Optional[Confirm] = None,
        dual_mode: Optional[bool] = None,
        review: Optional[Review] = None,
    ) -> Optional[str]:
        """Runs one turn for ``message`` and returns the final answer.

        Single mode appends to ``session.history``, seeded with the
        single-model system prompt on first use. Dual mode works on the
        session's executor history. Returns None when ``review`` declined
        the enhanced prompt.
        """
        dual = self.settings.dual_mode if dual_mode is None else dual_mode
        session.dual_mode = dual
        if dual:
            return self.orchestrator(confirmer).run(
                session,
                message,
                observer=observer,
                auto_approve=auto_approve,
                review=review,
            )
        if not session.history:
            session.history.append(SystemMessage(content=SINGLE_MODEL_SYSTEM_PROMPT))
        return self.engine(confirmer).submit(
            session.history, message, observer=observer, auto_approve=auto_approve
        )
