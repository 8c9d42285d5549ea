"""The enhance-then-execute pipeline."""

import logging
from typing import Callable, Optional

from .accumulator import accumulate
from .dispatcher import Dispatcher
from .engine import TurnEngine
from .llm import LLM
from .models import Session, SystemMessage, TurnEvent, UserMessage
from .observers import Observer
from .prompts import ENHANCER_SYSTEM_PROMPT, EXECUTOR_SYSTEM_PROMPT

logger = logging.getLogger(__name__)

ENHANCING = "enhancing"
EXECUTING = "executing"

Review = Callable[[str], bool]


class DualPhaseOrchestrator:
    """Chains an enhancer model and an executor model.

    Phase 1 sends the raw user message, with no tools, to the enhancer and
    collects its text. Phase 2 appends that text as a user message to the
    session's executor history, created with the executor system prompt on
    first use, and runs a full :class:`TurnEngine` on it. The executor history
    is kept on the session, so successive calls build on each other.

    Parameters
    ----------
    llm : LLM
        Provider used by both phases.
    enhancer_model : str
        Model that expands the user's request.
    executor_model : str
        Model that carries out the expanded request with tools.
    dispatcher : Dispatcher
        Tool dispatcher of the executor phase.
    """

    def __init__(
        self,
        llm: LLM,
        enhancer_model: str,
        executor_model: str,
        dispatcher: Dispatcher,
        enhancer_prompt: str = ENHANCER_SYSTEM_PROMPT,
        executor_prompt: str = EXECUTOR_SYSTEM_PROMPT,
    ):
        self.llm = llm
        self.enhancer_model = enhancer_model
        self.executor = TurnEngine(llm, executor_model, dispatcher)
        self.enhancer_prompt = enhancer_prompt
        self.executor_prompt = executor_prompt

    def enhance(self, user_message: str, observer: Optional[Observer] = None) -> str:
        """Runs phase 1 and returns the enhanced prompt."""
        observer = observer if observer is not None else Observer()
        observer.emit(
            TurnEvent(
                type="phase_start",
                data={"phase": ENHANCING, "model": self.enhancer_model},
            )
        )
        messages = [
            SystemMessage(content=self.enhancer_prompt),
            UserMessage(content=user_message),
        ]
        enhanced, _ = accumulate(
            self.llm.stream_response(messages, self.enhancer_model),
            on_text=lambda text: observer.emit(
                TurnEvent(type="enhancing_content", data={"text": text})
            ),
        )
        observer.emit(TurnEvent(type="phase_end", data={"phase": ENHANCING}))
        return enhanced

    def execute(
        self,
        session: Session,
        enhanced_prompt: str,
        observer: Optional[Observer] = None,
        auto_approve: bool = False,
    ) -> str:
        """Runs phase 2 on the session's executor history."""
        observer = observer if observer is not None else Observer()
        if session.executor_history is None:
            session.executor_history = [SystemMessage(content=self.executor_prompt)]
        session.executor_history.append(UserMessage(content=enhanced_prompt))

        observer.emit(
            TurnEvent(
                type="phase_start",
                data={"phase": EXECUTING, "model": self.executor.model},
            )
        )
        answer = self.executor.run(
            session.executor_history, observer=observer, auto_approve=auto_approve
        )
        observer.emit(TurnEvent(type="phase_end", data={"phase": EXECUTING}))
        return answer

    def run(
        self,
        session: Session,
        user_message: str,
        observer: Optional[Observer] = None,
        auto_approve: bool = False,
        review: Optional[Review] = None,
    ) -> Optional[str]:
        """Enhances ``user_message`` and executes the result.

        ``review`` sees the enhanced prompt before phase 2; returning False
        skips execution, leaving the executor history untouched, and makes
        this return None.
        """
        enhanced = self.enhance(user_message, observer=observer)
        if review is not None and not review(enhanced):
            logger.info("Execution declined after enhancement")
            return None
        return self.execute(
            session, enhanced, observer=observer, auto_approve=auto_approve
        )
