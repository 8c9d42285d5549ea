"""Dash callbacks that run conversation turns for the browser UI."""

import logging
import uuid
from typing import List, Optional, Tuple

from dash import Input, Output, State, no_update

from .approval import AutoApprove, DenyAll
from .errors import LocalCoderError

logger = logging.getLogger(__name__)


def handle_message(
    app,
    user_input: str,
    session_id: Optional[str],
    dual_mode: bool,
    allow_tools: bool,
) -> Tuple[List, str]:
    """Runs one browser turn and renders the session's transcript.

    Returns the rendered messages and the session id, which is generated on
    the first message of a browser tab.
    """
    session_id = session_id or str(uuid.uuid4())
    # The browser has no prompt for approvals: the switch decides.
    confirmer = AutoApprove() if allow_tools else DenyAll()
    store = app.assistant.store
    session = store.get_or_create(session_id, dual_mode=dual_mode)

    error = None
    with store.lock(session_id):
        try:
            app.assistant.chat(
                session,
                user_input.strip(),
                confirmer=confirmer,
                dual_mode=dual_mode,
            )
        except LocalCoderError as e:
            logger.error("Turn failed for session %s: %s", session_id, e)
            error = f"I encountered an error: {e}. Please try again."

    transcript = session.executor_history if dual_mode else session.history
    messages = app.layout_builder.build_messages(transcript or [])
    if error:
        messages.append(app.layout_builder.build_error(error))
    return messages, session_id


def register_callbacks(app):
    @app.callback(
        [
            Output("messages_container", "children"),
            Output("input_textarea", "value"),
            Output("session_store", "data"),
        ],
        [Input("submit_button", "n_clicks")],
        [
            State("input_textarea", "value"),
            State("session_store", "data"),
            State("dual_mode_switch", "value"),
            State("allow_tools_switch", "value"),
        ],
        running=[(Output("status_indicator", "hidden"), False, True)],
        prevent_initial_call=True,
    )
    def send_message(n_clicks, user_input, session_id, dual_values, allow_values):
        if not n_clicks or not user_input or not user_input.strip():
            return no_update, no_update, no_update
        messages, session_id = handle_message(
            app,
            user_input,
            session_id,
            dual_mode="on" in (dual_values or []),
            allow_tools="on" in (allow_values or []),
        )
        return messages, "", session_id

    @app.callback(
        Output("messages_container", "children", allow_duplicate=True),
        [Input("clear_button", "n_clicks")],
        [State("session_store", "data")],
        prevent_initial_call=True,
    )
    def clear_conversation(n_clicks, session_id):
        if not n_clicks or not session_id:
            return no_update
        app.assistant.store.clear(session_id)
        return []
