"""JSON and server-sent-event routes registered on the Dash app's Flask server."""

import logging
import threading

from flask import Response, jsonify, request

from .approval import PendingApprovals
from .errors import LocalCoderError
from .models import TurnEvent
from .observers import QueueObserver

logger = logging.getLogger(__name__)

DEFAULT_SESSION = "default"


def _flag(body, key, default):
    """Reads an optional JSON boolean. Raises ValueError for any other type."""
    value = body.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be a boolean")
    return value


def register_routes(app):
    server = app.server
    settings = app.assistant.settings

    @server.get("/api/models")
    def list_models():
        try:
            models = app.assistant.llm.list_models()
        except LocalCoderError as e:
            return jsonify(error=str(e)), 500
        return jsonify(object="list", data=[{"id": m, "object": "model"} for m in models])

    @server.get("/api/config")
    def get_config():
        return jsonify(settings.public_view())

    @server.post("/api/config/model")
    def set_model():
        model = (request.get_json(silent=True) or {}).get("model")
        if not model:
            return jsonify(error="Model name required"), 400
        settings.use_model(model)
        return jsonify(success=True, model=model)

    @server.post("/api/config/dual")
    def set_dual():
        body = request.get_json(silent=True) or {}
        try:
            settings.dual_mode = _flag(body, "enabled", settings.dual_mode)
        except ValueError as e:
            return jsonify(error=str(e)), 400
        if body.get("thinkingModel"):
            settings.thinking_model = body["thinkingModel"]
        if body.get("executingModel"):
            settings.executing_model = body["executingModel"]
        return jsonify(
            success=True,
            config={
                "dualMode": settings.dual_mode,
                "thinkingModel": settings.thinking_model,
                "executingModel": settings.executing_model,
            },
        )

    @server.post("/api/config/api")
    def set_api():
        body = request.get_json(silent=True) or {}
        changed = False
        if "apiKey" in body:
            settings.api_key = body["apiKey"] or "lm-studio"
            changed = True
        if body.get("baseURL"):
            settings.base_url = body["baseURL"]
            changed = True
        if changed:
            app.assistant.reconnect()
        return jsonify(
            success=True,
            config={
                "baseURL": settings.base_url,
                "hasApiKey": settings.api_key != "lm-studio",
            },
        )

    @server.post("/api/chat")
    def chat():
        body = request.get_json(silent=True) or {}
        message = body.get("message")
        if not message:
            return jsonify(error="Message required"), 400

        session_id = body.get("sessionId") or DEFAULT_SESSION
        try:
            auto_approve = _flag(body, "autoApprove", True)
            dual_mode = _flag(body, "dualMode", settings.dual_mode)
        except ValueError as e:
            return jsonify(error=str(e)), 400
        session = app.assistant.store.get_or_create(session_id, dual_mode=dual_mode)

        observer = QueueObserver()
        confirmer = PendingApprovals(
            session_id,
            notify=observer.emit,
            registry=app.approvals,
            timeout=settings.approval_timeout,
            cancelled=lambda: observer.cancelled,
        )

        def run_turn():
            try:
                with app.assistant.store.lock(session_id):
                    app.assistant.chat(
                        session,
                        message,
                        observer=observer,
                        auto_approve=auto_approve,
                        confirmer=confirmer,
                        dual_mode=dual_mode,
                    )
                observer.emit(TurnEvent(type="done"))
            except LocalCoderError as e:
                logger.error("Turn failed for session %s: %s", session_id, e)
                observer.emit(TurnEvent(type="error", data={"message": str(e)}))
            except Exception as e:
                logger.exception("Turn crashed for session %s", session_id)
                observer.emit(
                    TurnEvent(type="error", data={"message": str(e) or "Connection lost"})
                )
            finally:
                observer.close()

        threading.Thread(target=run_turn, daemon=True).start()

        def stream():
            try:
                for event in observer.drain():
                    yield event.to_sse()
            finally:
                # Client gone or turn over: no more notifications either way.
                observer.cancel()

        return Response(
            stream(),
            mimetype="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    @server.post("/api/approve")
    def approve():
        body = request.get_json(silent=True) or {}
        session_id = body.get("sessionId") or DEFAULT_SESSION
        call_id = body.get("callId")
        if not call_id:
            return jsonify(error="callId required"), 400
        try:
            approved = _flag(body, "approved", False)
        except ValueError as e:
            return jsonify(error=str(e)), 400
        if not app.approvals.resolve(session_id, call_id, approved):
            return jsonify(error="No pending approval for this call"), 404
        return jsonify(success=True)

    @server.post("/api/session/clear")
    def clear_session():
        session_id = (request.get_json(silent=True) or {}).get("sessionId") or DEFAULT_SESSION
        app.assistant.store.clear(session_id)
        return jsonify(success=True)
