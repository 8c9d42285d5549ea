"""Concrete implementations for the layout builder."""

from abc import ABC, abstractmethod
from typing import List, Sequence

from dash import dcc, html
from dash.development.base_component import Component as DashComponent

from .models import (
    SYSTEM_ROLE,
    TOOL_ROLE,
    USER_ROLE,
    Message,
)

REQUIRED_COMPONENT_IDS = (
    "messages_container",
    "input_textarea",
    "submit_button",
    "clear_button",
    "dual_mode_switch",
    "allow_tools_switch",
    "session_store",
    "status_indicator",
)


class Layout(ABC):
    """Interface for building the Dash component layout."""

    @abstractmethod
    def build_layout(self) -> DashComponent:
        """Constructs and returns the entire Dash component tree for the UI."""
        pass

    @abstractmethod
    def build_messages(self, messages: Sequence[Message]) -> List[DashComponent]:
        """Converts a transcript into renderable Dash components."""
        pass

    def build_error(self, text: str) -> DashComponent:
        return html.Div(text, style={"color": "#b00020", "marginBottom": "10px"})

    def get_external_stylesheets(self) -> List:
        return []

    def get_external_scripts(self) -> List:
        return []


class Minimal(Layout):
    """A single-column chat with switches for dual mode and tool approval."""

    bubble_style = {
        "padding": "10px",
        "borderRadius": "12px",
        "marginBottom": "10px",
        "maxWidth": "80%",
        "width": "fit-content",
    }

    def build_layout(self) -> DashComponent:
        return html.Div(
            style={"display": "flex", "flexDirection": "column", "height": "100vh"},
            children=[
                dcc.Store(id="session_store", storage_type="session"),
                html.Header(
                    style={"padding": "8px", "borderBottom": "1px solid #eee"},
                    children=[
                        html.H4("Local Coder", style={"margin": 0}),
                        dcc.Checklist(
                            id="dual_mode_switch",
                            options=[{"label": " Dual mode (enhance, then execute)", "value": "on"}],
                            value=[],
                            inline=True,
                        ),
                        dcc.Checklist(
                            id="allow_tools_switch",
                            options=[{"label": " Allow write and shell tools", "value": "on"}],
                            value=[],
                            inline=True,
                        ),
                    ],
                ),
                html.Main(
                    id="messages_container",
                    style={"flexGrow": 1, "overflowY": "auto", "padding": "12px"},
                    children=[],
                ),
                html.Div(id="status_indicator", hidden=True, children="Working..."),
                html.Footer(
                    style={"display": "flex", "gap": "8px", "padding": "12px"},
                    children=[
                        dcc.Textarea(
                            id="input_textarea",
                            placeholder="Ask me to create projects, write code, or debug issues...",
                            style={"flexGrow": 1, "height": "60px"},
                        ),
                        html.Button("Send", id="submit_button", n_clicks=0),
                        html.Button("Clear", id="clear_button", n_clicks=0),
                    ],
                ),
            ],
        )

    def build_messages(self, messages: Sequence[Message]) -> List[DashComponent]:
        return [self.build_message(m) for m in messages if m.role != SYSTEM_ROLE]

    def build_message(self, message: Message) -> DashComponent:
        style = dict(self.bubble_style)
        if message.role == USER_ROLE:
            style.update(marginLeft="auto", backgroundColor="#dcf8c6")
            return html.Div(dcc.Markdown(message.content), style=style)
        if message.role == TOOL_ROLE:
            style.update(backgroundColor="#f6f8fa", fontSize="small")
            return html.Details(
                [
                    html.Summary(f"Tool result ({message.tool_call_id})"),
                    html.Pre(message.content, style={"whiteSpace": "pre-wrap"}),
                ],
                style=style,
            )
        style.update(marginRight="auto", border="1px solid #eee")
        children = []
        if message.content:
            children.append(dcc.Markdown(message.content))
        for call in message.tool_calls:
            children.append(
                html.Code(f"{call.function_name}({call.function_args})", style={"display": "block"})
            )
        return html.Div(children, style=style)


def missing_component_ids(layout: DashComponent) -> List[str]:
    """Returns the ids the callbacks need that ``layout`` does not contain."""
    found = set()

    def walk(component):
        if isinstance(component, (list, tuple)):
            for child in component:
                walk(child)
            return
        if not isinstance(component, DashComponent):
            return
        component_id = getattr(component, "id", None)
        if isinstance(component_id, str):
            found.add(component_id)
        walk(getattr(component, "children", None))

    walk(layout)
    return [cid for cid in REQUIRED_COMPONENT_IDS if cid not in found]
