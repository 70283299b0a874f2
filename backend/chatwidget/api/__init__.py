"""API routers."""

from chatwidget.api import ask, feedback, messenger, session_messages, widget_script

__all__ = [
    "ask",
    "feedback",
    "messenger",
    "session_messages",
    "widget_script",
]
