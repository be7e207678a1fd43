"""Request dependencies shared by the routers."""

from fastapi import Request

from pingwatch.core.engine import MonitorEngine


def get_engine(request: Request) -> MonitorEngine:
    """Engine stored on the application state."""
    return request.app.state.engine
