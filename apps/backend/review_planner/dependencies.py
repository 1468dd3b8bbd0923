from fastapi import Request

from .planner import ReviewPlanner


def get_planner(request: Request) -> ReviewPlanner:
    """Return the process-wide planner loaded at application start."""

    return request.app.state.planner
