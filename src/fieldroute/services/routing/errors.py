"""Typed failures raised by the route planner."""

from __future__ import annotations


class RoutePlanningError(ValueError):
    """Base class for planning failures caused by invalid input."""


class InvalidStartIndexError(RoutePlanningError):
    def __init__(self, start_index: int, point_count: int) -> None:
        super().__init__(
            f"Start index {start_index} is out of range for {point_count} points."
        )
        self.start_index = start_index
        self.point_count = point_count


class InvalidTourError(RoutePlanningError):
    """A route is not a permutation of the point indices."""


class MissingOriginError(RoutePlanningError):
    def __init__(self) -> None:
        super().__init__(
            "Current position is not available yet; cannot plan a route from the current location."
        )


class SupersededPlanError(RuntimeError):
    """A newer request in the same planning session finished first."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Route plan for session {session_id} was superseded by a newer request.")
        self.session_id = session_id
