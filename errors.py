from typing import Any


class SolverError(Exception):
    """Base class for failures raised while building or training a solver."""


class InvalidModelError(SolverError):
    """The MDP model broke its contract (bad probabilities, stuck states)."""


class IllegalActionError(SolverError):
    """
    The environment refused an action that is not legal in its current state.

    Raised by the Q-learning loop instead of applying an update for the
    refused step.
    """

    def __init__(self, state: Any, action: Any):
        self.state = state
        self.action = action
        super().__init__(f"Illegal action {action!r} in state {state!r}")
