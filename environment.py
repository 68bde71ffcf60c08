from typing import Any, List, NamedTuple, Optional, Tuple
import numpy as np

from mdp_model import MDPModel, State


class Outcome(NamedTuple):
    """Result of one environment step: (s, a, r, s')."""
    state: Any
    action: Any
    reward: float
    next_state: Any


class IllegalAction(NamedTuple):
    """The action was not legal in `state`; the environment did not move."""
    state: Any
    action: Any


class StepResult(NamedTuple):
    outcome: Optional[Outcome] = None
    error: Optional[IllegalAction] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ModelEnvironment:
    """
    Plays an MDP model one step at a time by sampling its transitions.

    For a game model this is a full episode against the model's opponent:
    the sampled transition already includes the opponent's reply.
    """

    def __init__(self, model: MDPModel, first_player: Optional[int] = None,
                 rng: Optional[np.random.Generator] = None):
        self.model = model
        self.first_player = first_player
        self.rng = rng if rng is not None else np.random.default_rng()
        self.state: State = None
        self.reset()

    def _sample(self, weighted: List[Tuple[float, Any]]) -> Any:
        probs = np.array([p for p, _ in weighted], dtype=float)
        k = self.rng.choice(len(weighted), p=probs / probs.sum())
        return weighted[k][1]

    def reset(self) -> None:
        """Start a new episode from the model's initial distribution."""
        self.state = self._sample(self.model.initial_states(self.first_player))

    def is_terminal(self) -> bool:
        return self.model.is_terminal(self.state)

    def current_state(self) -> State:
        return self.state

    def step(self, action) -> StepResult:
        """
        Apply action in the current state.

        Returns a StepResult holding either the Outcome or an IllegalAction
        (terminal state, or action not in the legal-action list).
        """
        state = self.state
        if self.model.is_terminal(state) or action not in self.model.legal_actions(state):
            return StepResult(error=IllegalAction(state, action))
        transitions = self.model.transitions(state, action)
        _, reward, next_state = self._sample([(t[0], t) for t in transitions])
        self.state = next_state
        return StepResult(outcome=Outcome(state, action, reward, next_state))
