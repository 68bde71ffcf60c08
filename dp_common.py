from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
import numpy as np

from errors import InvalidModelError
from mdp_model import MDPModel, Policy, State, Transition

PROBABILITY_TOLERANCE = 1e-9


def check_transitions(state: State, action: Any, transitions: Sequence[Transition],
                      tol: float = PROBABILITY_TOLERANCE) -> None:
    """Raise InvalidModelError unless the probabilities lie in (0, 1] and sum to 1."""
    if not transitions:
        raise InvalidModelError(f"No transitions for action {action!r} in state {state!r}")
    total = 0.0
    for p, _, _ in transitions:
        if not 0.0 < p <= 1.0:
            raise InvalidModelError(
                f"Transition probability {p} out of (0, 1] for action {action!r} in state {state!r}")
        total += p
    if abs(total - 1.0) > tol:
        raise InvalidModelError(
            f"Transition probabilities sum to {total} for action {action!r} in state {state!r}")


class StateIndex:
    """
    Dense integer index over an enumeration of states.

    Order follows the enumeration; sets are sorted first so two runs over the
    same state space always agree on the numbering. Sets mixing unorderable
    state types are sorted by repr.
    """

    def __init__(self, states: Iterable[State] = ()):
        if isinstance(states, (set, frozenset)):
            try:
                states = sorted(states)
            except TypeError:
                states = sorted(states, key=repr)
        self.states: List[State] = []
        self.index: Dict[State, int] = {}
        for s in states:
            self.add(s)

    def add(self, state: State) -> int:
        """Return the index of state, appending it if unseen."""
        i = self.index.get(state)
        if i is None:
            i = len(self.states)
            self.index[state] = i
            self.states.append(state)
        return i

    def get(self, state: State, default: Optional[int] = None) -> Optional[int]:
        return self.index.get(state, default)

    def __getitem__(self, state: State) -> int:
        return self.index[state]

    def __contains__(self, state: object) -> bool:
        return state in self.index

    def __len__(self) -> int:
        return len(self.states)

    def __iter__(self):
        return iter(self.states)


class CompiledModel:
    """
    Flat numpy view of an MDP restricted to an enumerated state set.

    `transitions` is called exactly once per (non-terminal state, legal action)
    pair.  Each transition is stored as a row of parallel arrays:

        t_sa      – id of the (state, action) pair it belongs to
        t_prob    – probability
        t_reward  – immediate reward
        t_next    – index of the next state, or `sink` if it was never
                    enumerated (its value is read as 0)

    Value vectors passed to the helpers have one entry per indexed state.
    """

    def __init__(self, model: MDPModel, states):
        self.model = model
        self.index = states if isinstance(states, StateIndex) else StateIndex(states)
        n = len(self.index)
        self.n_states = n
        self.sink = n
        self.terminal = np.zeros(n, dtype=bool)
        self.actions: List[List[Any]] = []
        self.sa_start = np.full(n, -1, dtype=np.int64)

        sa_state, sa_pos = [], []
        t_sa, t_prob, t_reward, t_next = [], [], [], []
        for i, s in enumerate(self.index.states):
            if model.is_terminal(s):
                self.terminal[i] = True
                self.actions.append([])
                continue
            actions = list(model.legal_actions(s))
            if not actions:
                raise InvalidModelError(f"Non-terminal state {s!r} has no legal actions")
            self.actions.append(actions)
            self.sa_start[i] = len(sa_state)
            for pos, a in enumerate(actions):
                sa = len(sa_state)
                sa_state.append(i)
                sa_pos.append(pos)
                transitions = model.transitions(s, a)
                check_transitions(s, a, transitions)
                for p, r, s_next in transitions:
                    t_sa.append(sa)
                    t_prob.append(p)
                    t_reward.append(r)
                    t_next.append(self.index.get(s_next, self.sink))

        self.n_pairs = len(sa_state)
        self.max_actions = max((len(a) for a in self.actions), default=0)
        self.sa_state = np.array(sa_state, dtype=np.int64)
        self.sa_pos = np.array(sa_pos, dtype=np.int64)
        self.t_sa = np.array(t_sa, dtype=np.int64)
        self.t_prob = np.array(t_prob, dtype=float)
        self.t_reward = np.array(t_reward, dtype=float)
        self.t_next = np.array(t_next, dtype=np.int64)

    @property
    def states(self) -> List[State]:
        return self.index.states

    def _extended(self, V: np.ndarray) -> np.ndarray:
        # trailing slot is the sink: never-enumerated next states are worth 0
        return np.append(V, 0.0)

    # ------------------------------------------------------------------
    # One-step lookahead
    # ------------------------------------------------------------------
    def action_values(self, V: np.ndarray, gamma: float) -> np.ndarray:
        """
        Return the |S|×A matrix Q[s, k] = Σ p·(r + γ·V(s')) for the k‑th legal
        action of s.  Slots without an action hold -inf.
        """
        ext = self._extended(V)
        contrib = self.t_prob * (self.t_reward + gamma * ext[self.t_next])
        q_sa = np.bincount(self.t_sa, weights=contrib, minlength=self.n_pairs)
        Q = np.full((self.n_states, self.max_actions), -np.inf)
        Q[self.sa_state, self.sa_pos] = q_sa
        return Q

    def backup(self, V: np.ndarray, gamma: float) -> np.ndarray:
        """Synchronous Bellman-optimality backup; terminal states pinned to 0."""
        new_values = np.zeros(self.n_states)
        live = ~self.terminal
        if self.max_actions and live.any():
            new_values[live] = self.action_values(V, gamma)[live].max(axis=1)
        return new_values

    def greedy(self, V: np.ndarray, gamma: float, incumbent: Optional[np.ndarray] = None,
               tol: float = 0.0) -> np.ndarray:
        """
        Position of the best action for each state (-1 for terminal states).

        Actions within `tol` of the maximum count as tied; ties go to the
        first action in enumeration order unless the `incumbent` position is
        among them, in which case it is kept.
        """
        positions = np.full(self.n_states, -1, dtype=np.int64)
        live = ~self.terminal
        if not (self.max_actions and live.any()):
            return positions
        Q = self.action_values(V, gamma)[live]
        near = Q >= Q.max(axis=1, keepdims=True) - tol
        best = np.argmax(near, axis=1)
        if incumbent is not None:
            current = incumbent[live]
            keep = (current >= 0) & near[np.arange(len(current)), np.maximum(current, 0)]
            best = np.where(keep, current, best)
        positions[live] = best
        return positions

    # ------------------------------------------------------------------
    # Fixed-policy evaluation
    # ------------------------------------------------------------------
    def evaluate(self, V: np.ndarray, gamma: float, positions: np.ndarray) -> np.ndarray:
        """Synchronous Bellman-expectation backup for a fixed policy."""
        chosen = np.zeros(self.n_pairs, dtype=bool)
        has_action = positions >= 0
        chosen[self.sa_start[has_action] + positions[has_action]] = True
        mask = chosen[self.t_sa]
        ext = self._extended(V)
        contrib = self.t_prob[mask] * (self.t_reward[mask] + gamma * ext[self.t_next[mask]])
        rows = self.sa_state[self.t_sa[mask]]
        new_values = np.bincount(rows, weights=contrib, minlength=self.n_states)
        new_values[self.terminal] = 0.0
        return new_values

    def build_PR_matrices(self, positions: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Return (P, R) for the deterministic policy given by `positions`.

        • P is |S|×|S| with P[i, j] the probability of reaching s_j from s_i
        • R is length‑|S|, the expected immediate reward of π(s_i).
        Transitions to the sink are dropped from P (their value is 0).
        """
        n = self.n_states
        P = np.zeros((n, n))
        R = np.zeros(n)
        has_action = positions >= 0
        chosen = np.zeros(self.n_pairs, dtype=bool)
        chosen[self.sa_start[has_action] + positions[has_action]] = True
        mask = chosen[self.t_sa]
        rows = self.sa_state[self.t_sa[mask]]
        probs = self.t_prob[mask]
        np.add.at(R, rows, probs * self.t_reward[mask])
        nxt = self.t_next[mask]
        inside = (nxt != self.sink) & ~self.terminal[np.minimum(nxt, n - 1)]
        np.add.at(P, (rows[inside], nxt[inside]), probs[inside])
        return P, R

    def solve_policy(self, positions: np.ndarray, gamma: float) -> np.ndarray:
        """Exact evaluation: solve (I − γP)V = R."""
        P, R = self.build_PR_matrices(positions)
        return np.linalg.solve(np.eye(self.n_states) - gamma * P, R)

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------
    def to_policy(self, positions: np.ndarray) -> Policy:
        """Export action positions as a fresh Policy; terminal states get no entry."""
        policy = Policy()
        for i, s in enumerate(self.index.states):
            if self.terminal[i] or positions[i] < 0:
                continue
            policy.set(s, self.actions[i][positions[i]])
        return policy

    def to_positions(self, policy) -> np.ndarray:
        """Inverse of `to_policy`; states without a (legal) entry map to -1."""
        positions = np.full(self.n_states, -1, dtype=np.int64)
        for i, s in enumerate(self.index.states):
            action = policy.get(s)
            if action is not None and action in self.actions[i]:
                positions[i] = self.actions[i].index(action)
        return positions

    def value_dict(self, V: np.ndarray) -> Dict[State, float]:
        return {s: float(V[i]) for i, s in enumerate(self.index.states)}
