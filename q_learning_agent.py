from typing import Any, Dict, List, Optional, Tuple
import numpy as np

from dp_common import StateIndex
from environment import ModelEnvironment, Outcome
from errors import IllegalActionError
from mdp_model import MDPModel, Policy

"""
--------------------------------------------------------------------------
Q‑learning  —  model‑free temporal‑difference control
--------------------------------------------------------------------------

Episodes are played against a stepping environment.  Each step picks an
action ε‑greedily and applies

    Q(s,a) ← (1−α)·Q(s,a) + α·( r + γ·max_a' Q(s',a') )

with max_a' Q(s',a') = 0 when s' is terminal.  The model is only used to
enumerate the (state, action) pairs the table starts with and to look up
legal actions; transitions come from the environment.
--------------------------------------------------------------------------
"""


class QTable:
    """
    Action-value table: one numpy row per state, one column per legal action
    (in the model's enumeration order).  Unseen pairs read 0.
    """

    def __init__(self):
        self.index = StateIndex()
        self.actions: List[List[Any]] = []
        self.rows: List[np.ndarray] = []

    def add_state(self, state, actions) -> int:
        """Register state with its legal actions (no-op if already present)."""
        i = self.index.get(state)
        if i is None:
            i = self.index.add(state)
            self.actions.append(list(actions))
            self.rows.append(np.zeros(len(self.actions[i])))
        return i

    def __contains__(self, state) -> bool:
        return state in self.index

    def __len__(self) -> int:
        return len(self.index)

    def states(self) -> List[Any]:
        return list(self.index.states)

    def legal_actions(self, state) -> List[Any]:
        i = self.index.get(state)
        return [] if i is None else self.actions[i]

    def get_q_value(self, state, action) -> float:
        i = self.index.get(state)
        if i is None or action not in self.actions[i]:
            return 0.0
        return float(self.rows[i][self.actions[i].index(action)])

    def set_q_value(self, state, action, value: float) -> None:
        i = self.index[state]
        self.rows[i][self.actions[i].index(action)] = value

    def max_q_value(self, state) -> float:
        """max_a Q(state, a); 0 for unknown states or states without actions."""
        i = self.index.get(state)
        if i is None or not self.actions[i]:
            return 0.0
        return float(self.rows[i].max())

    def best_action(self, state):
        """Arg-max action, first in enumeration order on ties."""
        i = self.index.get(state)
        if i is None or not self.actions[i]:
            return None
        return self.actions[i][int(np.argmax(self.rows[i]))]

    def as_dict(self) -> Dict[Tuple[Any, Any], float]:
        return {(s, a): float(self.rows[i][k])
                for i, s in enumerate(self.index.states)
                for k, a in enumerate(self.actions[i])}


class QLearningAgent:
    """
    Tabular Q-learning agent trained online against a stepping environment.
    """

    def __init__(self, model: MDPModel, env=None, learning_rate: float = 0.1,
                 discount_factor: float = 0.9, epsilon: float = 0.1, num_episodes: int = 10_000,
                 epsilon_decay: float = 1.0, min_epsilon: float = 0.0,
                 max_steps_per_episode: int = 10_000, first_player: Optional[int] = None,
                 rng: Optional[np.random.Generator] = None, seed: Optional[int] = None,
                 verbose: bool = False, auto_train: bool = True):
        """
        Initialize the Q-learning agent.

        Args:
            model: MDP used for the state enumeration and legal actions
            env: Stepping environment (defaults to sampling `model`)
            learning_rate: α
            discount_factor: γ
            epsilon: Exploration rate ε
            num_episodes: Number of training episodes N
            epsilon_decay: Factor applied to ε after every episode (1.0 keeps it fixed)
            min_epsilon: Floor for the decayed ε
            max_steps_per_episode: Step cap guarding against endless episodes
            first_player: Starting condition for enumeration and the default env
            rng: Random source for exploration (built from `seed` if omitted)
            verbose: Master verbosity flag
            auto_train: Train immediately (construction blocks until done)
        """
        self.model = model
        self.alpha = learning_rate
        self.gamma = discount_factor
        self.epsilon = epsilon
        self.epsilon_decay = epsilon_decay
        self.min_epsilon = min_epsilon
        self.num_episodes = num_episodes
        self.max_steps_per_episode = max_steps_per_episode
        self.first_player = first_player
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.env = env if env is not None else ModelEnvironment(model, first_player, self.rng)
        self.verbose = verbose
        self.policy: Optional[Policy] = None

        # Instrumentation counters
        self.episodes_run: int = 0
        self.steps_taken: int = 0
        self.truncated_episodes: int = 0

        self.q_table = QTable()
        self.init_q_table()
        if auto_train:
            self.train()

    def _vprint(self, *args, **kwargs):
        """Verbose‑controlled print."""
        if self.verbose:
            print(*args, **kwargs)

    def init_q_table(self) -> None:
        """Q(s, a) = 0 for every enumerated state with legal actions."""
        for state in self.model.enumerate_states(self.first_player):
            if self.model.is_terminal(state):
                continue
            actions = self.model.legal_actions(state)
            if actions:
                self.q_table.add_state(state, actions)

    def _actions_for(self, state) -> List[Any]:
        if state not in self.q_table:
            self.q_table.add_state(state, self.model.legal_actions(state))
        return self.q_table.legal_actions(state)

    def choose_action(self, state):
        """Epsilon-greedy selection among the legal actions of state."""
        actions = self._actions_for(state)
        if not actions:
            return None
        if self.rng.random() < self.epsilon:
            return actions[self.rng.integers(len(actions))]
        return self.q_table.best_action(state)

    def update(self, outcome: Outcome) -> float:
        """Apply one temporal-difference update; returns the new Q-value."""
        s, a, reward, s_next = outcome
        self._actions_for(s)
        if self.model.is_terminal(s_next):
            future = 0.0
        else:
            future = self.q_table.max_q_value(s_next)
        q = self.q_table.get_q_value(s, a)
        new_q = (1 - self.alpha) * q + self.alpha * (reward + self.gamma * future)
        self.q_table.set_q_value(s, a, new_q)
        return new_q

    def run_episode(self) -> int:
        """
        Play one episode, learning from every step.

        Returns:
            int: number of steps taken

        Raises:
            IllegalActionError: the environment refused the chosen action
        """
        self.env.reset()
        steps = 0
        while not self.env.is_terminal():
            if steps >= self.max_steps_per_episode:
                self._vprint(f"Episode truncated after {steps} steps")
                self.truncated_episodes += 1
                break
            state = self.env.current_state()
            action = self.choose_action(state)
            result = self.env.step(action)
            if not result.ok:
                raise IllegalActionError(result.error.state, result.error.action)
            self.update(result.outcome)
            steps += 1
        return steps

    def train(self) -> None:
        """Run `num_episodes` episodes, then extract the greedy policy."""
        self.policy = None
        self.episodes_run = 0
        self.steps_taken = 0
        self.truncated_episodes = 0
        for episode in range(self.num_episodes):
            self.steps_taken += self.run_episode()
            self.episodes_run += 1
            self.epsilon = max(self.min_epsilon, self.epsilon * self.epsilon_decay)
            if (episode + 1) % 1000 == 0:
                self._vprint(f"Q-learning: {episode + 1} episodes, ε={self.epsilon:.4f}")
        if self.truncated_episodes:
            print(f"Warning: {self.truncated_episodes} of {self.episodes_run} episodes truncated "
                  f"after {self.max_steps_per_episode} steps")
        self.policy = self.extract_policy()
        self.print_stats("Q-learning")

    def extract_policy(self) -> Policy:
        """Arg-max Q action for every non-terminal state in the table."""
        policy = Policy()
        for state in self.q_table.states():
            if self.model.is_terminal(state):
                continue
            action = self.q_table.best_action(state)
            if action is not None:
                policy.set(state, action)
        return policy

    def print_stats(self, label: str = "Q-learning stats") -> None:
        """Print key instrumentation counters in a single line."""
        self._vprint(f"{label}: "
                     f"|Q states|={len(self.q_table)}, "
                     f"episodes={self.episodes_run}, "
                     f"steps={self.steps_taken}, "
                     f"truncated={self.truncated_episodes}, "
                     f"final ε={self.epsilon:.4f}")
