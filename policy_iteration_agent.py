from typing import Dict, Optional
import numpy as np

from dp_common import CompiledModel, StateIndex
from mdp_model import MDPModel, Policy

"""
--------------------------------------------------------------------------
Policy iteration  —  evaluate / improve until the policy is stable
--------------------------------------------------------------------------

Two separate notions of convergence are involved:

1. **Value convergence** (`evaluate_policy`) – sweeps of the Bellman
   expectation equation for the *current* policy

       V(s) ← Σ_{s'} P(s'|s,π(s)) · ( R + γ·V(s') )

   until the largest per‑state change in one sweep is ≤ δ.  γ < 1 makes this
   a contraction; the sweep count is still capped and a warning is printed if
   the cap is reached.

2. **Policy convergence** (`train`) – greedy improvement against the frozen
   value table until no state changes its action.

The current policy is kept as one action position per state (index into the
state's legal-action list, -1 for terminal states) and only turned into a
`Policy` once training has finished.
--------------------------------------------------------------------------
"""


class PolicyIterationAgent:
    """
    Policy-iteration solver with iterative policy evaluation.
    """

    def __init__(self, model: MDPModel, discount_factor: float = 0.9, delta: float = 1e-6,
                 max_eval_sweeps: int = 10_000, max_policy_iterations: int = 1_000,
                 tie_tolerance: Optional[float] = None,
                 first_player: Optional[int] = None, rng: Optional[np.random.Generator] = None,
                 seed: Optional[int] = None, verbose: bool = False, auto_train: bool = True):
        """
        Initialize the policy-iteration agent.

        Args:
            model: The MDP to solve
            discount_factor: The discount factor for future rewards (gamma)
            delta: Convergence threshold for policy evaluation
            max_eval_sweeps: Sweep cap for a single policy evaluation
            max_policy_iterations: Cap on evaluate/improve rounds
            tie_tolerance: Actions this close to the best count as tied. During
                           improvement a tied incumbent is kept; the exported
                           policy takes the first tied action (defaults to 10·delta)
            first_player: Starting condition passed to the state enumeration
            rng: Random source for the initial policy (built from `seed` if omitted)
            verbose: Master verbosity flag
            auto_train: Train immediately (construction blocks until done)
        """
        self.model = model
        self.gamma = discount_factor
        self.delta = delta
        self.max_eval_sweeps = max_eval_sweeps
        self.max_policy_iterations = max_policy_iterations
        self.tie_tolerance = 10 * delta if tie_tolerance is None else tie_tolerance
        self.first_player = first_player
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.verbose = verbose
        self.policy: Optional[Policy] = None

        # Instrumentation counters
        self.eval_sweeps: int = 0          # sweeps in the last evaluation
        self.last_eval_delta: float = 0.0  # final Δ of the last evaluation
        self.eval_converged: bool = True
        self.policy_iterations: int = 0
        self.policy_updates_last: int = 0
        self.policy_stable: bool = False

        self.mdp = CompiledModel(model, StateIndex(model.enumerate_states(first_player)))
        self.init_values()
        self.init_random_policy()
        if auto_train:
            self.train()

    def _vprint(self, *args, **kwargs):
        """Verbose‑controlled print."""
        if self.verbose:
            print(*args, **kwargs)

    def init_values(self) -> None:
        """Set V(s) = 0 for every enumerated state."""
        self.values = np.zeros(self.mdp.n_states)

    def init_random_policy(self) -> None:
        """Pick one uniformly random legal action for every non-terminal state."""
        self.positions = np.full(self.mdp.n_states, -1, dtype=np.int64)
        for i, actions in enumerate(self.mdp.actions):
            if actions:
                self.positions[i] = self.rng.integers(len(actions))

    def get_value(self, state) -> float:
        """V(s) under the current policy; states never enumerated are worth 0."""
        i = self.mdp.index.get(state)
        return 0.0 if i is None else float(self.values[i])

    def value_function(self) -> Dict:
        return self.mdp.value_dict(self.values)

    def current_action(self, state):
        """Action the current (possibly unfinished) policy takes in state."""
        i = self.mdp.index.get(state)
        if i is None or self.positions[i] < 0:
            return None
        return self.mdp.actions[i][self.positions[i]]

    def evaluate_policy(self, delta: Optional[float] = None) -> bool:
        """
        Evaluate the current policy by sweeping until max |ΔV| ≤ delta.

        Returns:
            bool: False if the sweep cap was hit before converging
        """
        if delta is None:
            delta = self.delta
        self.eval_sweeps = 0
        change = 0.0
        while True:
            new_values = self.mdp.evaluate(self.values, self.gamma, self.positions)
            change = float(np.max(np.abs(new_values - self.values))) if len(new_values) else 0.0
            self.values = new_values
            self.eval_sweeps += 1
            if change <= delta:
                self.eval_converged = True
                break
            if self.eval_sweeps >= self.max_eval_sweeps:
                print(f"Warning: policy evaluation stopped after {self.eval_sweeps} sweeps "
                      f"without converging (delta={change:.6g} > {delta:.6g})")
                self.eval_converged = False
                break
        self.last_eval_delta = change
        self._vprint(f"Policy evaluation: {self.eval_sweeps} sweeps, final delta={change:.6g}")
        return self.eval_converged

    def improve_policy(self) -> bool:
        """
        Greedy improvement against the current value table.

        Returns:
            bool: True if any state's action changed
        """
        best = self.mdp.greedy(self.values, self.gamma, incumbent=self.positions, tol=self.tie_tolerance)
        changed = best != self.positions
        self.policy_updates_last = int(np.count_nonzero(changed))
        self.positions = best
        return self.policy_updates_last > 0

    def evaluate_policy_exact(self) -> np.ndarray:
        """Values of the current policy from (I − γP)V = R."""
        return self.mdp.solve_policy(self.positions, self.gamma)

    def train(self) -> None:
        """Alternate evaluation and improvement until the policy is stable."""
        self.policy = None
        self.policy_iterations = 0
        self.policy_stable = False
        while self.policy_iterations < self.max_policy_iterations:
            self.policy_iterations += 1
            self.evaluate_policy(self.delta)
            if not self.improve_policy():
                self.policy_stable = True
                break
            self._vprint(f"Iteration {self.policy_iterations}: {self.policy_updates_last} states changed")
        if not self.policy_stable:
            print(f"Warning: policy still changing after {self.policy_iterations} iterations "
                  f"({self.policy_updates_last} updates in the last one)")
        self.policy = self.extract_policy()
        self.print_stats("Policy iteration")

    def extract_policy(self) -> Policy:
        """
        Greedy policy for the evaluated values, with no preference for the
        incumbent: the first action within `tie_tolerance` of the best wins.
        """
        self.positions = self.mdp.greedy(self.values, self.gamma, tol=self.tie_tolerance)
        return self.mdp.to_policy(self.positions)

    def print_stats(self, label: str = "PI run stats") -> None:
        """Print key instrumentation counters in a single line."""
        self._vprint(f"{label}: "
                     f"|S|={self.mdp.n_states}, "
                     f"iterations={self.policy_iterations}, "
                     f"last eval sweeps={self.eval_sweeps}, "
                     f"final Δ={self.last_eval_delta:.6f}, "
                     f"stable={self.policy_stable}")
