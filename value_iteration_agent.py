from typing import Dict, Optional
import numpy as np

from dp_common import CompiledModel, StateIndex
from mdp_model import MDPModel, Policy

"""
--------------------------------------------------------------------------
Value iteration  —  fixed number of Bellman‑optimality sweeps
--------------------------------------------------------------------------

    V_{k+1}(s) = max_a  Σ_{s'} P(s'|s,a) · ( R(s,a,s') + γ·V_k(s') )

Every sweep reads only the previous sweep's table (synchronous / Jacobi
update), so the result does not depend on the order states are visited.
Terminal states are pinned to 0 on every sweep; the policy is read off the
final table by a single one‑step lookahead.
--------------------------------------------------------------------------
"""


class ValueIterationAgent:
    """
    Value-iteration solver over every state enumerated by the model.
    Runs exactly `iterations` sweeps; there is no Δ-based stopping rule.
    """

    def __init__(self, model: MDPModel, discount_factor: float = 0.9, iterations: int = 50,
                 tie_tolerance: float = 1e-9, first_player: Optional[int] = None,
                 verbose: bool = False, auto_train: bool = True):
        """
        Initialize the value-iteration agent.

        Args:
            model: The MDP to solve
            discount_factor: The discount factor for future rewards (gamma)
            iterations: Number of sweeps k performed by `iterate`
            tie_tolerance: Actions this close to the best count as tied; the
                           first one in enumeration order is extracted
            first_player: Starting condition passed to the state enumeration
            verbose: Master verbosity flag
            auto_train: Train immediately (construction blocks until done)
        """
        self.model = model
        self.gamma = discount_factor
        self.k = iterations
        self.tie_tolerance = tie_tolerance
        self.first_player = first_player
        self.verbose = verbose
        self.policy: Optional[Policy] = None

        # Instrumentation counters
        self.vi_sweeps: int = 0
        self.last_vi_delta: float = 0.0

        self.mdp = CompiledModel(model, StateIndex(model.enumerate_states(first_player)))
        self.init_values()
        if auto_train:
            self.train()

    def _vprint(self, *args, **kwargs):
        """Verbose‑controlled print."""
        if self.verbose:
            print(*args, **kwargs)

    def init_values(self) -> None:
        """Set V(s) = 0 for every enumerated state."""
        self.values = np.zeros(self.mdp.n_states)

    def get_value(self, state) -> float:
        """V(s); states never enumerated are worth 0."""
        i = self.mdp.index.get(state)
        return 0.0 if i is None else float(self.values[i])

    def value_function(self) -> Dict:
        return self.mdp.value_dict(self.values)

    def iterate(self) -> None:
        """Perform `k` synchronous Bellman-optimality sweeps."""
        self.vi_sweeps = 0
        delta = 0.0
        for _ in range(self.k):
            new_values = self.mdp.backup(self.values, self.gamma)
            delta = float(np.max(np.abs(new_values - self.values))) if len(new_values) else 0.0
            self.values = new_values
            self.vi_sweeps += 1
            if self.vi_sweeps % 10 == 0:
                self._vprint(f"Value iteration: {self.vi_sweeps} sweeps, delta={delta:.6f}")
        self.last_vi_delta = delta

    def extract_policy(self) -> Policy:
        """One-step lookahead against the current value table."""
        return self.mdp.to_policy(self.mdp.greedy(self.values, self.gamma, tol=self.tie_tolerance))

    def train(self) -> None:
        """Run value iteration, then extract and store the policy."""
        self.policy = None
        self.iterate()
        self.policy = self.extract_policy()
        self.print_stats("Value iteration")

    def print_stats(self, label: str = "VI run stats") -> None:
        """Print key instrumentation counters in a single line."""
        self._vprint(f"{label}: "
                     f"|S|={self.mdp.n_states}, "
                     f"sweeps={self.vi_sweeps}, "
                     f"final Δ={self.last_vi_delta:.6f}, "
                     f"policy size={len(self.policy) if self.policy is not None else 0}")
