import sys, pathlib
sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

import numpy as np
import pytest

from mdp_model import TabularMDP


def make_random_mdp(n_states: int = 6, n_actions: int = 3, branching: int = 3, seed: int = 0) -> TabularMDP:
    """
    Random stochastic MDP over states 0..n_states-1 plus a terminal "T".
    Each (s, a) leads to `branching` distinct next states with Dirichlet
    probabilities and normally distributed rewards.
    """
    rng = np.random.default_rng(seed)
    table = {}
    for s in range(n_states):
        table[s] = {}
        for a in range(n_actions):
            targets = rng.choice(n_states + 1, size=branching, replace=False)
            probs = rng.dirichlet(np.ones(branching))
            rewards = rng.normal(size=branching)
            table[s][a] = [
                (float(p), float(r), "T" if t == n_states else int(t))
                for p, r, t in zip(probs, rewards, targets)
            ]
    return TabularMDP(table, terminal_states=["T"], start=0)


@pytest.fixture
def two_state_mdp():
    """S0 --A--> S1 (reward 10, terminal);  S0 --B--> S0 (reward 1)."""
    return TabularMDP(
        {"S0": {"A": [(1.0, 10.0, "S1")], "B": [(1.0, 1.0, "S0")]}},
        terminal_states=["S1"],
    )


@pytest.fixture
def risky_mdp():
    """
    S0: "safe" ends the game with reward 1, "risky" moves to S1 for nothing.
    S1: "cash" ends the game with reward 4, "back" returns to S0.
    With γ = 0.9 the optimum is S0 → risky, S1 → cash (V(S0) = 3.6, V(S1) = 4).
    """
    return TabularMDP(
        {
            "S0": {"safe": [(1.0, 1.0, "T")], "risky": [(1.0, 0.0, "S1")]},
            "S1": {"cash": [(1.0, 4.0, "T")], "back": [(1.0, 0.0, "S0")]},
        },
        terminal_states=["T"],
        start="S0",
    )


@pytest.fixture
def random_mdp():
    return make_random_mdp(n_states=8, n_actions=3, seed=7)
