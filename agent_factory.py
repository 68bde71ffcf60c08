"""
agent_factory.py
----------------
Centralised helper to configure and create solver agents.

Edit the defaults here (γ, sweeps, learning rates, verbosity) instead of
hunting through the solver modules.  Any module can simply:

    from agent_factory import make_agent
    agent = make_agent("value")                       # VI on the 3×3 game, γ=0.9
    pi = make_agent("policy", gamma=0.95, seed=0)     # reproducible PI
    ql = make_agent("q", num_episodes=50_000, verbose=True)
"""

from typing import Any, Dict, Optional

from connect_mdp import ConnectMDP
from mdp_model import MDPModel
from policy_iteration_agent import PolicyIterationAgent
from q_learning_agent import QLearningAgent
from value_iteration_agent import ValueIterationAgent

DEFAULTS: Dict[str, Dict[str, Any]] = {
    "value": {"iterations": 50},
    "policy": {"delta": 1e-6, "max_eval_sweeps": 10_000, "max_policy_iterations": 1_000},
    "q": {"learning_rate": 0.1, "epsilon": 0.1, "num_episodes": 10_000},
}

ALIASES = {
    "value": "value", "vi": "value", "value_iteration": "value",
    "policy": "policy", "pi": "policy", "policy_iteration": "policy",
    "q": "q", "ql": "q", "q_learning": "q",
}

AGENT_CLASSES = {
    "value": ValueIterationAgent,
    "policy": PolicyIterationAgent,
    "q": QLearningAgent,
}


def make_agent(
    method: str = "value",
    model: Optional[MDPModel] = None,
    *,
    gamma: float = 0.9,
    verbose: bool = False,
    **kwargs: Any
):
    """
    Build, train and return a configured solver agent.

    Args
    ----
    method    : "value" / "vi", "policy" / "pi" or "q" / "ql".
    model     : MDP to solve; defaults to Connect‑3 on a 3×3 board.
    gamma     : Discount factor (0 < γ < 1).
    verbose   : Master verbosity flag controlling most console prints.
    **kwargs  : Override any entry of DEFAULTS[method] or pass other
                constructor keywords (seed, first_player, auto_train …).

    Returns
    -------
    The agent instance; trained unless auto_train=False was passed.
    """
    key = ALIASES.get(method.lower())
    if key is None:
        raise ValueError(f"Unknown solver method {method!r}; expected one of {sorted(ALIASES)}")
    if not 0.0 < gamma < 1.0:
        raise ValueError(f"Discount factor must lie in (0, 1), got {gamma}")
    if model is None:
        model = ConnectMDP()
    options = dict(DEFAULTS[key])
    options.update(kwargs)
    return AGENT_CLASSES[key](model, discount_factor=gamma, verbose=verbose, **options)
