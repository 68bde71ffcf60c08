from unittest import mock

import numpy as np
import pytest

from mdp_model import TabularMDP
from value_iteration_agent import ValueIterationAgent


def test_two_state_scenario(two_state_mdp):
    """Taking A at once (10) beats looping on B (at most 1/(1-0.5) = 2)."""
    agent = ValueIterationAgent(two_state_mdp, discount_factor=0.5, iterations=50)
    assert agent.get_value("S0") == pytest.approx(10.0)
    assert agent.get_value("S1") == 0.0
    assert agent.policy.get("S0") == "A"


def test_terminal_states_get_no_policy_entry(two_state_mdp):
    agent = ValueIterationAgent(two_state_mdp, discount_factor=0.5)
    assert "S1" not in agent.policy
    assert len(agent.policy) == 1


def test_iterate_runs_exactly_k_sweeps(random_mdp):
    agent = ValueIterationAgent(random_mdp, iterations=7, auto_train=False)
    with mock.patch.object(agent.mdp, "backup", wraps=agent.mdp.backup) as backup:
        agent.iterate()
    assert backup.call_count == 7
    assert agent.vi_sweeps == 7


def test_sweeps_are_synchronous():
    """
    Chain S0 → S1 → T with the only reward on the last step.  After a single
    sweep a synchronous update leaves V(S0) = 0 whatever order the states are
    visited in; an in-place sweep visiting S1 first would already give
    V(S0) = γ·5.  Both reach the same fixed point, only the path differs.
    """
    chain = {
        "S1": {"go": [(1.0, 5.0, "T")]},
        "S0": {"go": [(1.0, 0.0, "S1")]},
    }
    agent = ValueIterationAgent(TabularMDP(chain, terminal_states=["T"]), iterations=1)
    assert agent.get_value("S1") == pytest.approx(5.0)
    assert agent.get_value("S0") == 0.0

    agent.k = 1
    agent.iterate()
    assert agent.get_value("S0") == pytest.approx(0.9 * 5.0)


def test_result_independent_of_state_order(random_mdp):
    reordered = TabularMDP(dict(reversed(list(random_mdp.table.items()))), terminal_states=["T"])
    a = ValueIterationAgent(random_mdp, iterations=5)
    b = ValueIterationAgent(reordered, iterations=5)
    assert a.value_function() == pytest.approx(b.value_function())
    assert a.policy == b.policy


def test_terminal_states_pinned_to_zero(random_mdp):
    agent = ValueIterationAgent(random_mdp, iterations=20)
    assert agent.get_value("T") == 0.0
    assert agent.get_value("never-seen") == 0.0


def test_train_replaces_policy_with_fresh_instance(two_state_mdp):
    agent = ValueIterationAgent(two_state_mdp, discount_factor=0.5)
    first = agent.policy
    agent.train()
    assert agent.policy is not first
    assert agent.policy == first


def test_verbose_prints_stats(two_state_mdp, capsys):
    ValueIterationAgent(two_state_mdp, discount_factor=0.5, iterations=10, verbose=True)
    out = capsys.readouterr().out
    assert "Value iteration: |S|=2" in out
    assert np.isfinite(float(out.split("final Δ=")[1].split(",")[0]))
