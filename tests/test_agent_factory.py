import pytest

from agent_factory import make_agent
from policy_iteration_agent import PolicyIterationAgent
from q_learning_agent import QLearningAgent
from value_iteration_agent import ValueIterationAgent


@pytest.mark.parametrize("method, cls", [
    ("value", ValueIterationAgent),
    ("VI", ValueIterationAgent),
    ("policy_iteration", PolicyIterationAgent),
    ("pi", PolicyIterationAgent),
    ("q", QLearningAgent),
])
def test_make_agent_builds_trained_solver(two_state_mdp, method, cls):
    kwargs = {"seed": 0} if cls is not ValueIterationAgent else {}
    if cls is QLearningAgent:
        kwargs.update(num_episodes=300, learning_rate=0.5)
    agent = make_agent(method, two_state_mdp, gamma=0.5, **kwargs)
    assert isinstance(agent, cls)
    assert agent.gamma == 0.5
    assert agent.policy.get("S0") == "A"


def test_defaults_can_be_overridden(two_state_mdp):
    agent = make_agent("value", two_state_mdp, iterations=3, auto_train=False)
    assert agent.k == 3
    assert agent.policy is None


def test_default_model_is_small_board():
    agent = make_agent("value", iterations=10)
    assert agent.mdp.n_states > 0
    assert len(agent.policy) > 0


def test_rejects_bad_configuration(two_state_mdp):
    with pytest.raises(ValueError):
        make_agent("minimax", two_state_mdp)
    with pytest.raises(ValueError):
        make_agent("value", two_state_mdp, gamma=1.0)
