import numpy as np

from connect_mdp import ConnectMDP
from environment import ModelEnvironment, Outcome
from game_state import OPPONENT
from mdp_model import TabularMDP


def test_step_returns_outcome(two_state_mdp):
    env = ModelEnvironment(two_state_mdp, rng=np.random.default_rng(0))
    assert env.current_state() == "S0"
    assert not env.is_terminal()
    result = env.step("B")
    assert result.ok
    assert result.outcome == Outcome("S0", "B", 1.0, "S0")
    result = env.step("A")
    assert result.outcome == Outcome("S0", "A", 10.0, "S1")
    assert env.is_terminal()
    env.reset()
    assert env.current_state() == "S0"


def test_illegal_action_does_not_advance(two_state_mdp):
    env = ModelEnvironment(two_state_mdp, rng=np.random.default_rng(0))
    result = env.step("C")
    assert not result.ok
    assert result.outcome is None
    assert result.error.state == "S0" and result.error.action == "C"
    assert env.current_state() == "S0"

    env.step("A")
    after_end = env.step("A")
    assert not after_end.ok
    assert env.current_state() == "S1"


def test_sampling_follows_transition_probabilities():
    model = TabularMDP({"s": {"flip": [(0.25, 1.0, "heads"), (0.75, 0.0, "tails")]}},
                       terminal_states=["heads", "tails"])
    env = ModelEnvironment(model, rng=np.random.default_rng(42))
    heads = 0
    for _ in range(4000):
        env.reset()
        heads += env.step("flip").outcome.next_state == "heads"
    assert abs(heads / 4000 - 0.25) < 0.03


def test_game_episode_against_random_opponent():
    model = ConnectMDP(rows=3, cols=3, win_condition=3)
    env = ModelEnvironment(model, first_player=OPPONENT, rng=np.random.default_rng(1))
    assert sum(env.current_state().cells[0]) == 2
    steps = 0
    while not env.is_terminal():
        state = env.current_state()
        result = env.step(model.legal_actions(state)[0])
        assert result.ok
        steps += 1
    assert 1 <= steps <= 4
