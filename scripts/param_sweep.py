#!/usr/bin/env python3
"""
Parameter sweep of the three solvers on a small Connect‑k board.

Iterates over:
  • gammas  = [0.7, 0.8, 0.9, 0.95]
  • methods = value iteration, policy iteration, Q‑learning

Logs:
  |S|     – number of states enumerated
  iter    – VI sweeps / PI improvement rounds / Q episodes
  agree   – share of states where the policy matches value iteration
  win     – win rate of the policy over simulated games vs. the random opponent
  time    – wall-clock runtime
"""
import sys, pathlib
sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

import argparse
import time
import numpy as np

from agent_factory import make_agent
from connect_mdp import ConnectMDP
from environment import ModelEnvironment


def win_rate(model, policy, games: int, seed: int = 0) -> float:
    env = ModelEnvironment(model, rng=np.random.default_rng(seed))
    wins = 0
    for _ in range(games):
        env.reset()
        reward = 0.0
        while not env.is_terminal():
            state = env.current_state()
            result = env.step(policy.get(state, model.legal_actions(state)[0]))
            reward = result.outcome.reward
        if reward == model.win_reward:
            wins += 1
    return wins / games


def agreement(policy, reference) -> float:
    if len(reference) == 0:
        return 1.0
    same = sum(1 for s, a in reference.items() if policy.get(s) == a)
    return same / len(reference)


def run_one(model, method: str, gamma: float, episodes: int):
    kwargs = {}
    if method != "value":
        kwargs["seed"] = 0
    if method == "q":
        kwargs["num_episodes"] = episodes
    t0 = time.perf_counter()
    agent = make_agent(method, model, gamma=gamma, **kwargs)
    elapsed = time.perf_counter() - t0
    if method == "value":
        iterations, num_states = agent.vi_sweeps, agent.mdp.n_states
    elif method == "policy":
        iterations, num_states = agent.policy_iterations, agent.mdp.n_states
    else:
        iterations, num_states = agent.episodes_run, len(agent.q_table)
    return agent, num_states, iterations, elapsed


def main():
    parser = argparse.ArgumentParser(description="Sweep γ over the three MDP solvers.")
    parser.add_argument('--rows', type=int, default=3)
    parser.add_argument('--cols', type=int, default=3)
    parser.add_argument('--win', type=int, default=3, help='Pieces in a row needed to win')
    parser.add_argument('--games', type=int, default=500, help='Simulated games per policy')
    parser.add_argument('--episodes', type=int, default=20_000, help='Q-learning episodes')
    args = parser.parse_args()

    model = ConnectMDP(rows=args.rows, cols=args.cols, win_condition=args.win)
    print(f"Parameter sweep ({args.rows}×{args.cols} board, {args.win} in a row)")
    for gamma in [0.7, 0.8, 0.9, 0.95]:
        reference = None
        for method in ("value", "policy", "q"):
            agent, num_states, iterations, elapsed = run_one(model, method, gamma, args.episodes)
            if reference is None:
                reference = agent.policy
            print(f"γ={gamma:4.2f}  {method:6s}  "
                  f"|S|={num_states:5d}  iter={iterations:6d}  "
                  f"agree={agreement(agent.policy, reference):5.3f}  "
                  f"win={win_rate(model, agent.policy, args.games):5.3f}  "
                  f"time={elapsed:6.3f}s")


if __name__ == "__main__":
    main()
