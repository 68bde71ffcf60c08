from typing import Dict, List, Optional, Tuple

from game_state import AGENT, OPPONENT, GameState
from mdp_model import MDPModel, Transition

"""
--------------------------------------------------------------------------
Connect‑k against a random opponent  —  MDP definition
--------------------------------------------------------------------------

• **State space  (S)**  –  `GameState` positions where the agent (piece 1) is
  to move, plus every terminal position reachable from the start.

• **Action space  (A(s))**  –  Columns that are not full.

• **Transition  (T)**  –  The agent drops its piece; unless that ends the game
  the opponent replies in a uniformly random open column.  Each reply is one
  transition with probability 1 / |open columns|.

• **Reward  (R)**  –  Read off the state the transition lands in:
    *  `win_reward`    if the agent has k in a row,
    *  `lose_reward`   if the opponent has,
    *  `draw_reward`   if the board is full,
    *  `living_reward` otherwise.

• **Starting condition**  –  `first_player` (AGENT or OPPONENT).  When the
  opponent opens, the start distribution is its random first move.
--------------------------------------------------------------------------
"""


class ConnectMDP(MDPModel):
    """
    Connect-k on a small board, seen from the agent's side.
    """

    def __init__(self, rows: int = 3, cols: int = 3, win_condition: int = 3,
                 win_reward: float = 10.0, lose_reward: float = -10.0,
                 draw_reward: float = 0.0, living_reward: float = 0.0):
        self.rows = rows
        self.cols = cols
        self.win_condition = win_condition
        self.win_reward = win_reward
        self.lose_reward = lose_reward
        self.draw_reward = draw_reward
        self.living_reward = living_reward
        self._transitions: Dict[Tuple[GameState, int], List[Transition]] = {}

    def reward(self, state: GameState) -> float:
        """Reward for landing in state."""
        winner = state.winner()
        if winner == AGENT + 1:
            return self.win_reward
        if winner == OPPONENT + 1:
            return self.lose_reward
        if state.is_terminal():
            return self.draw_reward
        return self.living_reward

    def initial_states(self, first_player: Optional[int] = None) -> List[Tuple[float, GameState]]:
        if first_player is None:
            first_player = AGENT
        root = GameState.empty(self.rows, self.cols, self.win_condition, turn=first_player)
        if first_player == AGENT:
            return [(1.0, root)]
        openings = root.get_valid_actions()
        return [(1.0 / len(openings), root.apply_action(col)) for col in openings]

    def enumerate_states(self, first_player: Optional[int] = None) -> List[GameState]:
        """Breadth-first enumeration of every state reachable from the start."""
        frontier = [s for _, s in self.initial_states(first_player)]
        seen = set(frontier)
        all_states = list(frontier)
        while frontier:
            new_frontier = []
            for state in frontier:
                if state.is_terminal():
                    continue
                for action in state.get_valid_actions():
                    for _, _, next_state in self.transitions(state, action):
                        if next_state not in seen:
                            seen.add(next_state)
                            all_states.append(next_state)
                            new_frontier.append(next_state)
            frontier = new_frontier
        return all_states

    def legal_actions(self, state: GameState) -> List[int]:
        return state.get_valid_actions()

    def is_terminal(self, state: GameState) -> bool:
        return state.is_terminal()

    def transitions(self, state: GameState, action: int) -> List[Transition]:
        key = (state, action)
        cached = self._transitions.get(key)
        if cached is not None:
            return cached

        after_move = state.apply_action(action)
        if after_move.is_terminal():
            result = [Transition(1.0, self.reward(after_move), after_move)]
        else:
            replies = after_move.get_valid_actions()
            p = 1.0 / len(replies)
            result = []
            for col in replies:
                next_state = after_move.apply_action(col)
                result.append(Transition(p, self.reward(next_state), next_state))
        self._transitions[key] = result
        return result
