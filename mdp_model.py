from typing import Any, Dict, Hashable, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple

"""
--------------------------------------------------------------------------
Finite MDP  —  model contract shared by every solver
--------------------------------------------------------------------------

• **State  (S)**   –  any hashable, equality‑comparable value.
• **Action (A(s))** –  legal actions of *s*, in a fixed enumeration order.
                      Terminal states have none.
• **Transition**    –  `(probability, reward, next_state)`; the list for one
                      `(s, a)` pair sums to 1.
• **Discount  (γ)** –  owned by the solvers, not by the model.

Solvers only talk to a model through `enumerate_states`, `legal_actions`,
`is_terminal`, `transitions` and `initial_states`.
--------------------------------------------------------------------------
"""

State = Hashable
Action = Hashable


class Transition(NamedTuple):
    probability: float
    reward: float
    next_state: Any


class MDPModel:
    """
    Minimal finite MDP interface.

    `first_player` is the starting condition of the game (who moves first);
    models without such a notion simply ignore it.
    """

    def enumerate_states(self, first_player: Optional[int] = None) -> Sequence[State]:
        """
        Return every reachable state, terminal states included.

        A list fixes the state numbering. A set is sorted first, so its states
        should be mutually orderable (mixed types fall back to repr order).
        """
        raise NotImplementedError

    def legal_actions(self, state: State) -> List[Action]:
        """Return the legal actions at state (empty for terminal states)."""
        raise NotImplementedError

    def is_terminal(self, state: State) -> bool:
        raise NotImplementedError

    def transitions(self, state: State, action: Action) -> List[Transition]:
        """
        Return a list of (probability, reward, next_state) transitions.
        Never called for terminal states or illegal actions.
        """
        raise NotImplementedError

    def initial_states(self, first_player: Optional[int] = None) -> List[Tuple[float, State]]:
        """Return the start distribution as (probability, state) pairs."""
        raise NotImplementedError


class TabularMDP(MDPModel):
    """
    An MDP given by an explicit table.

    Args:
        table: state -> {action -> [(probability, reward, next_state), ...]}.
               Actions keep the insertion order of the inner dict.
        terminal_states: states with no actions and value 0.
        start: the state episodes begin in (defaults to the first table key).
    """

    def __init__(self, table: Dict[State, Dict[Action, Iterable[Tuple[float, float, State]]]],
                 terminal_states: Iterable[State] = (), start: Optional[State] = None):
        self.table = {
            s: {a: [Transition(*t) for t in outcomes] for a, outcomes in actions.items()}
            for s, actions in table.items()
        }
        self.terminal_states = [s for s in terminal_states if s not in self.table]
        self.start = start if start is not None else next(iter(self.table))

    def enumerate_states(self, first_player=None):
        return list(self.table) + list(self.terminal_states)

    def legal_actions(self, state):
        return list(self.table.get(state, {}))

    def is_terminal(self, state):
        return not self.table.get(state)

    def transitions(self, state, action):
        return list(self.table[state][action])

    def initial_states(self, first_player=None):
        return [(1.0, self.start)]


class Policy:
    """
    Mapping from state to the action a solver recommends there.

    Each solver run builds its own instance; downstream agents only call
    `get`.
    """

    def __init__(self, entries: Optional[Dict[State, Action]] = None):
        self._actions: Dict[State, Action] = dict(entries or {})

    def set(self, state: State, action: Action) -> None:
        self._actions[state] = action

    def get(self, state: State, default: Optional[Action] = None) -> Optional[Action]:
        return self._actions.get(state, default)

    def __getitem__(self, state: State) -> Action:
        return self._actions[state]

    def __contains__(self, state: object) -> bool:
        return state in self._actions

    def __len__(self) -> int:
        return len(self._actions)

    def __iter__(self) -> Iterator[State]:
        return iter(self._actions)

    def __eq__(self, other):
        if not isinstance(other, Policy):
            return NotImplemented
        return self._actions == other._actions

    def items(self):
        return self._actions.items()

    def as_dict(self) -> Dict[State, Action]:
        """Return a plain-dict copy of the policy."""
        return dict(self._actions)
