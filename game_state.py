from typing import List, Optional, Tuple
import numpy as np

from game_board import GameBoard

AGENT = 0
OPPONENT = 1


class GameState:
    """
    An immutable Connect-k position that supports hashing and ordering.
    This enables using GameState objects as keys of the value and Q tables.
    """

    def __init__(self, board, turn: int = AGENT, win_condition: int = 3):
        """
        Initialize a game state.

        Args:
            board: Rows of pieces (bottom row first), as a numpy array or nested sequence
            turn: Whose move it is (AGENT = 0 → piece 1, OPPONENT = 1 → piece 2)
            win_condition: Number of pieces in a row needed to win
        """
        self.cells: Tuple[Tuple[int, ...], ...] = tuple(tuple(int(x) for x in row) for row in board)
        self.turn = turn
        self.win_condition = win_condition
        self.rows = len(self.cells)
        self.cols = len(self.cells[0])

        game_board = self.game_board()
        if game_board.winning_move(1):
            self._winner = 1
        elif game_board.winning_move(2):
            self._winner = 2
        else:
            self._winner = 0
        self._full = game_board.tie_move()

    @classmethod
    def empty(cls, rows: int = 3, cols: int = 3, win_condition: int = 3, turn: int = AGENT) -> 'GameState':
        return cls(np.zeros((rows, cols), dtype=int), turn, win_condition)

    def game_board(self) -> GameBoard:
        """Return a fresh mutable GameBoard holding this position."""
        return GameBoard.from_cells(self.cells, self.win_condition)

    def __hash__(self):
        return hash((self.cells, self.turn))

    def __eq__(self, other):
        if not isinstance(other, GameState):
            return False
        return self.cells == other.cells and self.turn == other.turn

    def __lt__(self, other: 'GameState') -> bool:
        return (self.cells, self.turn) < (other.cells, other.turn)

    def __repr__(self):
        return f"GameState({self.get_key()})"

    def winner(self) -> Optional[int]:
        """Piece (1 or 2) of the winner, or None."""
        return self._winner or None

    def is_terminal(self) -> bool:
        """Check if this is a terminal state (win or draw)."""
        return self._winner != 0 or self._full

    def get_valid_actions(self) -> List[int]:
        """Columns that are not full; none once the game is over."""
        if self.is_terminal():
            return []
        top = self.cells[self.rows - 1]
        return [col for col in range(self.cols) if top[col] == 0]

    def apply_action(self, action: int) -> 'GameState':
        """
        Drop the current player's piece in column `action` and pass the turn.

        Raises:
            ValueError: if the column does not accept a piece
        """
        game_board = self.game_board()
        if not game_board.is_valid_location(action):
            raise ValueError(f"Column {action} is not a valid move")
        row = game_board.get_next_open_row(action)
        game_board.drop_piece(row, action, self.turn + 1)
        return GameState(game_board.board, (self.turn + 1) % 2, self.win_condition)

    def get_key(self) -> str:
        """
        String key for this state: turn, then each column bottom-up.
        Used for debugging and display purposes only.
        """
        columns = [''.join(str(self.cells[r][c]) for r in range(self.rows)) for c in range(self.cols)]
        return f"{self.turn}:{':'.join(columns)}"
