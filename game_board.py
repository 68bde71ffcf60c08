from numpy import flip, ndarray, zeros


class GameBoard:
    """
    The GameBoard class holds a Connect-k board (gravity drop, row 0 at the
    bottom) and the methods to manipulate and query it.
    Pieces: 0 = empty, 1 = agent, 2 = opponent.
    """

    board: ndarray
    cols: int
    rows: int
    win_condition: int  # Number of pieces needed in a row to win

    def __init__(self, rows=3, cols=3, win_condition=3):
        """
        Initializes an empty board.
        :param rows: The height of the board in rows.
        :param cols: The width of the board in columns.
        :param win_condition: Number of pieces needed in a row to win.
        """
        self.rows = rows
        self.cols = cols
        self.win_condition = win_condition
        self.board = zeros((rows, cols), dtype=int)

    @classmethod
    def from_cells(cls, cells, win_condition=3):
        """
        Builds a board from a row-major nested sequence of pieces.
        :param cells: Rows of pieces, bottom row first.
        :param win_condition: Number of pieces needed in a row to win.
        """
        rows, cols = len(cells), len(cells[0])
        game_board = cls(rows=rows, cols=cols, win_condition=win_condition)
        for r in range(rows):
            for c in range(cols):
                game_board.board[r][c] = cells[r][c]
        return game_board

    def print_board(self):
        """
        Prints the state of the board to the console.
        """
        print(flip(self.board, 0))
        print(" " + "-" * (self.cols * 2 + 1))
        print(" " + str([i + 1 for i in range(self.cols)]))

    def drop_piece(self, row, col, piece):
        self.board[row][col] = piece

    def is_valid_location(self, col):
        """
        Returns whether the column exists on the board and is not full.
        """
        if col < 0 or col >= self.cols:
            return False
        return self.board[self.rows - 1][col] == 0

    def get_next_open_row(self, col):
        """
        Returns the lowest free row of a column, or None if it is full.
        """
        for row in range(self.rows):
            if self.board[row][col] == 0:
                return row
        return None

    def check_square(self, piece, r, c):
        """
        Whether (r, c) is on the board and holds the given piece.
        """
        if r < 0 or r >= self.rows or c < 0 or c >= self.cols:
            return False
        return self.board[r][c] == piece

    def _line_from(self, piece, r, c, dr, dc):
        # k squares starting at (r, c) in direction (dr, dc)
        for i in range(self.win_condition):
            if not self.check_square(piece, r + i * dr, c + i * dc):
                return False
        return True

    def winning_move(self, piece):
        """
        Checks if the given piece has k in a row anywhere on the board.
        :param piece: The piece to check for.
        """
        for c in range(self.cols):
            for r in range(self.rows):
                if self.board[r][c] != piece:
                    continue
                for dr, dc in ((0, 1), (1, 0), (1, 1), (-1, 1)):
                    if self._line_from(piece, r, c, dr, dc):
                        return True
        return False

    def tie_move(self):
        """
        Checks whether every slot is filled.
        """
        return bool((self.board != 0).all())
