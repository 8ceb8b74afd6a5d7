import random
from typing import Dict, List, Optional

Grid = List[List[int]]

# Empty cells per difficulty; unknown difficulties fall back to medium
EMPTY_CELLS = {
    'easy': 38,
    'medium': 46,
    'hard': 52,
    'expert': 56,
    'evil': 60,
}

_MAX_SEED = 2 ** 31 - 1


def random_seed() -> int:
    return random.randint(1, _MAX_SEED)


def clone_grid(grid: Grid) -> Grid:
    return [list(row) for row in grid]


class PuzzleSource:
    """Seeded Sudoku puzzle/solution generator.

    The same (difficulty, seed) pair always yields the same grids. The
    solution is built by randomized backtracking; the puzzle blanks a
    difficulty-dependent number of cells from it. Uniqueness of the
    solution is not checked here.
    """

    def generate(self, difficulty: str, seed: int) -> Dict[str, Grid]:
        rng = random.Random(seed)
        solution = [[0] * 9 for _ in range(9)]
        self._fill(solution, rng)

        puzzle = clone_grid(solution)
        cells = [(r, c) for r in range(9) for c in range(9)]
        rng.shuffle(cells)
        for r, c in cells[:EMPTY_CELLS.get(difficulty, EMPTY_CELLS['medium'])]:
            puzzle[r][c] = 0
        return {'puzzle': puzzle, 'solution': solution}

    def random_seed(self) -> int:
        return random_seed()

    def clone_grid(self, grid: Grid) -> Grid:
        return clone_grid(grid)

    def _fill(self, board: Grid, rng: random.Random) -> bool:
        cell = self._next_empty(board)
        if cell is None:
            return True
        row, col = cell
        numbers = list(range(1, 10))
        rng.shuffle(numbers)
        for num in numbers:
            if self._can_place(board, row, col, num):
                board[row][col] = num
                if self._fill(board, rng):
                    return True
                board[row][col] = 0
        return False

    @staticmethod
    def _next_empty(board: Grid) -> Optional[tuple]:
        for r in range(9):
            for c in range(9):
                if board[r][c] == 0:
                    return r, c
        return None

    @staticmethod
    def _can_place(board: Grid, row: int, col: int, num: int) -> bool:
        for i in range(9):
            if board[row][i] == num or board[i][col] == num:
                return False
        box_row, box_col = 3 * (row // 3), 3 * (col // 3)
        for i in range(box_row, box_row + 3):
            for j in range(box_col, box_col + 3):
                if board[i][j] == num:
                    return False
        return True
