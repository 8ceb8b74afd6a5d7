import pytest

from sudoku_arena.services.puzzles import PuzzleSource, clone_grid, random_seed
from sudoku_arena.services.puzzles.source import EMPTY_CELLS


def _is_valid_solution(grid):
    groups = [row for row in grid]
    groups += [[grid[r][c] for r in range(9)] for c in range(9)]
    groups += [
        [grid[br + r][bc + c] for r in range(3) for c in range(3)]
        for br in (0, 3, 6) for bc in (0, 3, 6)
    ]
    return all(sorted(g) == list(range(1, 10)) for g in groups)


@pytest.mark.parametrize('difficulty', sorted(EMPTY_CELLS))
def test_generate_produces_consistent_pair(difficulty):
    data = PuzzleSource().generate(difficulty, 2024)
    puzzle, solution = data['puzzle'], data['solution']
    assert _is_valid_solution(solution)
    zeros = [(r, c) for r in range(9) for c in range(9) if puzzle[r][c] == 0]
    assert len(zeros) == EMPTY_CELLS[difficulty]
    assert all(puzzle[r][c] in (0, solution[r][c]) for r in range(9) for c in range(9))


def test_same_seed_same_puzzle():
    source = PuzzleSource()
    assert source.generate('hard', 77) == source.generate('hard', 77)
    assert source.generate('hard', 77) != source.generate('hard', 78)


def test_unknown_difficulty_falls_back_to_medium():
    puzzle = PuzzleSource().generate('mystery', 5)['puzzle']
    assert sum(v == 0 for row in puzzle for v in row) == EMPTY_CELLS['medium']


def test_clone_grid_is_deep(solution):
    copy = clone_grid(solution)
    copy[0][0] = 0
    assert solution[0][0] != 0
    assert PuzzleSource().clone_grid(solution) == solution


def test_random_seed_is_positive_int():
    seed = random_seed()
    assert isinstance(seed, int) and seed > 0
    assert isinstance(PuzzleSource().random_seed(), int)
