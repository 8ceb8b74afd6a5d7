import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional

Grid = List[List[int]]

RESULT_WIN = 'win'
RESULT_LOSE = 'lose'
RESULT_DRAW = 'draw'

REASON_PLAYER_FINISHED = 'player_finished'
REASON_AI_FINISHED = 'ai_finished'
REASON_TIMEOUT = 'timeout'
REASON_QUIT = 'quit'


class AICell(NamedTuple):
    row: int
    col: int
    value: int


class SpeedRange(NamedTuple):
    min_ms: int
    max_ms: int


class PlaceResult(NamedTuple):
    is_correct: bool
    finished: bool


@dataclass
class BattleSession:
    session_id: int
    seed: int
    difficulty: str
    puzzle: Grid
    solution: Grid
    original_mask: List[List[bool]]
    player_board: Grid
    ai_name: str
    ai_avatar: str
    ai_cells_queue: List[AICell]
    ai_speed_range: SpeedRange
    time_budget: int
    time_remaining: int

    player_cells_filled: int = 0
    player_mistakes: int = 0
    player_finished: bool = False

    ai_cells_filled: int = 0
    ai_total_cells: int = 0
    ai_finished: bool = False

    started: bool = False
    ended: bool = False
    result: Optional[str] = None
    rating_delta: int = 0
    end_reason: Optional[str] = None
    # None until termination; False when the rating write failed
    rating_saved: Optional[bool] = None
    match_record: Optional[Dict[str, Any]] = field(default=None, repr=False)

    def is_original(self, row: int, col: int) -> bool:
        return self.original_mask[row][col]

    def count_correct_cells(self) -> int:
        return sum(
            1
            for r in range(9)
            for c in range(9)
            if not self.original_mask[r][c] and self.player_board[r][c] == self.solution[r][c]
        )

    def board_solved(self) -> bool:
        return all(self.player_board[r][c] == self.solution[r][c] for r in range(9) for c in range(9))

    def progress_pct(self, filled: int) -> int:
        if not self.ai_total_cells:
            return 100
        # halves round up
        return int(math.floor(filled * 100 / self.ai_total_cells + 0.5))

    @property
    def player_progress(self) -> int:
        return self.progress_pct(self.player_cells_filled)

    @property
    def ai_progress(self) -> int:
        return self.progress_pct(self.ai_cells_filled)

    @property
    def elapsed_seconds(self) -> int:
        return self.time_budget - self.time_remaining

    def to_dict(self, include_solution: bool = False) -> Dict[str, Any]:
        reveal = include_solution or self.ended
        data = {
            'session_id': self.session_id,
            'seed': self.seed,
            'difficulty': self.difficulty,
            'puzzle': [list(row) for row in self.puzzle],
            'player_board': [list(row) for row in self.player_board],
            'player_cells_filled': self.player_cells_filled,
            'player_mistakes': self.player_mistakes,
            'player_finished': self.player_finished,
            'player_progress': self.player_progress,
            'ai_name': self.ai_name,
            'ai_avatar': self.ai_avatar,
            'ai_cells_filled': self.ai_cells_filled,
            'ai_total_cells': self.ai_total_cells,
            'ai_finished': self.ai_finished,
            'ai_progress': self.ai_progress,
            'ai_speed_range': {'min': self.ai_speed_range.min_ms, 'max': self.ai_speed_range.max_ms},
            'time_budget': self.time_budget,
            'time_remaining': self.time_remaining,
            'started': self.started,
            'ended': self.ended,
            'result': self.result,
            'rating_delta': self.rating_delta,
            'end_reason': self.end_reason,
            'rating_saved': self.rating_saved,
        }
        if reveal:
            data['solution'] = [list(row) for row in self.solution]
            data['ai_cells_queue'] = [cell._asdict() for cell in self.ai_cells_queue]
        return data
