import itertools
import logging
import random
import threading
from typing import Callable, Dict, List, Optional

from sudoku_arena.services.puzzles import PuzzleSource
from .session import (
    AICell,
    BattleSession,
    PlaceResult,
    SpeedRange,
    REASON_AI_FINISHED,
    REASON_PLAYER_FINISHED,
    REASON_QUIT,
    REASON_TIMEOUT,
    RESULT_DRAW,
    RESULT_LOSE,
    RESULT_WIN,
)

BATTLE_TIME = 600  # 10 minutes

AI_NAMES = [
    'SudokuMaster', 'GridNinja', 'PuzzleWiz', 'NumberCrunch',
    'BrainStorm', 'LogicLord', 'CellSolver', 'DigitDemon',
    'MindBender', 'PuzzlePro', 'GridGenius', 'NumWizard',
    'SolveKing', 'PuzzleAce', 'BoardBoss', 'ClueCracker',
]

AI_AVATARS = ['🤖', '🧠', '🦊', '🐉', '👾', '🎭', '🦉', '🧙']

# Per-cell AI delay in ms; harder opponents fill faster
AI_SPEED: Dict[str, SpeedRange] = {
    'easy': SpeedRange(10000, 20000),
    'medium': SpeedRange(7000, 14000),
    'hard': SpeedRange(5000, 10000),
    'expert': SpeedRange(3000, 7000),
    'evil': SpeedRange(2000, 5000),
}

WIN_DELTA = 25
TIMEOUT_DELTA = 15

OnEnd = Callable[[BattleSession], None]


def format_time(seconds: int) -> str:
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


class BattleEngine:
    """Runs one timed player-vs-AI battle at a time.

    Two self-rearming timers share the live session: a 1s countdown and
    the AI fill generator. Each armed callback remembers the session id it
    belongs to and does nothing once that session has ended or been
    replaced by a newer start_battle().
    """

    def __init__(self, scheduler, rating_service, puzzle_source=None, rng: Optional[random.Random] = None,
                 battle_time: int = BATTLE_TIME, logger=None):
        self.scheduler = scheduler
        self.rating_service = rating_service
        self.puzzle_source = puzzle_source or PuzzleSource()
        self.rng = rng or random.Random()
        self.battle_time = battle_time
        self.logger = logger or logging.getLogger(__name__)

        self._battle: Optional[BattleSession] = None
        self._ids = itertools.count(1)
        self._lock = threading.RLock()
        self._timer_handle = None
        self._ai_handle = None
        self._on_ai_progress = None
        self._on_timer_tick = None
        self._on_end: Optional[OnEnd] = None

    # ---- Session lifecycle ----

    def start_battle(self, difficulty: str = 'medium') -> BattleSession:
        with self._lock:
            self._cancel_timers()
            seed = self.puzzle_source.random_seed()
            data = self.puzzle_source.generate(difficulty, seed)
            puzzle, solution = data['puzzle'], data['solution']

            queue: List[AICell] = [
                AICell(r, c, solution[r][c]) for r in range(9) for c in range(9) if puzzle[r][c] == 0
            ]
            self.rng.shuffle(queue)

            self._battle = BattleSession(
                session_id=next(self._ids),
                seed=seed,
                difficulty=difficulty,
                puzzle=puzzle,
                solution=solution,
                original_mask=[[value != 0 for value in row] for row in puzzle],
                player_board=self.puzzle_source.clone_grid(puzzle),
                ai_name=self.rng.choice(AI_NAMES),
                ai_avatar=self.rng.choice(AI_AVATARS),
                ai_cells_queue=queue,
                ai_total_cells=len(queue),
                ai_speed_range=AI_SPEED.get(difficulty, AI_SPEED['medium']),
                time_budget=self.battle_time,
                time_remaining=self.battle_time,
            )
            self._on_ai_progress = self._on_timer_tick = self._on_end = None
            self.logger.info(
                f"[battle-start] session={self._battle.session_id} difficulty={difficulty} seed={seed} "
                f"opponent={self._battle.ai_name} cells={len(queue)}"
            )
            return self._battle

    def begin_battle(self, on_ai_progress=None, on_timer_tick=None, on_end: Optional[OnEnd] = None) -> None:
        with self._lock:
            battle = self._battle
            if not battle or battle.started or battle.ended:
                return
            battle.started = True
            self._on_ai_progress = on_ai_progress
            self._on_timer_tick = on_timer_tick
            self._on_end = on_end
            self.logger.info(f"[battle-begin] session={battle.session_id} budget={battle.time_remaining}s")
            self._arm_countdown(battle.session_id)
            self._arm_ai(battle.session_id)

    def get_battle(self) -> Optional[BattleSession]:
        return self._battle

    def is_active(self) -> bool:
        battle = self._battle
        return bool(battle and battle.started and not battle.ended)

    format_time = staticmethod(format_time)

    # ---- Player actions ----

    def player_place(self, row: int, col: int, value: int) -> Optional[PlaceResult]:
        with self._lock:
            battle = self._battle
            if not battle or battle.ended or battle.player_finished:
                return None
            if battle.is_original(row, col):
                return None

            correct = battle.solution[row][col]
            if battle.player_board[row][col] == correct:
                battle.player_cells_filled -= 1
            battle.player_board[row][col] = value

            if value != correct:
                battle.player_mistakes += 1
                return PlaceResult(False, False)

            battle.player_cells_filled += 1
            # Full scan rather than trusting the counter
            if battle.board_solved():
                battle.player_finished = True
                return PlaceResult(True, True)
            return PlaceResult(True, False)

    def player_erase(self, row: int, col: int) -> None:
        with self._lock:
            battle = self._battle
            if not battle or battle.ended:
                return
            if battle.is_original(row, col):
                return
            if battle.player_board[row][col] != 0 and battle.player_board[row][col] == battle.solution[row][col]:
                battle.player_cells_filled -= 1
            battle.player_board[row][col] = 0

    def player_finish(self, callback: Optional[OnEnd] = None) -> None:
        with self._lock:
            battle = self._battle
            if not battle or battle.ended:
                return
            battle.player_finished = True
            self._end_battle(battle.session_id, REASON_PLAYER_FINISHED, callback)

    def quit_battle(self, callback: Optional[OnEnd] = None) -> None:
        with self._lock:
            battle = self._battle
            if not battle or battle.ended:
                return
            self._end_battle(battle.session_id, REASON_QUIT, callback)

    # ---- Scheduled activities ----

    def _is_current(self, session_id: int) -> bool:
        battle = self._battle
        return bool(battle and battle.session_id == session_id and not battle.ended)

    def _arm_countdown(self, session_id: int) -> None:
        self._timer_handle = self.scheduler.call_later(
            1.0, lambda: self._on_countdown(session_id), label=f"countdown session={session_id}"
        )

    def _on_countdown(self, session_id: int) -> None:
        with self._lock:
            if not self._is_current(session_id):
                self.logger.debug(f"[timer-abort] session={session_id} stale countdown")
                return
            battle = self._battle
            battle.time_remaining = max(0, battle.time_remaining - 1)
            if self._on_timer_tick:
                self._on_timer_tick(battle.time_remaining)
            # the tick callback may have ended the battle
            if not self._is_current(session_id):
                return
            if battle.time_remaining <= 0:
                self._end_battle(session_id, REASON_TIMEOUT)
            else:
                self._arm_countdown(session_id)

    def _arm_ai(self, session_id: int) -> None:
        battle = self._battle
        if battle.ai_cells_filled >= battle.ai_total_cells:
            self._ai_exhausted(session_id)
            return
        speed = battle.ai_speed_range
        # uniform in [min, max)
        delay_ms = speed.min_ms + self.rng.random() * (speed.max_ms - speed.min_ms)
        self._ai_handle = self.scheduler.call_later(
            delay_ms / 1000.0, lambda: self._on_ai_fill(session_id), label=f"ai session={session_id}"
        )

    def _on_ai_fill(self, session_id: int) -> None:
        with self._lock:
            if not self._is_current(session_id):
                self.logger.debug(f"[timer-abort] session={session_id} stale ai fill")
                return
            battle = self._battle
            battle.ai_cells_filled = min(battle.ai_cells_filled + 1, battle.ai_total_cells)
            if self._on_ai_progress:
                self._on_ai_progress(battle.ai_cells_filled, battle.ai_total_cells)
            if not self._is_current(session_id):
                return
            self._arm_ai(session_id)

    def _ai_exhausted(self, session_id: int) -> None:
        battle = self._battle
        battle.ai_finished = True
        self._ai_handle = None
        self.logger.info(f"[ai-finished] session={session_id} player_finished={battle.player_finished}")
        if not battle.player_finished:
            self._end_battle(session_id, REASON_AI_FINISHED)

    def _cancel_timers(self) -> None:
        for handle in (self._timer_handle, self._ai_handle):
            if handle is not None:
                handle.cancel()
        self._timer_handle = self._ai_handle = None

    # ---- Termination ----

    def _end_battle(self, session_id: int, reason: str, callback: Optional[OnEnd] = None) -> None:
        if not self._is_current(session_id):
            return
        battle = self._battle
        battle.ended = True
        self._cancel_timers()

        if reason == REASON_PLAYER_FINISHED or battle.player_finished:
            result, delta = RESULT_WIN, WIN_DELTA
        elif reason == REASON_AI_FINISHED:
            result, delta = RESULT_LOSE, -WIN_DELTA
        elif reason == REASON_TIMEOUT:
            # Same denominator on both sides, so raw counts decide; mistakes never count
            if battle.player_cells_filled > battle.ai_cells_filled:
                result, delta = RESULT_WIN, TIMEOUT_DELTA
            elif battle.player_cells_filled < battle.ai_cells_filled:
                result, delta = RESULT_LOSE, -TIMEOUT_DELTA
            else:
                result, delta = RESULT_DRAW, 0
        else:
            result, delta = RESULT_LOSE, -WIN_DELTA
        battle.result = result
        battle.rating_delta = delta
        battle.end_reason = reason

        self.logger.info(
            f"[battle-end] session={session_id} reason={reason} result={result} delta={delta} "
            f"player={battle.player_cells_filled}/{battle.ai_total_cells} "
            f"ai={battle.ai_cells_filled}/{battle.ai_total_cells} mistakes={battle.player_mistakes}"
        )

        summary = {
            'result': result,
            'opponent': battle.ai_name,
            'difficulty': battle.difficulty,
            'player_progress': battle.player_progress,
            'ai_progress': battle.ai_progress,
            'time_used': battle.elapsed_seconds,
        }
        try:
            battle.match_record = self.rating_service.update(delta, summary)
        except Exception:
            self.logger.exception(f"[rating-error] session={session_id} rating update raised")
            battle.match_record = None
        battle.rating_saved = battle.match_record is not None
        if not battle.rating_saved:
            self.logger.warning(f"[battle-end] session={session_id} rating update was not saved")

        for cb in self._end_callbacks(callback):
            cb(battle)

    def _end_callbacks(self, callback: Optional[OnEnd]) -> List[OnEnd]:
        callbacks = []
        for cb in (callback, self._on_end):
            if cb is not None and all(cb is not seen for seen in callbacks):
                callbacks.append(cb)
        self._on_end = None
        return callbacks
