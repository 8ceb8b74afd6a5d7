import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from flask import has_app_context
from sqlalchemy.exc import SQLAlchemyError

from sudoku_arena import db
from sudoku_arena.models import Profile
from .session import RESULT_LOSE, RESULT_WIN

LEAGUES: List[Dict[str, Any]] = [
    {'id': 'bronze', 'name': 'Bronze', 'icon': '🥉', 'min_rating': 0, 'color': '#cd7f32'},
    {'id': 'silver', 'name': 'Silver', 'icon': '🥈', 'min_rating': 1200, 'color': '#c0c0c0'},
    {'id': 'gold', 'name': 'Gold', 'icon': '🥇', 'min_rating': 1500, 'color': '#ffd700'},
    {'id': 'diamond', 'name': 'Diamond', 'icon': '💎', 'min_rating': 1800, 'color': '#b9f2ff'},
]


def apply_rating_delta(rating: int, delta: int) -> int:
    return max(0, rating + delta)


def push_match_record(history: List[Dict[str, Any]], record: Dict[str, Any], limit: int = 20) -> List[Dict[str, Any]]:
    """Prepend `record`, dropping the oldest entries beyond `limit`."""
    return ([record] + list(history))[:limit]


def league_for(rating: int, leagues: List[Dict[str, Any]] = LEAGUES) -> Dict[str, Any]:
    """Highest tier whose threshold the rating meets; leagues are ascending by min_rating."""
    for league in reversed(leagues):
        if rating >= league['min_rating']:
            return league
    return leagues[0]


def level_from_xp(xp: int) -> int:
    return math.isqrt(max(0, xp) // 100)


class RatingService:
    """Applies a finished battle to one persisted profile.

    The rating change, result counter, win bonus and match history entry
    are written in one commit. A failed write is rolled back and logged;
    update() then returns None so callers can flag the battle as unsaved.
    """

    def __init__(self, profile_id: int, app=None, default_rating: int = 1000, history_limit: int = 20,
                 win_bonus_coins: int = 15, win_bonus_xp: int = 75, logger=None):
        self.profile_id = profile_id
        self.app = app
        self.default_rating = default_rating
        self.history_limit = history_limit
        self.win_bonus_coins = win_bonus_coins
        self.win_bonus_xp = win_bonus_xp
        self.logger = logger or (app.logger if app is not None else logging.getLogger(__name__))

    @classmethod
    def from_app(cls, app, profile_id: int) -> 'RatingService':
        cfg = app.config
        return cls(
            profile_id,
            app=app,
            default_rating=int(cfg.get('DEFAULT_RATING', 1000)),
            history_limit=int(cfg.get('MATCH_HISTORY_LIMIT', 20)),
            win_bonus_coins=int(cfg.get('WIN_BONUS_COINS', 15)),
            win_bonus_xp=int(cfg.get('WIN_BONUS_XP', 75)),
        )

    def update(self, delta: int, summary: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        # Timer-driven endings run in background tasks without an app context
        if self.app is not None and not has_app_context():
            with self.app.app_context():
                return self._update(delta, summary)
        return self._update(delta, summary)

    def _update(self, delta: int, summary: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            profile = db.session.get(Profile, self.profile_id)
            if profile is None:
                self.logger.warning(f"[rating-skip] profile={self.profile_id} not found")
                return None

            current = profile.rating if profile.rating is not None else self.default_rating
            profile.rating = apply_rating_delta(current, delta)

            result = summary.get('result')
            if result == RESULT_WIN:
                profile.pvp_wins = (profile.pvp_wins or 0) + 1
            elif result == RESULT_LOSE:
                profile.pvp_losses = (profile.pvp_losses or 0) + 1
            else:
                profile.pvp_draws = (profile.pvp_draws or 0) + 1

            record = dict(summary)
            record['rating'] = profile.rating
            record['rating_delta'] = delta
            record['date'] = datetime.now(timezone.utc).isoformat()
            profile.set_match_history(push_match_record(profile.get_match_history(), record, self.history_limit))

            if result == RESULT_WIN:
                profile.coins = (profile.coins or 0) + self.win_bonus_coins
                profile.xp = (profile.xp or 0) + self.win_bonus_xp
                profile.level = level_from_xp(profile.xp)

            db.session.add(profile)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            self.logger.exception(f"[rating-error] profile={self.profile_id} delta={delta} update not saved")
            return None

        self.logger.info(
            f"[rating-update] profile={self.profile_id} result={result} delta={delta} rating={record['rating']}"
        )
        return record
