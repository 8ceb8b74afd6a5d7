import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///sudoku_arena.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Battle clock budget (seconds)
    BATTLE_DURATION_SEC = int(os.environ.get('BATTLE_DURATION_SEC', '600'))
    # Rating / progression
    DEFAULT_RATING = int(os.environ.get('DEFAULT_RATING', '1000'))
    MATCH_HISTORY_LIMIT = int(os.environ.get('MATCH_HISTORY_LIMIT', '20'))
    WIN_BONUS_COINS = int(os.environ.get('WIN_BONUS_COINS', '15'))
    WIN_BONUS_XP = int(os.environ.get('WIN_BONUS_XP', '75'))
    # Optional: heartbeat interval for timer worker logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
    # Tests drive a virtual clock unless this is set
    ENABLE_SCHEDULER_IN_TESTS = False
