import os
import random
import sys
import pytest

# Ensure the backend root (containing the `sudoku_arena` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from sudoku_arena import create_app, db, socketio
from sudoku_arena.services.battle import BattleEngine, ManualScheduler


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BATTLE_DURATION_SEC = 600


# Valid solved grid: (r*3 + r//3 + c) % 9 + 1
SOLUTION = [[(r * 3 + r // 3 + c) % 9 + 1 for c in range(9)] for r in range(9)]


class FixedPuzzleSource:
    """Blanks the first `empty` cells (row-major) of SOLUTION."""

    def __init__(self, empty=50):
        self.empty = empty

    def generate(self, difficulty, seed):
        puzzle = [list(row) for row in SOLUTION]
        for idx in range(self.empty):
            puzzle[idx // 9][idx % 9] = 0
        return {'puzzle': puzzle, 'solution': [list(row) for row in SOLUTION]}

    def random_seed(self):
        return 1234

    def clone_grid(self, grid):
        return [list(row) for row in grid]


class RecordingRatingService:
    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    def update(self, delta, summary):
        self.calls.append((delta, summary))
        if self.fail:
            return None
        return dict(summary, rating_delta=delta)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import sudoku_arena.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def ratings():
    return RecordingRatingService()


@pytest.fixture()
def failing_ratings():
    return RecordingRatingService(fail=True)


@pytest.fixture()
def make_engine(scheduler, ratings):
    def _make(empty=50, battle_time=600, rating_service=None, seed=7):
        return BattleEngine(
            scheduler=scheduler,
            rating_service=rating_service or ratings,
            puzzle_source=FixedPuzzleSource(empty),
            rng=random.Random(seed),
            battle_time=battle_time,
        )
    return _make


@pytest.fixture()
def solution():
    return [list(row) for row in SOLUTION]
