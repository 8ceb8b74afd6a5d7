import threading

from flask import Blueprint, jsonify, request, current_app
from sudoku_arena import db, socketio
from sudoku_arena.models import Profile
from typing import Dict, Optional
from sudoku_arena.services.battle import BattleEngine, format_time
from sudoku_arena.services.battle.rating import RatingService
from sudoku_arena.services.puzzles.source import EMPTY_CELLS


battles = Blueprint('battles', __name__)

# One engine (and so at most one live battle) per profile, kept on the app
ENGINES_KEY = 'battle_engines'
_engines_lock = threading.Lock()


def _room(profile_id: int) -> str:
    return f"battle:{profile_id}"


def _get_engine(profile_id: int, create: bool = False) -> Optional[BattleEngine]:
    app = current_app._get_current_object()
    # Engines are reused across battles, so the registry holds at most one per profile
    with _engines_lock:
        engines: Dict[int, BattleEngine] = app.extensions.setdefault(ENGINES_KEY, {})
        engine = engines.get(profile_id)
        if engine is None and create:
            engine = BattleEngine(
                scheduler=app.extensions['battle_scheduler'],
                rating_service=RatingService.from_app(app, profile_id),
                battle_time=int(app.config.get('BATTLE_DURATION_SEC', 600)),
                logger=app.logger,
            )
            engines[profile_id] = engine
        return engine


def _parse_int(data: dict, key: str) -> Optional[int]:
    value = data.get(key)
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _load_profile(data: dict):
    profile_id = _parse_int(data, 'profile_id')
    if profile_id is None:
        return None, (jsonify({'error': 'profile_id is required'}), 400)
    profile = db.session.get(Profile, profile_id)
    if not profile:
        return None, (jsonify({'error': 'Profile not found'}), 404)
    return profile, None


def _parse_cell(data: dict, with_value: bool = False):
    row = _parse_int(data, 'row')
    col = _parse_int(data, 'col')
    if row is None or col is None or not (0 <= row < 9 and 0 <= col < 9):
        return None, (jsonify({'error': 'row and col must be integers in 0..8'}), 400)
    if not with_value:
        return (row, col), None
    value = _parse_int(data, 'value')
    if value is None or not (1 <= value <= 9):
        return None, (jsonify({'error': 'value must be an integer in 1..9'}), 400)
    return (row, col, value), None


def _state_payload(engine: BattleEngine) -> dict:
    battle = engine.get_battle()
    payload = battle.to_dict()
    payload['is_active'] = engine.is_active()
    payload['clock'] = format_time(battle.time_remaining)
    return payload


def _emit_battle_end(profile_id: int, battle) -> None:
    socketio.emit('battle_end', battle.to_dict(), to=_room(profile_id), namespace='/ws')


@battles.route('/start', methods=['POST'])
def start_battle():
    data = request.get_json(silent=True) or {}
    profile, error = _load_profile(data)
    if error:
        return error
    difficulty = data.get('difficulty') or 'medium'
    if difficulty not in EMPTY_CELLS:
        return jsonify({'error': f'Unknown difficulty {difficulty}'}), 400

    engine = _get_engine(profile.id, create=True)
    engine.start_battle(difficulty)
    return jsonify(_state_payload(engine)), 201


@battles.route('/begin', methods=['POST'])
def begin_battle():
    data = request.get_json(silent=True) or {}
    profile, error = _load_profile(data)
    if error:
        return error
    engine = _get_engine(profile.id)
    if not engine or not engine.get_battle():
        return jsonify({'error': 'No battle to begin'}), 400
    battle = engine.get_battle()
    if battle.started or battle.ended:
        # Idempotent begin: already running or over
        return jsonify(_state_payload(engine))

    pid = profile.id
    room = _room(pid)
    engine.begin_battle(
        lambda filled, total: socketio.emit(
            'ai_progress', {'filled': filled, 'total': total}, to=room, namespace='/ws'
        ),
        lambda remaining: socketio.emit(
            'timer_tick', {'remaining': remaining, 'clock': format_time(remaining)}, to=room, namespace='/ws'
        ),
        lambda finished: _emit_battle_end(pid, finished),
    )
    return jsonify(_state_payload(engine))


@battles.route('/place', methods=['POST'])
def place_value():
    data = request.get_json(silent=True) or {}
    profile, error = _load_profile(data)
    if error:
        return error
    cell, error = _parse_cell(data, with_value=True)
    if error:
        return error
    engine = _get_engine(profile.id)
    if not engine or not engine.is_active():
        return jsonify({'error': 'No active battle'}), 409

    row, col, value = cell
    result = engine.player_place(row, col, value)
    if result is None:
        return jsonify({'error': 'Cell cannot be changed'}), 400
    if result.finished:
        engine.player_finish()
    return jsonify({
        'is_correct': result.is_correct,
        'finished': result.finished,
        'state': _state_payload(engine),
    })


@battles.route('/erase', methods=['POST'])
def erase_value():
    data = request.get_json(silent=True) or {}
    profile, error = _load_profile(data)
    if error:
        return error
    cell, error = _parse_cell(data)
    if error:
        return error
    engine = _get_engine(profile.id)
    if not engine or not engine.is_active():
        return jsonify({'error': 'No active battle'}), 409

    row, col = cell
    if engine.get_battle().is_original(row, col):
        return jsonify({'error': 'Cell cannot be changed'}), 400
    engine.player_erase(row, col)
    return jsonify(_state_payload(engine))


@battles.route('/quit', methods=['POST'])
def quit_battle():
    data = request.get_json(silent=True) or {}
    profile, error = _load_profile(data)
    if error:
        return error
    engine = _get_engine(profile.id)
    if not engine or not engine.get_battle() or engine.get_battle().ended:
        return jsonify({'error': 'No battle to quit'}), 409
    engine.quit_battle()
    return jsonify(_state_payload(engine))


@battles.route('/<int:profile_id>/state', methods=['GET'])
def get_battle_state(profile_id):
    engine = _get_engine(profile_id)
    if not engine or not engine.get_battle():
        return jsonify({'error': 'No battle for this profile'}), 404
    return jsonify(_state_payload(engine))
