from flask import Blueprint, jsonify, request, current_app
from sudoku_arena import db
from sudoku_arena.models import Profile
from sudoku_arena.services.battle.rating import LEAGUES, league_for


profiles = Blueprint('profiles', __name__)


@profiles.route('', methods=['POST'])
def create_profile():
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({'error': 'Player name is required'}), 400
    profile = Profile(name=name[:64], rating=int(current_app.config.get('DEFAULT_RATING', 1000)))
    db.session.add(profile)
    db.session.commit()
    current_app.logger.info(f"[profile-create] profile={profile.id} name={profile.name}")
    payload = profile.to_dict()
    payload['league'] = league_for(profile.rating)
    return jsonify(payload), 201


@profiles.route('/leagues', methods=['GET'])
def get_leagues():
    return jsonify(LEAGUES)


@profiles.route('/<int:profile_id>', methods=['GET'])
def get_profile(profile_id):
    profile = db.get_or_404(Profile, profile_id)
    payload = profile.to_dict()
    payload['league'] = league_for(profile.rating)
    return jsonify(payload)


@profiles.route('/<int:profile_id>/history', methods=['GET'])
def get_match_history(profile_id):
    profile = db.get_or_404(Profile, profile_id)
    return jsonify(profile.get_match_history())
