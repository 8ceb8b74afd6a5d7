from sudoku_arena import db
import json


class Profile(db.Model):
    __tablename__ = 'profile'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    rating = db.Column(db.Integer, default=1000, nullable=False)
    pvp_wins = db.Column(db.Integer, default=0, nullable=False)
    pvp_losses = db.Column(db.Integer, default=0, nullable=False)
    pvp_draws = db.Column(db.Integer, default=0, nullable=False)
    coins = db.Column(db.Integer, default=0, nullable=False)
    xp = db.Column(db.Integer, default=0, nullable=False)
    level = db.Column(db.Integer, default=0, nullable=False)
    match_history = db.Column(db.Text, nullable=True)  # JSON-encoded list, most recent first

    def get_match_history(self):
        try:
            history = json.loads(self.match_history) if self.match_history else []
        except Exception:
            history = []
        return history if isinstance(history, list) else []

    def set_match_history(self, history):
        self.match_history = json.dumps(history)

    def pvp_record(self):
        return {
            'wins': self.pvp_wins or 0,
            'losses': self.pvp_losses or 0,
            'draws': self.pvp_draws or 0,
        }

    def to_dict(self, include_history=False):
        data = {
            'id': self.id,
            'name': self.name,
            'rating': self.rating,
            'record': self.pvp_record(),
            'coins': self.coins,
            'xp': self.xp,
            'level': self.level,
        }
        if include_history:
            data['match_history'] = self.get_match_history()
        return data
