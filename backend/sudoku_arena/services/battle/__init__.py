"""Battle domain services: the engine, its timers, and rating updates.

HTTP routes and socket handlers import from here, keeping transport
concerns separated from the battle mechanics.
"""

from .engine import BattleEngine, format_time
from .scheduler import ManualScheduler, SocketIOScheduler, TimerHandle
from .session import BattleSession, PlaceResult

__all__ = [
    'BattleEngine',
    'BattleSession',
    'ManualScheduler',
    'PlaceResult',
    'SocketIOScheduler',
    'TimerHandle',
    'format_time',
]
