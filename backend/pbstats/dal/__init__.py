"""Data access layer: repository interface and persistence models."""

from pbstats.dal.game_repository import GameRepository
from pbstats.dal.models import GameRecord, NewGame

__all__ = [
    "GameRecord",
    "GameRepository",
    "NewGame",
]
