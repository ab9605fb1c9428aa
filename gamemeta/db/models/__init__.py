# Import every model so Base.metadata knows all mapped tables.
from gamemeta.db.models.contributor import Contributor
from gamemeta.db.models.game import Game
from gamemeta.db.models.game_tag import GameTag
from gamemeta.db.models.game_ttb_stats import GameTtbStats
from gamemeta.db.models.library_entry import LibraryEntry
from gamemeta.db.models.ttb_blacklist import TtbBlacklistEntry
from gamemeta.db.models.ttb_report import TtbReport

__all__ = [
    "Contributor",
    "Game",
    "GameTag",
    "GameTtbStats",
    "LibraryEntry",
    "TtbBlacklistEntry",
    "TtbReport",
]
