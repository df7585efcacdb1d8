# ssbl/models/__init__.py
from ssbl.models.user import User
from ssbl.models.team import Team, Conference
from ssbl.models.player import Player, CharacterStats, TeamLineup, Chemistry
from ssbl.models.league import Season, UserSeason, MatchDay
from ssbl.models.match import Match, MatchLocation, MatchBattingOrder, MatchPlayerStat
from ssbl.models.trade import Trade, TradePlayer
from ssbl.models.event import Event, EventDraft, EventSeasonStateChange, EventTrade, EventMatchStateChange
