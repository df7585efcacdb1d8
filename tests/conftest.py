# tests/conftest.py
"""
Pytest 共用設定

- app: 以 TestConfig (記憶體 SQLite) 建立的應用程式，每個測試都是全新的資料表
- factory: 建立使用者 / 球隊 / 球員 / 打線的輔助物件
- broadcasts: 收集推播事件的訂閱者
"""
import pytest
from config import TestConfig
from ssbl import create_app, db
from ssbl.models.league import Season, UserSeason, CURRENT_SEASON_ID, SEASON_PRE_SEASON
from ssbl.models.player import CharacterStats, Player, TeamLineup
from ssbl.models.team import Team
from ssbl.models.user import User, ROLE_ADMIN, ROLE_USER
from ssbl.services.lineup_service import LineupService
from ssbl.services.notifier import broadcaster
from ssbl.utils.identity import Actor

_STAT_DEFAULTS = dict(
    character_class='Balanced', throwing_arm='Right', batting_stance='Right', ability='Quick Throw',
    weight=2, hitting_trajectory='Medium',
    slap_hit_contact_size=50, charge_hit_contact_size=30, slap_hit_power=40, charge_hit_power=50,
    bunting=50, speed=50, throwing_speed=50, fielding=50, curveball_speed=150, fastball_speed=160,
    curve=50, stamina=50, pitching_css=5, batting_css=5, fielding_css=5, speed_css=5,
)

class LeagueFactory:
    """測試資料建立工具 (每個方法都會 commit)"""

    def __init__(self, session):
        self.session = session
        self._player_seq = 0

    def season(self, state=SEASON_PRE_SEASON, **fields):
        season = self.session.get(Season, CURRENT_SEASON_ID)
        if season is None:
            season = Season(id=CURRENT_SEASON_ID)
            self.session.add(season)
        season.state = state
        for key, value in fields.items():
            setattr(season, key, value)
        self.session.commit()
        return season

    def user(self, name, role=ROLE_USER, drafting_turn=None, with_team=True):
        if self.session.get(Season, CURRENT_SEASON_ID) is None:
            self.season()

        user = User(name=name, role=role, discord_snowflake=f'snowflake-{name}')
        self.session.add(user)
        self.session.flush()
        if with_team:
            self.session.add(Team(name=f"{name}'s Team", abbreviation=name[:3].upper(), user_id=user.id))
        if drafting_turn is not None:
            self.session.add(UserSeason(user_id=user.id, season_id=CURRENT_SEASON_ID, drafting_turn=drafting_turn))
        self.session.commit()
        return user

    def admin(self, name='Commissioner'):
        return self.user(name, role=ROLE_ADMIN, with_team=False)

    def team_of(self, user):
        return Team.query.filter_by(user_id=user.id).one()

    def player(self, name=None, captain=False, team=None):
        self._player_seq += 1
        seq = self._player_seq
        character = CharacterStats(character=f'Character {seq}', captain=captain, **_STAT_DEFAULTS)
        player = Player(
            name=name or f'Player {seq}',
            stats_character=character.character,
            sort_position=seq,
            team_id=team.id if team is not None else None,
        )
        self.session.add_all([character, player])
        self.session.commit()
        return player

    def players(self, count, team=None, captain=False):
        return [self.player(team=team, captain=captain) for _ in range(count)]

    def lineup(self, team, players, captain=None):
        """前九名依守備位置先發、其餘坐板凳"""
        for entry in LineupService.build_default_lineup([p.id for p in players]):
            self.session.add(LineupService.to_row(entry))
        if captain is not None:
            team.captain_id = captain.id
        self.session.commit()

    @staticmethod
    def actor(user):
        return Actor.from_user(user)

def lineup_snapshot(team_id):
    rows = (
        TeamLineup.query.join(Player, TeamLineup.player_id == Player.id)
        .filter(Player.team_id == team_id)
        .all()
    )
    return sorted(
        (row.player_id, row.fielding_position, row.batting_order, row.is_starred) for row in rows
    )

@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    return app.test_client()

@pytest.fixture
def factory(app):
    return LeagueFactory(db.session)

@pytest.fixture
def snapshot():
    return lineup_snapshot

@pytest.fixture
def broadcasts():
    received = []
    broadcaster.subscribe(received.append)
    yield received
    broadcaster.unsubscribe(received.append)
