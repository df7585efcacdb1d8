# ssbl/services/chemistry_service.py
from collections import defaultdict
from ssbl import db
from ssbl.models.player import (
    Player, CharacterStats, Chemistry, CHEMISTRY_RELATIONSHIPS, CHEMISTRY_POSITIVE, CHEMISTRY_NEGATIVE
)
from ssbl.models.team import Team
from ssbl.services.results import Ok, Error, ErrorReason
from ssbl.services.auth_service import AuthService
from ssbl.utils.transaction import atomic

def build_chemistry_lookup(pairs):
    """
    [純函式] (character1, character2, relationship) 列表 -> {角色: {對方角色: relationship}}
    兩個方向都記錄，查詢時不必在意配對的先後。
    """
    lookup = defaultdict(dict)
    for character1, character2, relationship in pairs:
        lookup[character1][character2] = relationship
        lookup[character2][character1] = relationship
    return lookup

def sort_characters(characters, sort_positions):
    """有球員使用的角色依球員排序在前，其餘依角色名稱"""
    return sorted(
        characters,
        key=lambda c: (c not in sort_positions, sort_positions.get(c, 0), c)
    )

class ChemistryService:
    """
    角色默契 (正 / 負) 的查詢與維護
    默契是角色之間的關係，球員透過 stats_character 取得。
    """

    @staticmethod
    def get_lookup():
        return build_chemistry_lookup(
            (c.character1, c.character2, c.relationship) for c in Chemistry.query.all()
        )

    @staticmethod
    def _players_by_character():
        players = defaultdict(list)
        for player in Player.query.filter(Player.stats_character.isnot(None)).order_by(Player.sort_position).all():
            players[player.stats_character].append(player)
        return players

    @staticmethod
    def _player_brief(player):
        return {'id': player.id, 'name': player.name, 'team_id': player.team_id}

    # =====================================================
    # 1. 查詢
    # =====================================================

    @staticmethod
    def get_chemistry_table():
        """全部角色 (依球員排序) 與角色間的默契對照"""
        players_by_character = ChemistryService._players_by_character()
        sort_positions = {
            character: players[0].sort_position for character, players in players_by_character.items()
        }
        characters = sort_characters([s.character for s in CharacterStats.query.all()], sort_positions)
        lookup = ChemistryService.get_lookup()

        return {
            'characters': [{
                'character': character,
                'players': [ChemistryService._player_brief(p) for p in players_by_character.get(character, [])],
            } for character in characters],
            'relationships': {character: dict(lookup[character]) for character in characters if lookup.get(character)},
        }

    @staticmethod
    def get_player_chemistry(player_id):
        player = db.session.get(Player, player_id)
        if player is None:
            return None

        data = {'player_id': player.id, 'character': player.stats_character, CHEMISTRY_POSITIVE: [], CHEMISTRY_NEGATIVE: []}
        if not player.stats_character:
            return data

        players_by_character = ChemistryService._players_by_character()
        related = ChemistryService.get_lookup().get(player.stats_character, {})
        for character in sorted(related):
            data[related[character]].append({
                'character': character,
                'players': [ChemistryService._player_brief(p) for p in players_by_character.get(character, [])],
            })
        return data

    @staticmethod
    def get_team_chemistry(team_id):
        """球隊內每一對有默契的球員，以及正負默契的數量"""
        team = db.session.get(Team, team_id)
        if team is None:
            return None

        roster = team.players.filter(Player.stats_character.isnot(None)).order_by(Player.sort_position).all()
        lookup = ChemistryService.get_lookup()

        pairs = []
        for i, player_a in enumerate(roster):
            for player_b in roster[i + 1:]:
                relationship = lookup.get(player_a.stats_character, {}).get(player_b.stats_character)
                if relationship:
                    pairs.append({
                        'player_a_id': player_a.id,
                        'player_b_id': player_b.id,
                        'relationship': relationship,
                    })

        return {
            'team_id': team_id,
            'pairs': pairs,
            CHEMISTRY_POSITIVE: sum(1 for p in pairs if p['relationship'] == CHEMISTRY_POSITIVE),
            CHEMISTRY_NEGATIVE: sum(1 for p in pairs if p['relationship'] == CHEMISTRY_NEGATIVE),
        }

    # =====================================================
    # 2. 維護 (Admin)
    # =====================================================

    @staticmethod
    def _check_pair(character1, character2, relationship, allow_clear=False):
        if character1 == character2:
            return Error(ErrorReason.INVALID_CHEMISTRY, '角色不能和自己有默契')
        if relationship not in CHEMISTRY_RELATIONSHIPS and not (allow_clear and relationship is None):
            return Error(ErrorReason.INVALID_CHEMISTRY, f'未知的默契類型: {relationship}')
        for character in (character1, character2):
            if db.session.get(CharacterStats, character) is None:
                return Error(ErrorReason.CHARACTER_NOT_FOUND, f'找不到角色 {character}')
        return Ok()

    @staticmethod
    def set_chemistry(actor, character1, character2, relationship):
        """新增或更新一對角色的默契；relationship 為 None 時刪除"""
        check = AuthService.require_admin(actor)
        if not check.success:
            return check
        check = ChemistryService._check_pair(character1, character2, relationship, allow_clear=True)
        if not check.success:
            return check

        character1, character2 = Chemistry.normalize_pair(character1, character2)
        with atomic() as session:
            row = session.get(Chemistry, (character1, character2))
            if relationship is None:
                if row is not None:
                    session.delete(row)
            elif row is None:
                session.add(Chemistry(character1=character1, character2=character2, relationship=relationship))
            else:
                row.relationship = relationship

        return Ok({'character1': character1, 'character2': character2, 'relationship': relationship})

    @staticmethod
    def sync_chemistry(actor, pairs):
        """
        以整份默契清單取代現有資料: 新配對新增、既有配對更新、清單外的配對刪除。
        pairs: (character1, character2, relationship) 列表，同一對重複出現時以第一筆為準。
        """
        check = AuthService.require_admin(actor)
        if not check.success:
            return check

        wanted = {}
        for character1, character2, relationship in pairs:
            check = ChemistryService._check_pair(character1, character2, relationship)
            if not check.success:
                return check
            wanted.setdefault(Chemistry.normalize_pair(character1, character2), relationship)

        inserted = updated = deleted = 0
        with atomic() as session:
            existing = {(row.character1, row.character2): row for row in Chemistry.query.all()}
            for key, relationship in wanted.items():
                row = existing.get(key)
                if row is None:
                    session.add(Chemistry(character1=key[0], character2=key[1], relationship=relationship))
                    inserted += 1
                else:
                    row.relationship = relationship
                    updated += 1
            for key, row in existing.items():
                if key not in wanted:
                    session.delete(row)
                    deleted += 1

        print(f"🧪 [Chemistry] 默契更新完成: 新增 {inserted}、更新 {updated}、刪除 {deleted}")
        return Ok({'inserted': inserted, 'updated': updated, 'deleted': deleted})
