# scripts/seed_league.py
import sys
import os
import random

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from ssbl import create_app, db
from ssbl.models.player import CharacterStats, Player
from ssbl.models.user import User, ROLE_ADMIN, ROLE_USER
from ssbl.services.league_service import LeagueService
from ssbl.utils.identity import Actor

CHARACTER_CLASSES = ('Balanced', 'Power', 'Speed', 'Technique')
ABILITIES = ('Super Jump', 'Laser Beam', 'Clamber', 'Quick Throw', 'Enlarge', 'Ball Dash', 'Suction Catch')

def random_character(name, captain=False):
    """產生一組隨機能力的角色 (開發測試用)"""
    return CharacterStats(
        character=name,
        character_class=random.choice(CHARACTER_CLASSES),
        captain=captain,
        throwing_arm=random.choice(('Left', 'Right')),
        batting_stance=random.choice(('Left', 'Right')),
        ability=random.choice(ABILITIES),
        weight=random.randint(0, 4),
        hitting_trajectory=random.choice(('Low', 'Medium', 'High')),
        slap_hit_contact_size=random.randint(20, 100),
        charge_hit_contact_size=random.randint(10, 60),
        slap_hit_power=random.randint(10, 80),
        charge_hit_power=random.randint(20, 100),
        bunting=random.randint(10, 100),
        speed=random.randint(10, 100),
        throwing_speed=random.randint(10, 100),
        fielding=random.randint(10, 100),
        curveball_speed=random.randint(100, 200),
        fastball_speed=random.randint(120, 220),
        curve=random.randint(10, 100),
        stamina=random.randint(10, 100),
        pitching_css=random.randint(1, 10),
        batting_css=random.randint(1, 10),
        fielding_css=random.randint(1, 10),
        speed_css=random.randint(1, 10),
    )

def seed(app, user_count=4, player_count=60, captain_count=8):
    with app.app_context():
        db.create_all()
        LeagueService.get_current_season()

        if Player.query.count() > 0:
            print("⚠️ [Seed] 資料庫已有球員，略過建立。")
            return

        # 1. 角色與球員
        for i in range(1, player_count + 1):
            character = random_character(f'Character {i:03d}', captain=i <= captain_count)
            db.session.add(character)
            db.session.add(Player(name=f'Player {i:03d}', stats_character=character.character, sort_position=i))
        db.session.commit()
        print(f"✅ [Seed] 已建立 {player_count} 名球員 (其中 {captain_count} 名具隊長資格)")

        # 2. 管理員 (直接寫入，作為後續操作的執行者)
        admin = User.query.filter_by(role=ROLE_ADMIN).first()
        if admin is None:
            admin = User(name='Commissioner', role=ROLE_ADMIN, discord_snowflake='0')
            db.session.add(admin)
            db.session.commit()
        actor = Actor.from_user(admin)

        # 3. 一般使用者 (各自建立球隊與選秀順位)
        for i in range(1, user_count + 1):
            result = LeagueService.create_user(actor, f'Manager {i}', ROLE_USER, str(1000 + i))
            if not result.success:
                print(f"❌ [Seed] 建立使用者失敗: {result.message}")

        print(f"🎉 [Seed] 完成，共 {User.query.count()} 位使用者")

if __name__ == '__main__':
    seed(create_app())
