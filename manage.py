# manage.py
from ssbl import create_app
from ssbl.models.user import User, ROLE_ADMIN
from ssbl.models.league import SEASON_STATES
from ssbl.services.draft_service import DraftService
from ssbl.services.league_service import LeagueService
from ssbl.utils.identity import Actor

app = create_app()

def _admin_actor():
    admin = User.query.filter_by(role=ROLE_ADMIN).order_by(User.id).first()
    if admin is None:
        print("❌ 找不到管理員帳號，請先執行 scripts/seed_league.py")
        return None
    return Actor.from_user(admin)

def manual_trigger():
    print("========================================")
    print("SSBL 聯賽手動操作工具")
    print("========================================")
    print("1. 設定賽季狀態")
    print("2. 檢查選秀計時器 (時間到時執行預選)")
    print("3. 隨機分配自由球員")
    print("4. 隨機排定選秀順位")
    print("========================================")

    choice = input("請選擇操作 (1-4): ")

    with app.app_context():
        actor = _admin_actor()
        if actor is None:
            return

        if choice == '1':
            state = input(f"請輸入新狀態 {SEASON_STATES}: ").strip()
            result = LeagueService.set_season_state(actor, state)
        elif choice == '2':
            result = DraftService.process_draft_clock()
            if result is None:
                print("ℹ️ 目前沒有需要處理的選秀計時器。")
                return
        elif choice == '3':
            result = LeagueService.random_assign_teams(actor)
        elif choice == '4':
            result = DraftService.randomize_draft_order(actor)
        else:
            print("❌ 無效的選擇")
            return

        if result.success:
            print(f"✅ 完成: {result.to_dict()}")
        else:
            print(f"❌ 失敗 [{result.reason.value}]: {result.message}")

if __name__ == '__main__':
    manual_trigger()
