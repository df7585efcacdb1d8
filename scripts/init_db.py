# scripts/init_db.py
import sys
import os

# 將專案根目錄加入 Python 路徑，這樣才能 import ssbl
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from ssbl import create_app, db
from ssbl.services.league_service import LeagueService

def init_database(app):
    with app.app_context():
        # 1. 建立新表
        db.create_all()
        print("✅ 資料表建立成功！")

        # 2. 建立唯一的賽季列 (pre-season)
        season = LeagueService.get_current_season()
        print(f"📅 目前賽季狀態: {season.state}")

        # 3. 檢查是否成功
        from sqlalchemy import inspect
        inspector = inspect(db.engine)
        tables = inspector.get_table_names()
        print(f"📊 目前資料庫中的資料表: {tables}")

if __name__ == '__main__':
    print("🚀 開始初始化資料庫...")
    init_database(create_app())
