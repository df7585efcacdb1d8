# config.py
import os
from dotenv import load_dotenv

# 取得目前檔案的目錄
basedir = os.path.abspath(os.path.dirname(__file__))

# 載入 .env 檔案
load_dotenv(os.path.join(basedir, '.env'))

class Config:
    # 1. 安全密鑰 (Session 簽章用，包含管理員模擬登入)
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-fallback-key'

    # 2. 資料庫連線設定
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'ssbl.db')

    # 3. 效能設定
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # 4. 公告頻道 (Discord Webhook)，未設定時不發送
    DISCORD_WEBHOOK_URL = os.environ.get('DISCORD_WEBHOOK_URL')
    ANNOUNCEMENTS_ENABLED = os.environ.get('ANNOUNCEMENTS_ENABLED', '1') != '0'

    # 5. 公告內連結使用的網站根網址
    BASE_URL = os.environ.get('BASE_URL') or 'http://127.0.0.1:5000'

    # 6. 選秀計時器排程 (多進程部署時只需一個進程開啟)
    ENABLE_SCHEDULER = os.environ.get('ENABLE_SCHEDULER', '0') == '1'

    # 7. 是否接受 X-User-Id 標頭作為目前使用者 (只在測試或本機工具開啟)
    TRUST_USER_HEADER = os.environ.get('TRUST_USER_HEADER', '0') == '1'

class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    DISCORD_WEBHOOK_URL = None
    ANNOUNCEMENTS_ENABLED = False
    ENABLE_SCHEDULER = False
    TRUST_USER_HEADER = True
