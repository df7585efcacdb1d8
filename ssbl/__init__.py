# ssbl/__init__.py
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from config import Config

# 初始化套件
db = SQLAlchemy()
migrate = Migrate()

def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # 綁定資料庫
    db.init_app(app)
    migrate.init_app(app, db)

    # 載入所有模型，讓 create_all / Flask-Migrate 看得到資料表
    from ssbl import models  # noqa: F401

    # 註冊 Blueprints
    from ssbl.routes import main
    from ssbl.routes.draft import draft_bp
    from ssbl.routes.team import team_bp
    from ssbl.routes.league import league_bp
    from ssbl.routes.trade import trade_bp
    from ssbl.routes.admin import admin_bp
    from ssbl.routes.player import player_bp
    app.register_blueprint(main)
    app.register_blueprint(draft_bp)
    app.register_blueprint(team_bp)
    app.register_blueprint(league_bp)
    app.register_blueprint(trade_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(player_bp)

    # 公告設定 (Discord Webhook)
    from ssbl.services.notifier import announcer
    announcer.configure(
        webhook_url=app.config.get('DISCORD_WEBHOOK_URL'),
        enabled=app.config.get('ANNOUNCEMENTS_ENABLED', True)
    )

    if app.config.get('ENABLE_SCHEDULER'):
        from ssbl.scheduler import init_scheduler
        init_scheduler(app)

    return app
