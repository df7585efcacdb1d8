# ssbl/scheduler.py
import os
import atexit
import logging
import socket
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

# 設置 logger
logging.basicConfig()
logging.getLogger('apscheduler').setLevel(logging.INFO)

# 全域變數，用於持有 Socket 鎖，防止被垃圾回收關閉
_scheduler_lock_socket = None

LOCK_PORT = 49510

def init_scheduler(app):
    """
    初始化選秀計時器排程
    使用 Socket Bind 機制確保多進程環境 (如 Flask Debug Mode) 下只有一個進程啟動排程器。
    回傳啟動的 scheduler，已在其他進程啟動時回傳 None。
    """
    global _scheduler_lock_socket

    try:
        _scheduler_lock_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        # Port 已被綁定代表另一個進程已經啟動了排程器
        _scheduler_lock_socket.bind(('127.0.0.1', LOCK_PORT))
    except socket.error:
        return None

    # 錯過的檢查合併為一次，同時只跑一個
    job_defaults = {
        'coalesce': True,
        'max_instances': 1,
        'misfire_grace_time': 60
    }

    scheduler = BackgroundScheduler(job_defaults=job_defaults)

    def run_job_with_app_context(func):
        with app.app_context():
            try:
                func()
            except Exception as e:
                print(f"❌ [Scheduler Error] {e}")

    # 延遲 import 避免循環引用
    from ssbl.services.draft_service import DraftService
    from ssbl.utils.game_config_loader import GameConfigLoader

    interval = int(GameConfigLoader.get('league_system.draft.clock_check_seconds', 15))

    # --- Job: 檢查選秀計時器，時間到時執行預選 ---
    scheduler.add_job(
        func=lambda: run_job_with_app_context(DraftService.process_draft_clock),
        trigger=IntervalTrigger(seconds=interval),
        id='draft_clock',
        name='Draft Clock Check',
        replace_existing=True
    )

    scheduler.start()
    print(f"⏰ [Scheduler] Draft Clock Scheduler Started (PID: {os.getpid()}) every {interval}s")

    atexit.register(lambda: scheduler.shutdown())
    return scheduler
