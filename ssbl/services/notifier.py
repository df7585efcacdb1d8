# ssbl/services/notifier.py
# 模組名稱: 事件推播與 Discord 公告
# 描述: 核心交易 commit 之後才呼叫本模組，任何失敗都只記錄、不影響呼叫端。

import threading
import requests

class EventBroadcaster:
    """
    程序內的訂閱者登記表 (例如 SSE 連線)，推送 {type, payload} 結構化事件。
    """

    def __init__(self):
        self._subscribers = []
        self._lock = threading.Lock()

    def subscribe(self, callback):
        with self._lock:
            self._subscribers.append(callback)
        return callback

    def unsubscribe(self, callback):
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def broadcast(self, user_id, event_type, payload=None):
        """
        推送給所有訂閱者。單一訂閱者失敗不影響其他人，回傳成功送達的數量。
        """
        message = {'type': event_type, 'user_id': user_id, 'payload': payload or {}}
        with self._lock:
            subscribers = list(self._subscribers)

        delivered = 0
        for callback in subscribers:
            try:
                callback(message)
                delivered += 1
            except Exception as e:
                print(f"⚠️ [Broadcast] 訂閱者推送失敗 ({event_type}): {e}")
        return delivered

class DiscordAnnouncer:
    """
    以 Discord Webhook 發送公告文字。
    在背景 daemon 執行緒送出，未設定 webhook 或關閉時直接略過。
    """

    def __init__(self, webhook_url=None, enabled=True, timeout=10):
        self.webhook_url = webhook_url
        self.enabled = enabled
        self.timeout = timeout

    def configure(self, webhook_url=None, enabled=True):
        self.webhook_url = webhook_url
        self.enabled = enabled

    @property
    def is_active(self):
        return bool(self.enabled and self.webhook_url)

    def send(self, content):
        """同步送出，失敗時回傳 False"""
        try:
            response = requests.post(self.webhook_url, json={'content': content}, timeout=self.timeout)
            if response.status_code >= 400:
                print(f"❌ [Announcer] Webhook 回傳錯誤: {response.status_code}")
                return False
            return True
        except requests.RequestException as e:
            print(f"⚠️ [Announcer] Webhook 連線失敗: {e}")
            return False

    def announce(self, content):
        """
        非同步公告 (fire-and-forget)。回傳背景執行緒，未送出時回傳 None。
        """
        if not content or not self.is_active:
            return None

        thread = threading.Thread(target=self.send, args=(content,))
        thread.daemon = True  # 主程式結束時自動結束
        thread.start()
        return thread

broadcaster = EventBroadcaster()
announcer = DiscordAnnouncer()
