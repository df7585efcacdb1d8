# ssbl/services/results.py
"""
服務層的回傳型別。

每個會改動資料的操作都回傳 Ok / Error / Redirect 其中之一，呼叫端依型別分流，
不以例外處理一般的驗證失敗或頁面轉址。
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

class ErrorReason(str, Enum):
    # 權限
    FORBIDDEN = 'Forbidden'
    USER_NOT_FOUND = 'UserNotFound'
    NOT_IMPERSONATING = 'NotImpersonating'

    # 選秀
    SEASON_NOT_DRAFTING = 'SeasonNotDrafting'
    NOT_YOUR_TURN = 'NotYourTurn'
    PLAYER_NOT_FOUND = 'PlayerNotFound'
    PLAYER_ALREADY_ASSIGNED = 'PlayerAlreadyAssigned'
    NO_TEAM_FOR_USER = 'NoTeamForUser'
    ROSTER_FULL = 'RosterFull'
    NO_PRE_DRAFT = 'NoPreDraft'

    # 打線
    PLAYER_NOT_ON_TEAM = 'PlayerNotOnTeam'
    CAPTAIN_MUST_PLAY = 'CaptainMustPlay'
    WRONG_PLAYING_COUNT = 'WrongPlayingCount'
    DUPLICATE_POSITION = 'DuplicatePosition'
    INVALID_BATTING_ORDER = 'InvalidBattingOrder'
    BENCH_HAS_BATTING_ORDER = 'BenchHasBattingOrder'

    # 賽季 / 球隊管理
    INVALID_STATE = 'InvalidState'
    INVALID_INPUT = 'InvalidInput'
    TEAM_NOT_FOUND = 'TeamNotFound'
    INVALID_TEAM_NAME = 'InvalidTeamName'
    CONFERENCE_NOT_FOUND = 'ConferenceNotFound'
    DUPLICATE_USER = 'DuplicateUser'

    # 交易
    SEASON_NOT_PLAYING = 'SeasonNotPlaying'
    SELF_TRADE = 'SelfTrade'
    EMPTY_TRADE = 'EmptyTrade'
    CAPTAIN_NOT_TRADABLE = 'CaptainNotTradable'
    PLAYER_IN_PENDING_TRADE = 'PlayerInPendingTrade'
    ROSTER_SIZE_VIOLATION = 'RosterSizeViolation'
    TRADE_NOT_FOUND = 'TradeNotFound'
    TRADE_NOT_PENDING = 'TradeNotPending'

    # 比賽
    MATCH_NOT_FOUND = 'MatchNotFound'
    MATCH_DAY_NOT_FOUND = 'MatchDayNotFound'
    SAME_TEAM = 'SameTeam'
    INVALID_MATCH_STATE = 'InvalidMatchState'
    SCORES_REQUIRED = 'ScoresRequired'
    INVALID_STAT = 'InvalidStat'
    LOCATION_NOT_FOUND = 'LocationNotFound'
    DUPLICATE_LOCATION = 'DuplicateLocation'

    # 角色默契
    CHARACTER_NOT_FOUND = 'CharacterNotFound'
    INVALID_CHEMISTRY = 'InvalidChemistry'

# 對應 HTTP 狀態碼 (其餘驗證失敗皆為 400)
_NOT_FOUND_REASONS = {
    ErrorReason.USER_NOT_FOUND, ErrorReason.PLAYER_NOT_FOUND, ErrorReason.TEAM_NOT_FOUND,
    ErrorReason.CONFERENCE_NOT_FOUND, ErrorReason.TRADE_NOT_FOUND, ErrorReason.MATCH_NOT_FOUND,
    ErrorReason.MATCH_DAY_NOT_FOUND, ErrorReason.LOCATION_NOT_FOUND, ErrorReason.CHARACTER_NOT_FOUND,
}

@dataclass
class Ok:
    value: Any = None

    success = True

    def to_dict(self):
        data = {'success': True}
        if isinstance(self.value, dict):
            data.update(self.value)
        elif self.value is not None:
            data['data'] = self.value
        return data

@dataclass
class Error:
    reason: ErrorReason
    message: str = ''

    success = False

    @property
    def http_status(self):
        if self.reason == ErrorReason.FORBIDDEN:
            return 403
        if self.reason in _NOT_FOUND_REASONS:
            return 404
        return 400

    def to_dict(self):
        return {'success': False, 'reason': self.reason.value, 'message': self.message}

@dataclass
class Redirect:
    path: str
    # 轉址前呼叫端要寫入 session 的值 (例如切換身分)
    session_updates: dict = field(default_factory=dict)

    success = True

    def to_dict(self):
        return {'success': True, 'redirect': self.path}

class ValidationFailed(Exception):
    """
    在交易內部發現驗證失敗時拋出，由 atomic() 回滾後再轉為 Error。
    交易前的預先檢查與交易內的重新檢查因此得到相同的結果。
    """
    def __init__(self, reason: ErrorReason, message: str = ''):
        super().__init__(message or reason.value)
        self.reason = reason
        self.message = message

    def to_error(self) -> Error:
        return Error(self.reason, self.message)

class PersistenceError(Exception):
    """資料庫不可用或寫入失敗 (致命錯誤，交易已完整回滾)"""
    pass

def fail(reason: ErrorReason, message: str = '') -> Error:
    return Error(reason, message)

def unwrap_error(result: Optional[Error]):
    """在交易內把驗證結果轉成例外 (None 或 Ok 代表通過)"""
    if isinstance(result, Error):
        raise ValidationFailed(result.reason, result.message)
