# ssbl/services/trade_service.py
from datetime import datetime
from sqlalchemy import or_
from ssbl import db
from ssbl.models.league import Season, CURRENT_SEASON_ID, SEASON_PLAYING
from ssbl.models.player import Player
from ssbl.models.team import Team
from ssbl.models.trade import (
    Trade, TradePlayer, TRADE_PENDING, TRADE_ACCEPTED, TRADE_DENIED, TRADE_CANCELLED
)
from ssbl.models.event import EVENT_TRADE
from ssbl.services.results import Ok, Error, ErrorReason, ValidationFailed, unwrap_error
from ssbl.services.event_service import EventService
from ssbl.services.lineup_service import LineupService
from ssbl.utils.game_config_loader import GameConfigLoader
from ssbl.utils.transaction import atomic, lock

class TradeService:
    """
    球員交易 (僅限 playing 階段)
    提案 -> 對方接受 / 拒絕，或提案人取消。接受時在交易內重新驗證一次。
    """

    @staticmethod
    def validate_trade_request(from_user_id, to_user_id, from_player_ids, to_player_ids, exclude_trade_id=None):
        from_player_ids = list(from_player_ids or [])
        to_player_ids = list(to_player_ids or [])

        season = db.session.get(Season, CURRENT_SEASON_ID)
        if season is None or season.state != SEASON_PLAYING:
            state = season.state if season else 'missing'
            return Error(ErrorReason.SEASON_NOT_PLAYING, f'賽季目前為 "{state}"，只有 playing 階段可以交易')

        if from_user_id == to_user_id:
            return Error(ErrorReason.SELF_TRADE, '不能和自己交易')

        from_team = Team.query.filter_by(user_id=from_user_id).first()
        if from_team is None:
            return Error(ErrorReason.NO_TEAM_FOR_USER, '你沒有球隊')
        to_team = Team.query.filter_by(user_id=to_user_id).first()
        if to_team is None:
            return Error(ErrorReason.NO_TEAM_FOR_USER, '對方沒有球隊')

        if not from_player_ids and not to_player_ids:
            return Error(ErrorReason.EMPTY_TRADE, '至少要交易一名球員')

        from_roster = {p.id for p in Player.query.filter_by(team_id=from_team.id).all()}
        to_roster = {p.id for p in Player.query.filter_by(team_id=to_team.id).all()}

        if any(pid not in from_roster for pid in from_player_ids):
            return Error(ErrorReason.PLAYER_NOT_ON_TEAM, '部分球員不屬於你的球隊')
        if any(pid not in to_roster for pid in to_player_ids):
            return Error(ErrorReason.PLAYER_NOT_ON_TEAM, '部分球員不屬於對方球隊')

        # 隊長不可交易
        if from_team.captain_id is not None and from_team.captain_id in from_player_ids:
            return Error(ErrorReason.CAPTAIN_NOT_TRADABLE, '不能交易你的隊長')
        if to_team.captain_id is not None and to_team.captain_id in to_player_ids:
            return Error(ErrorReason.CAPTAIN_NOT_TRADABLE, '不能交易對方的隊長')

        # 同一批球員不可同時出現在涉及任一方的其他待處理交易中
        all_player_ids = from_player_ids + to_player_ids
        involved = (from_user_id, to_user_id)
        query = (
            db.session.query(TradePlayer.player_id)
            .join(Trade, TradePlayer.trade_id == Trade.id)
            .filter(
                Trade.status == TRADE_PENDING,
                TradePlayer.player_id.in_(all_player_ids),
                or_(Trade.from_user_id.in_(involved), Trade.to_user_id.in_(involved)),
            )
        )
        if exclude_trade_id is not None:
            query = query.filter(Trade.id != exclude_trade_id)
        if query.first() is not None:
            return Error(ErrorReason.PLAYER_IN_PENDING_TRADE, '部分球員已在與此使用者的其他待處理交易中')

        # 交易後雙方人數必須介於 [先發人數, 球隊上限]
        team_size = GameConfigLoader.team_size()
        lineup_size = GameConfigLoader.lineup_size()
        from_after = len(from_roster) - len(from_player_ids) + len(to_player_ids)
        to_after = len(to_roster) - len(to_player_ids) + len(from_player_ids)
        if from_after > team_size or to_after > team_size:
            return Error(ErrorReason.ROSTER_SIZE_VIOLATION, f'交易後球隊人數會超過上限 {team_size}')
        if from_after < lineup_size or to_after < lineup_size:
            return Error(ErrorReason.ROSTER_SIZE_VIOLATION, f'交易後球隊人數會少於先發所需的 {lineup_size} 人')

        return Ok({'from_team_id': from_team.id, 'to_team_id': to_team.id})

    @staticmethod
    def create_trade_request(from_user_id, to_user_id, from_player_ids, to_player_ids, proposal_text=None):
        validation = TradeService.validate_trade_request(from_user_id, to_user_id, from_player_ids, to_player_ids)
        if not validation.success:
            return validation

        try:
            with atomic() as session:
                Season.lock_current()
                unwrap_error(TradeService.validate_trade_request(
                    from_user_id, to_user_id, from_player_ids, to_player_ids
                ))
                trade = Trade(
                    from_user_id=from_user_id,
                    to_user_id=to_user_id,
                    status=TRADE_PENDING,
                    proposal_text=proposal_text or None,
                )
                for pid in from_player_ids or []:
                    trade.players.append(TradePlayer(player_id=pid, from_user_id=from_user_id))
                for pid in to_player_ids or []:
                    trade.players.append(TradePlayer(player_id=pid, from_user_id=to_user_id))
                session.add(trade)
                session.flush()

                trade_id = trade.id
                announcement = EventService.record_trade(from_user_id, trade, 'proposed')
        except ValidationFailed as e:
            return e.to_error()

        print(f"🤝 [Trade] 使用者 {from_user_id} 向 {to_user_id} 提出交易 #{trade_id}")
        EventService.publish(from_user_id, EVENT_TRADE, {'trade_id': trade_id, 'action': 'proposed'}, announcement)
        return Ok({'trade_id': trade_id})

    @staticmethod
    def accept_trade(trade_id, user_id, response_text=None):
        trade = db.session.get(Trade, trade_id)
        if trade is None:
            return Error(ErrorReason.TRADE_NOT_FOUND, '找不到交易')
        if trade.status != TRADE_PENDING:
            return Error(ErrorReason.TRADE_NOT_PENDING, '交易已經處理過')
        if trade.to_user_id != user_id:
            return Error(ErrorReason.FORBIDDEN, '你不是這筆交易的接收方')

        try:
            with atomic() as session:
                Season.lock_current()
                trade = lock(Trade.query.filter_by(id=trade_id)).one()
                if trade.status != TRADE_PENDING:
                    raise ValidationFailed(ErrorReason.TRADE_NOT_PENDING, '交易已經處理過')

                from_player_ids = trade.player_ids_from(trade.from_user_id)
                to_player_ids = trade.player_ids_from(trade.to_user_id)
                validation = TradeService.validate_trade_request(
                    trade.from_user_id, trade.to_user_id, from_player_ids, to_player_ids,
                    exclude_trade_id=trade_id
                )
                unwrap_error(validation)
                from_team_id = validation.value['from_team_id']
                to_team_id = validation.value['to_team_id']

                # 被交易的球員打線資料一律刪除，由新球隊重新安排
                LineupService.delete_lineup_rows(from_player_ids + to_player_ids)
                for player in lock(Player.query.filter(Player.id.in_(from_player_ids + to_player_ids))).all():
                    player.team_id = to_team_id if player.id in from_player_ids else from_team_id

                trade = session.get(Trade, trade_id)
                trade.status = TRADE_ACCEPTED
                trade.response_text = response_text or None
                trade.updated_at = datetime.utcnow()
                announcement = EventService.record_trade(user_id, trade, 'accepted')
        except ValidationFailed as e:
            return e.to_error()

        print(f"✅ [Trade] 交易 #{trade_id} 已成交")
        EventService.publish(user_id, EVENT_TRADE, {'trade_id': trade_id, 'action': 'accepted'}, announcement)
        return Ok({'trade_id': trade_id, 'status': TRADE_ACCEPTED})

    @staticmethod
    def deny_trade(trade_id, user_id, response_text=None):
        """提案人呼叫為取消 (cancelled)，接收方呼叫為拒絕 (denied)"""
        trade = db.session.get(Trade, trade_id)
        if trade is None:
            return Error(ErrorReason.TRADE_NOT_FOUND, '找不到交易')
        if trade.status != TRADE_PENDING:
            return Error(ErrorReason.TRADE_NOT_PENDING, '交易已經處理過')
        if user_id not in (trade.from_user_id, trade.to_user_id):
            return Error(ErrorReason.FORBIDDEN, '你無權處理這筆交易')

        is_cancellation = trade.from_user_id == user_id
        status = TRADE_CANCELLED if is_cancellation else TRADE_DENIED
        action = 'cancelled' if is_cancellation else 'rejected'

        try:
            with atomic():
                trade = lock(Trade.query.filter_by(id=trade_id)).one()
                if trade.status != TRADE_PENDING:
                    raise ValidationFailed(ErrorReason.TRADE_NOT_PENDING, '交易已經處理過')
                trade.status = status
                trade.response_text = response_text or None
                trade.updated_at = datetime.utcnow()
                announcement = EventService.record_trade(user_id, trade, action)
        except ValidationFailed as e:
            return e.to_error()

        EventService.publish(user_id, EVENT_TRADE, {'trade_id': trade_id, 'action': action}, announcement)
        return Ok({'trade_id': trade_id, 'status': status})

    # =====================================================
    # 查詢
    # =====================================================

    @staticmethod
    def serialize(trade):
        return {
            'id': trade.id,
            'from_user_id': trade.from_user_id,
            'from_user_name': trade.from_user.name if trade.from_user else None,
            'to_user_id': trade.to_user_id,
            'to_user_name': trade.to_user.name if trade.to_user else None,
            'status': trade.status,
            'proposal_text': trade.proposal_text,
            'response_text': trade.response_text,
            'created_at': trade.created_at.isoformat() if trade.created_at else None,
            'players': [{
                'player_id': tp.player_id,
                'name': tp.player.name if tp.player else None,
                'from_user_id': tp.from_user_id,
            } for tp in trade.players],
        }

    @staticmethod
    def get_pending_trades_for_user(user_id):
        return (
            Trade.query.filter(
                Trade.status == TRADE_PENDING,
                or_(Trade.from_user_id == user_id, Trade.to_user_id == user_id),
            )
            .order_by(Trade.created_at.desc(), Trade.id.desc())
            .all()
        )

    @staticmethod
    def get_trades(page=1, page_size=None, user_id=None, order='desc'):
        page_size = page_size or GameConfigLoader.get('league_system.trades.page_size', 20)
        page = max(1, int(page))

        query = Trade.query
        if user_id is not None:
            query = query.filter(or_(Trade.from_user_id == user_id, Trade.to_user_id == user_id))
        if order == 'asc':
            query = query.order_by(Trade.created_at.asc(), Trade.id.asc())
        else:
            query = query.order_by(Trade.created_at.desc(), Trade.id.desc())

        total = query.count()
        trades = query.offset((page - 1) * page_size).limit(page_size).all()
        return {
            'trades': [TradeService.serialize(t) for t in trades],
            'page': page,
            'page_size': page_size,
            'total': total,
            'total_pages': (total + page_size - 1) // page_size,
        }
