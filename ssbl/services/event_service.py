# ssbl/services/event_service.py
from sqlalchemy import func
from ssbl import db
from ssbl.models.event import (
    Event, EventDraft, EventSeasonStateChange, EventTrade, EventMatchStateChange,
    EVENT_DRAFT, EVENT_SEASON_STATE_CHANGE, EVENT_TRADE, EVENT_MATCH_STATE_CHANGE
)
from ssbl.models.league import CURRENT_SEASON_ID
from ssbl.models.user import User
from ssbl.services.notifier import broadcaster, announcer
from ssbl.utils.game_config_loader import GameConfigLoader

class EventService:
    """
    聯賽稽核紀錄。
    record_* 在呼叫端的交易內寫入事件列 (不 commit)，並回傳公告文字；
    公告與推播由 publish() 在 commit 之後執行。
    """

    @staticmethod
    def _new_event(event_type, user_id):
        event = Event(type=event_type, user_id=user_id, season_id=CURRENT_SEASON_ID)
        db.session.add(event)
        return event

    @staticmethod
    def _user_name(user_id):
        user = db.session.get(User, user_id) if user_id else None
        return user.name if user else 'system'

    @staticmethod
    def next_pick_number():
        return (db.session.query(func.count(EventDraft.event_id)).scalar() or 0) + 1

    @staticmethod
    def record_draft(user_id, player, team):
        pick_number = EventService.next_pick_number()
        event = EventService._new_event(EVENT_DRAFT, user_id)
        event.draft = EventDraft(player_id=player.id, team_id=team.id, pick_number=pick_number)
        return pick_number, (
            f"_Pick #{pick_number}_: **{player.name}** drafted by "
            f"**{EventService._user_name(user_id)}** to **{team.name}**"
        )

    @staticmethod
    def record_season_state_change(user_id, from_state, to_state):
        event = EventService._new_event(EVENT_SEASON_STATE_CHANGE, user_id)
        event.season_state_change = EventSeasonStateChange(from_state=from_state, to_state=to_state)
        return f"_Season State Change_: {from_state} → **{to_state}** by **{EventService._user_name(user_id)}**"

    @staticmethod
    def record_trade(user_id, trade, action):
        event = EventService._new_event(EVENT_TRADE, user_id)
        event.trade = EventTrade(trade_id=trade.id, action=action)
        return (
            f"_Trade {action.capitalize()}_: **{EventService._user_name(trade.from_user_id)}** ⇄ "
            f"**{EventService._user_name(trade.to_user_id)}**"
        )

    @staticmethod
    def record_match_state_change(user_id, match, from_state, to_state):
        event = EventService._new_event(EVENT_MATCH_STATE_CHANGE, user_id)
        event.match_state_change = EventMatchStateChange(match_id=match.id, from_state=from_state, to_state=to_state)
        text = f"_Match_: **{match.team_a.name}** vs **{match.team_b.name}** is now **{to_state}**"
        if to_state == 'finished' and match.is_scored:
            text += f" ({match.team_a_score}-{match.team_b_score})"
        return text

    @staticmethod
    def publish(user_id, event_type, payload=None, announcement=None):
        """
        commit 之後呼叫: 推播結構化事件並送出公告。兩者皆為 fire-and-forget。
        """
        broadcaster.broadcast(user_id, event_type, payload)
        if announcement:
            announcer.announce(announcement)

    # =====================================================
    # 事件列表
    # =====================================================

    @staticmethod
    def serialize(event):
        data = {
            'id': event.id,
            'type': event.type,
            'user_id': event.user_id,
            'user_name': event.user.name if event.user else None,
            'created_at': event.created_at.isoformat() if event.created_at else None,
        }
        if event.draft:
            data.update({
                'player_id': event.draft.player_id,
                'player_name': event.draft.player.name if event.draft.player else None,
                'team_id': event.draft.team_id,
                'team_name': event.draft.team.name if event.draft.team else None,
                'pick_number': event.draft.pick_number,
            })
        elif event.season_state_change:
            data.update({
                'from_state': event.season_state_change.from_state,
                'to_state': event.season_state_change.to_state,
            })
        elif event.trade:
            data.update({'trade_id': event.trade.trade_id, 'action': event.trade.action})
        elif event.match_state_change:
            data.update({
                'match_id': event.match_state_change.match_id,
                'from_state': event.match_state_change.from_state,
                'to_state': event.match_state_change.to_state,
            })
        return data

    @staticmethod
    def get_events(page=1, page_size=None):
        """最新的事件排在最前面"""
        page_size = page_size or GameConfigLoader.get('league_system.events.page_size', 30)
        page = max(1, int(page))

        query = Event.query.order_by(Event.created_at.desc(), Event.id.desc())
        total = query.count()
        events = query.offset((page - 1) * page_size).limit(page_size).all()

        return {
            'events': [EventService.serialize(e) for e in events],
            'page': page,
            'page_size': page_size,
            'total': total,
            'has_more': page * page_size < total,
        }
