# app/services/reward_service.py
import logging
from typing import Any, Dict, Optional

from firebase_admin import firestore

from app.utils.datetime_utils import DateTimeUtils

REWARD_EVENTS_COLLECTION = 'reward_events'

REWARD_ACTIVITIES = frozenset({
    'food_log',
    'poop_log',
    'supplement_log',
    'measurement_log',
    'photo_upload',
})


class RewardService:
    """
    활동 보상 크레딧 적립.
    적립은 부가 기능이므로 실패해도 요청을 중단하지 않고 로그만 남깁니다.
    """

    def __init__(self, db=None):
        self.db = db or firestore.client()

    def award_activity_credit(self, user_id: str, activity: str,
                              metadata: Optional[Dict[str, Any]] = None) -> bool:
        """
        :return: 적립 이벤트 기록 성공 여부
        """
        if activity not in REWARD_ACTIVITIES:
            logging.warning(f"알 수 없는 보상 활동 '{activity}' (user: {user_id})")
            return False

        try:
            self.db.collection(REWARD_EVENTS_COLLECTION).add({
                'user_id': user_id,
                'activity': activity,
                'metadata': metadata or {},
                'created_at': DateTimeUtils.now(),
            })
            return True
        except Exception as e:
            logging.error(f"보상 크레딧 적립 실패 (user: {user_id}, activity: {activity}): {e}", exc_info=True)
            return False
