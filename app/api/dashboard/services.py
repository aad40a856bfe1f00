# app/api/dashboard/services.py
"""
대시보드 분석 서비스
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict

from app.utils.datetime_utils import DateTimeUtils
from .scoring import compute_wellness_scores, compute_poop_trend, LOOK_WINDOW_DAYS

logger = logging.getLogger(__name__)

MONTHLY_RANGE_DAYS = 30


class AnalyticsService:
    """
    wellness radar 점수와 배변 추세를 계산합니다. 결과는 저장하지 않습니다.
    """

    def __init__(self, aggregator):
        self.aggregator = aggregator

    def get_wellness(self, pet_id: str, user_id: str, as_of: date, timeframe: str = 'daily') -> Dict[str, Any]:
        """
        Args:
            pet_id: 반려동물 ID
            user_id: 사용자 ID
            as_of: 기준 날짜
            timeframe: 'daily' (기준일 하루) 또는 'monthly' (기준일 포함 최근 30일)
        """
        range_days = MONTHLY_RANGE_DAYS if timeframe == 'monthly' else 1
        start, _ = DateTimeUtils.day_bounds(as_of - timedelta(days=range_days - 1))
        _, end = DateTimeUtils.day_bounds(as_of)

        window = self.aggregator.fetch_log_window(pet_id, user_id, start, end)
        scores = compute_wellness_scores(window, range_days)
        logger.info(f"wellness 점수 계산 완료: {pet_id} ({timeframe}, {as_of.isoformat()})")

        return {
            'date': as_of.isoformat(),
            'timeframe': timeframe,
            'rangeDays': range_days,
            'scores': scores,
        }

    def get_poop_trend(self, pet_id: str, user_id: str, as_of: date) -> Dict[str, Any]:
        self.aggregator.get_pet(pet_id, user_id)

        start, _ = DateTimeUtils.day_bounds(as_of - timedelta(days=LOOK_WINDOW_DAYS))
        _, end = DateTimeUtils.day_bounds(as_of)
        poop_logs = self.aggregator.fetch_poop_between(pet_id, start, end)

        trend = compute_poop_trend(poop_logs, as_of)
        trend['date'] = as_of.isoformat()
        return trend
