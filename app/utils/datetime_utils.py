# app/utils/datetime_utils.py
"""
프로젝트 전체에서 일관된 시간/날짜 처리를 위한 중앙화된 유틸리티 모듈

- 백엔드는 UTC로 통일합니다 (클라이언트에서 현지 시간으로 변환).
- Firestore Timestamp / ISO 문자열 / Unix ms 를 모두 timezone-aware datetime으로 정규화합니다.
- 대시보드 계산에 필요한 날짜 창(window) 계산을 제공합니다.
"""

import logging
from datetime import datetime, date, timezone, time, timedelta
from typing import Any, List, Tuple, Union
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)


class DateTimeUtils:
    """시간/날짜 처리를 위한 중앙화된 유틸리티 클래스"""

    @staticmethod
    def now() -> datetime:
        """현재 시간을 UTC timezone-aware datetime으로 반환"""
        return datetime.now(timezone.utc)

    @staticmethod
    def today() -> date:
        return datetime.now(timezone.utc).date()

    @staticmethod
    def parse_iso_datetime(iso_string: str) -> datetime:
        """
        ISO 포맷 문자열을 UTC datetime으로 파싱

        지원 포맷:
        - 2024-01-15T10:30:00Z
        - 2024-01-15T10:30:00+09:00
        - 2024-01-15T10:30:00.123456Z
        - 2024-01-15T10:30:00 (UTC로 간주)
        """
        try:
            if not iso_string:
                raise ValueError("빈 문자열은 파싱할 수 없습니다")

            if iso_string.endswith('Z'):
                iso_string = iso_string[:-1] + '+00:00'

            dt = dateutil_parser.isoparse(iso_string)
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            return dt.astimezone(timezone.utc)

        except Exception as e:
            logger.error(f"ISO datetime 파싱 실패: {iso_string} - {e}")
            raise ValueError(f"잘못된 ISO 날짜 형식입니다: {iso_string}")

    @staticmethod
    def to_utc_datetime(value: Any) -> datetime:
        """
        저장소에서 읽은 시각 값을 UTC datetime으로 변환

        - datetime (Firestore DatetimeWithNanoseconds 포함)
        - date -> 00:00:00 UTC
        - ISO 문자열
        - Unix timestamp (밀리초)
        """
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=timezone.utc)
            return value.astimezone(timezone.utc)
        if isinstance(value, date):
            return datetime.combine(value, time.min).replace(tzinfo=timezone.utc)
        if isinstance(value, str):
            return DateTimeUtils.parse_iso_datetime(value)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        raise ValueError(f"datetime으로 변환할 수 없는 값입니다: {value!r}")

    @staticmethod
    def to_iso_string(dt: datetime) -> str:
        """datetime 객체를 Z 접미사의 ISO 문자열로 변환"""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        else:
            dt = dt.astimezone(timezone.utc)
        return dt.isoformat().replace('+00:00', 'Z')

    @staticmethod
    def for_firestore(obj: Any) -> Any:
        """
        Firestore 저장을 위해 객체의 날짜/시간 필드를 변환

        - date -> datetime (00:00:00 UTC)
        - timezone-naive datetime -> UTC
        - dict/list 내부 재귀 변환
        """
        if isinstance(obj, datetime):
            if obj.tzinfo is None:
                return obj.replace(tzinfo=timezone.utc)
            return obj.astimezone(timezone.utc)
        if isinstance(obj, date):
            return datetime.combine(obj, time.min).replace(tzinfo=timezone.utc)
        if isinstance(obj, dict):
            return {k: DateTimeUtils.for_firestore(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [DateTimeUtils.for_firestore(item) for item in obj]
        return obj

    @staticmethod
    def to_json_safe(obj: Any) -> Any:
        """응답 직렬화를 위해 datetime을 ISO 문자열로 바꿉니다 (dict/list 재귀)."""
        if isinstance(obj, datetime):
            return DateTimeUtils.to_iso_string(obj)
        if isinstance(obj, date):
            return obj.isoformat()
        if isinstance(obj, dict):
            return {k: DateTimeUtils.to_json_safe(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [DateTimeUtils.to_json_safe(item) for item in obj]
        return obj

    @staticmethod
    def day_bounds(d: date) -> Tuple[datetime, datetime]:
        """하루의 시작(포함)과 다음 날 시작(제외)을 UTC로 반환"""
        start = datetime.combine(d, time.min).replace(tzinfo=timezone.utc)
        return start, start + timedelta(days=1)

    @staticmethod
    def trailing_days(as_of: date, days: int) -> List[date]:
        """as_of를 포함해 과거로 days일 (최신 날짜가 먼저)"""
        return [as_of - timedelta(days=offset) for offset in range(days)]

    @staticmethod
    def calendar_days_between(later: Union[date, datetime], earlier: Union[date, datetime]) -> int:
        """두 시점 사이의 달력 기준 일 수 (later - earlier)"""
        if isinstance(later, datetime):
            later = later.astimezone(timezone.utc).date() if later.tzinfo else later.date()
        if isinstance(earlier, datetime):
            earlier = earlier.astimezone(timezone.utc).date() if earlier.tzinfo else earlier.date()
        return (later - earlier).days
