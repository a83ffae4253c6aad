# blog_app/utils/datetime_utils.py
"""
프로젝트 전체에서 일관된 시간/날짜 처리를 위한 중앙화된 유틸리티 모듈

이 모듈의 목적:
1. 모든 시간 값을 timezone-aware UTC datetime으로 통일
2. Firestore에 저장된 서로 다른 형태의 timestamp를 하나의 타입으로 변환
3. 변환 실패 시 예외 대신 현재 시간으로 대체하고 경고 로그를 남김
"""

import logging
from dataclasses import dataclass
from datetime import datetime, date, timezone, time
from typing import Any, Mapping, Optional, Union
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)


# =====================================================================================
# Timestamp 표현 형태 (tagged variant)
# =====================================================================================
@dataclass(frozen=True)
class NativeTimestamp:
    """이미 datetime/date 객체인 값 (Firestore의 DatetimeWithNanoseconds 포함)."""
    value: Union[datetime, date]

@dataclass(frozen=True)
class SecondsNanosTimestamp:
    """seconds/nanoseconds 쌍으로 표현된 값 (JS SDK Timestamp, protobuf Timestamp, 직렬화된 map)."""
    seconds: Any
    nanoseconds: Any = 0

@dataclass(frozen=True)
class RawTimestamp:
    """문자열 또는 숫자(epoch 밀리초) 등 그 밖의 모든 값."""
    value: Any

TimestampVariant = Union[NativeTimestamp, SecondsNanosTimestamp, RawTimestamp]


class DateTimeUtils:
    """시간/날짜 처리를 위한 중앙화된 유틸리티 클래스"""

    @staticmethod
    def now() -> datetime:
        """현재 시간을 UTC timezone-aware datetime으로 반환"""
        return datetime.now(timezone.utc)

    @staticmethod
    def to_utc(dt: Union[datetime, date]) -> datetime:
        """
        datetime/date를 UTC timezone-aware datetime으로 정규화

        - date -> 해당 날짜 00:00:00 UTC
        - timezone-naive datetime -> UTC로 간주
        """
        if not isinstance(dt, datetime):
            return datetime.combine(dt, time.min).replace(tzinfo=timezone.utc)
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    @staticmethod
    def to_iso_string(dt: datetime) -> str:
        """datetime 객체를 ISO 포맷 문자열로 변환 (Z 접미사 포함)"""
        return DateTimeUtils.to_utc(dt).isoformat().replace('+00:00', 'Z')

    @staticmethod
    def parse_datetime_string(value: str) -> datetime:
        """
        날짜 문자열을 UTC datetime으로 파싱

        지원 포맷 예:
        - 2024-01-15T10:30:00Z
        - 2024-01-15T10:30:00.123+09:00
        - 2024-01-15
        - Mon Jan 15 2024 10:30:00
        """
        if not value or not value.strip():
            raise ValueError("빈 문자열은 파싱할 수 없습니다")
        try:
            dt = dateutil_parser.isoparse(value.strip())
        except ValueError:
            # ISO 형식이 아니면 dateutil의 일반 파서로 재시도
            dt = dateutil_parser.parse(value.strip())
        return DateTimeUtils.to_utc(dt)

    @staticmethod
    def from_timestamp_ms(timestamp_ms: Union[int, float]) -> datetime:
        """Unix timestamp (밀리초)를 UTC datetime 객체로 변환"""
        if isinstance(timestamp_ms, bool) or not isinstance(timestamp_ms, (int, float)):
            raise ValueError("timestamp_ms는 숫자여야 합니다")
        return datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc)

    @staticmethod
    def to_timestamp_ms(dt: datetime) -> int:
        """datetime 객체를 Unix timestamp (밀리초)로 변환"""
        return int(DateTimeUtils.to_utc(dt).timestamp() * 1000)

    # ---------------------------------------------------------------------------------
    # Firestore timestamp 분류 및 변환
    # ---------------------------------------------------------------------------------
    @staticmethod
    def classify_timestamp(raw: Any) -> TimestampVariant:
        """저장된 timestamp 값이 어떤 표현 형태인지 판별합니다."""
        if isinstance(raw, (datetime, date)):
            return NativeTimestamp(raw)

        if isinstance(raw, Mapping):
            seconds = raw.get('seconds', raw.get('_seconds'))
            if seconds is not None:
                nanos = raw.get('nanoseconds', raw.get('_nanoseconds', 0))
                return SecondsNanosTimestamp(seconds, nanos or 0)
            return RawTimestamp(raw)

        if hasattr(raw, 'seconds') and (hasattr(raw, 'nanoseconds') or hasattr(raw, 'nanos')):
            nanos = getattr(raw, 'nanoseconds', None)
            if nanos is None:
                nanos = getattr(raw, 'nanos', 0)
            return SecondsNanosTimestamp(raw.seconds, nanos or 0)

        return RawTimestamp(raw)

    @staticmethod
    def coerce_native(variant: NativeTimestamp) -> datetime:
        return DateTimeUtils.to_utc(variant.value)

    @staticmethod
    def coerce_seconds_nanos(variant: SecondsNanosTimestamp) -> datetime:
        """seconds/nanoseconds -> epoch 밀리초 -> datetime"""
        seconds = float(variant.seconds)
        nanoseconds = float(variant.nanoseconds or 0)
        timestamp_ms = seconds * 1000 + nanoseconds / 1_000_000
        return DateTimeUtils.from_timestamp_ms(timestamp_ms)

    @staticmethod
    def coerce_raw(variant: RawTimestamp) -> datetime:
        """문자열은 날짜로 파싱하고, 숫자는 epoch 밀리초로 해석합니다."""
        value = variant.value
        if isinstance(value, str):
            return DateTimeUtils.parse_datetime_string(value)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return DateTimeUtils.from_timestamp_ms(value)
        raise ValueError(f"지원하지 않는 timestamp 형식입니다: {type(value).__name__}")

    @staticmethod
    def coerce_timestamp(raw: Any, record_id: Optional[str] = None) -> datetime:
        """
        Firestore 문서의 timestamp 필드를 UTC datetime으로 변환합니다.

        변환 순서:
        1. datetime/date -> 그대로 사용 (UTC 정규화)
        2. seconds/nanoseconds 객체 -> 밀리초로 환산
        3. 문자열/숫자 -> 직접 파싱
        4. 그 외, 또는 파싱 실패 -> 현재 시간으로 대체하고 경고 로그

        이 함수는 예외를 발생시키지 않습니다.
        """
        if raw is None:
            logger.warning(f"문서 {record_id}의 timestamp가 없습니다. 현재 시간으로 대체합니다.")
            return DateTimeUtils.now()

        variant = DateTimeUtils.classify_timestamp(raw)
        try:
            if isinstance(variant, NativeTimestamp):
                return DateTimeUtils.coerce_native(variant)
            if isinstance(variant, SecondsNanosTimestamp):
                return DateTimeUtils.coerce_seconds_nanos(variant)
            return DateTimeUtils.coerce_raw(variant)
        except Exception as e:
            logger.warning(f"문서 {record_id}의 timestamp를 해석할 수 없습니다 ({raw!r}). 현재 시간으로 대체합니다. Error: {e}")
            return DateTimeUtils.now()


# 편의를 위한 글로벌 함수들
def now() -> datetime:
    """현재 UTC 시간 반환"""
    return DateTimeUtils.now()

def to_iso(dt: datetime) -> str:
    """datetime을 ISO 문자열로 변환"""
    return DateTimeUtils.to_iso_string(dt)

def coerce_timestamp(raw: Any, record_id: Optional[str] = None) -> datetime:
    """저장된 timestamp를 UTC datetime으로 변환"""
    return DateTimeUtils.coerce_timestamp(raw, record_id)
