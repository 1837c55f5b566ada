from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Integer
from sqlalchemy.dialects import mysql
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator


# BIGINT UNSIGNED on MySQL; SQLite only autoincrements INTEGER PRIMARY KEY
BigIntId = mysql.BIGINT(unsigned=True).with_variant(Integer(), "sqlite")


def utcnow() -> datetime:
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


class UTCDateTime(TypeDecorator[datetime]):
    """Millisecond datetime column that always round-trips as aware UTC."""

    impl = mysql.DATETIME(fsp=3)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    pass


__all__ = ["Base", "BigIntId", "UTCDateTime", "utcnow"]
