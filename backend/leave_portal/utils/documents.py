from fastapi import HTTPException
from bson import ObjectId
from datetime import datetime, date


def parse_object_id(value: str, label: str = "resource") -> ObjectId:
    if not ObjectId.is_valid(value):
        raise HTTPException(400, f"Invalid {label} ID")
    return ObjectId(value)


def with_str_id(doc: dict) -> dict:
    """Copy of a Mongo document whose ``_id`` is a string, ready for the ``*Out`` schemas."""
    out = dict(doc)
    out["_id"] = str(out["_id"])
    return out


def to_datetime(value: date) -> datetime:
    """BSON has no date type; calendar dates are stored as midnight datetimes."""
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def parse_calendar_date(value: str) -> datetime:
    return datetime.strptime(value, "%Y-%m-%d")


def months_ago(now: datetime, months: int) -> datetime:
    """``now`` shifted back by whole calendar months, day clamped to the target month."""
    month_index = now.year * 12 + (now.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    if month == 12:
        next_month = datetime(year + 1, 1, 1)
    else:
        next_month = datetime(year, month + 1, 1)
    last_day = (next_month - datetime(year, month, 1)).days
    return now.replace(year=year, month=month, day=min(now.day, last_day))
