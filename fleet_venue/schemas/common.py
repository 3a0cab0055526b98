from datetime import datetime, time, timezone
from typing import Any

from pydantic import BaseModel


# ─── Envelope ─────────────────────────────────────────────────────────────────
class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int
    hasNext: bool
    hasPrev: bool


class SuccessResponse(BaseModel):
    success: bool = True
    message: str
    data: Any = None
    warnings: list[str] | None = None


def success_response(message: str, data: Any = None, warnings: list[str] | None = None) -> dict:
    """Standard success envelope. ``warnings`` only appears when non-empty."""
    body = {"success": True, "message": message, "data": data}
    if warnings:
        body["warnings"] = warnings
    return body


def paginated_response(message: str, data: list, total: int, page: int, limit: int) -> dict:
    total_pages = (total + limit - 1) // limit if limit > 0 else 0
    return {
        "success": True,
        "message": message,
        "data": data,
        "meta": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": total_pages,
            "hasNext": page < total_pages,
            "hasPrev": page > 1,
        }
    }


# ─── Shared field helpers ─────────────────────────────────────────────────────
def required_text(v: str, label: str) -> str:
    if v is None or not v.strip():
        raise ValueError(f"{label} cannot be empty")
    return v.strip()


def optional_text(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    return v or None


def split_csv(v: str | None) -> list[str] | None:
    """``"PENDING, active"`` -> ``["PENDING", "ACTIVE"]``; blank -> None."""
    if not v:
        return None
    items = [p.strip().upper() for p in v.split(",") if p.strip()]
    return items or None


def to_naive_utc(v: datetime | None) -> datetime | None:
    """Booking windows are stored as naive UTC."""
    if v is None or v.tzinfo is None:
        return v
    return v.astimezone(timezone.utc).replace(tzinfo=None)


def parse_clock(v) -> time:
    """Accept ``HH:MM`` or ``HH:MM:SS`` (and time objects)."""
    if isinstance(v, time):
        return v.replace(microsecond=0, tzinfo=None)
    if not isinstance(v, str):
        raise ValueError("Time must be a string in HH:MM or HH:MM:SS format")
    parts = v.strip().split(":")
    if len(parts) == 2:
        parts.append("00")
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        raise ValueError("Time must be in HH:MM or HH:MM:SS format")
    hh, mm, ss = (int(p) for p in parts)
    if not (0 <= hh < 24 and 0 <= mm < 60 and 0 <= ss < 60):
        raise ValueError("Time out of range")
    return time(hh, mm, ss)
