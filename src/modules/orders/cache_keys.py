"""Deterministic cache keys for the order read paths."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

ORDER_LIST_PATTERNS = ("orders:*", "user:*:orders:*")


def order_key(order_id: str) -> str:
    return f"order:{order_id}"


def user_orders_key(user_id: str, page: int, limit: int) -> str:
    return f"user:{user_id}:orders:page:{page}:limit:{limit}"


def status_orders_key(status: str, page: int, limit: int) -> str:
    return f"orders:status:{status}:page:{page}:limit:{limit}"


def summary_key(start: Optional[datetime], end: Optional[datetime]) -> str:
    start_part = start.isoformat() if start else "all"
    end_part = end.isoformat() if end else "all"
    return f"orders:summary:{start_part}:{end_part}"
