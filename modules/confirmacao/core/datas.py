# datas.py
# O banco grava horários como "2026-01-20 18:00:00+00". Apesar do "+00", o valor
# é o horário LOCAL da clínica. Nunca converter com fuso: só extração textual.

from __future__ import annotations
import re
from datetime import date, timedelta
from typing import Optional, Tuple

_DATE_RE = re.compile(r"(\d{4}-\d{2}-\d{2})")
_TIME_RE = re.compile(r"(\d{2}):(\d{2})")


def extract_date_time(scheduled_at: Optional[str]) -> Tuple[str, str]:
    """Retorna (YYYY-MM-DD, HH:MM) lidos diretamente do texto."""
    if not scheduled_at:
        return "", "00:00"
    date_match = _DATE_RE.search(scheduled_at)
    time_match = _TIME_RE.search(scheduled_at)
    return (
        date_match.group(1) if date_match else "",
        f"{time_match.group(1)}:{time_match.group(2)}" if time_match else "00:00",
    )


def date_key(scheduled_at: Optional[str]) -> str:
    return extract_date_time(scheduled_at)[0]


def time_key(scheduled_at: Optional[str]) -> str:
    return extract_date_time(scheduled_at)[1]


def sort_key(scheduled_at: Optional[str]) -> str:
    day, hour = extract_date_time(scheduled_at)
    return f"{day}T{hour}"


def format_date_key_br(key: str) -> str:
    if not key:
        return "N/A"
    parts = key.split("-")
    if len(parts) != 3 or not all(parts):
        return "N/A"
    y, m, d = parts
    return f"{d}/{m}/{y}"


def format_display(scheduled_at: Optional[str], include_time: bool = True) -> str:
    day, hour = extract_date_time(scheduled_at)
    if not day:
        return "N/A"
    formatted = format_date_key_br(day)
    return f"{formatted} {hour}" if include_time else formatted


def to_stored_scheduled_at(day: str, hour: str) -> str:
    """Formato gravado no banco: 'YYYY-MM-DD HH:MM:00+00'."""
    return f"{day} {hour}:00+00"


def add_days(key: str, days: int) -> str:
    return (date.fromisoformat(key) + timedelta(days=days)).isoformat()
