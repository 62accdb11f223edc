"""
Utilidades de tiempo: horas "HH:mm" como minutos desde medianoche
y mapeo de fechas a días de la semana.
"""

import re
from datetime import date

from app.models.working_hours import DayOfWeek

TIME_PATTERN = r"([01]\d|2[0-3]):[0-5]\d"
_TIME_RE = re.compile(TIME_PATTERN)

MINUTES_PER_DAY = 24 * 60

# Índice fijo domingo-primero, igual que la enumeración de días
WEEK_DAYS: tuple[DayOfWeek, ...] = (
    DayOfWeek.SUNDAY,
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
    DayOfWeek.SATURDAY,
)


def is_valid_time(value: str | None) -> bool:
    return bool(value) and _TIME_RE.fullmatch(value) is not None


def parse_time(value: str) -> int:
    """Convierte "HH:mm" a minutos en [0, 1439]."""
    if not is_valid_time(value):
        raise ValueError(f"Hora inválida: {value!r}, se espera HH:mm")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_time(minutes: int) -> str:
    """Convierte minutos desde medianoche a "HH:mm" con ceros a la izquierda."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"Minutos fuera de rango: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def day_of_week(value: date) -> DayOfWeek:
    # isoweekday(): lunes=1 … domingo=7
    return WEEK_DAYS[value.isoweekday() % 7]


def day_index(day: DayOfWeek) -> int:
    return WEEK_DAYS.index(day)


def intervals_overlap(start: int, end: int, other_start: int, other_end: int) -> bool:
    """
    Solapamiento de [start, end) con [other_start, other_end):
    empieza dentro, termina dentro o lo abarca por completo.
    """
    return (
        (other_start <= start < other_end)
        or (other_start < end <= other_end)
        or (start < other_start and end > other_end)
    )
