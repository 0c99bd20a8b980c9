from datetime import date, datetime
from typing import Iterator, Optional, Tuple, Union


MONTH_NAMES = (
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
)
MONTH_ORDER = {name: index for index, name in enumerate(MONTH_NAMES, start=1)}
UNASSIGNED_MONTH = "Sin mes asignado"

DateLike = Union[date, datetime]


def month_label(value: DateLike) -> str:
    """``date(2025, 1, 15)`` -> ``"enero 2025"``."""
    return f"{MONTH_NAMES[value.month - 1]} {value.year}"


def parse_month_label(label: Optional[str]) -> Optional[Tuple[int, int]]:
    """Return ``(year, month)``; a bare month name gets year 0."""
    if not label:
        return None
    parts = label.strip().lower().split()
    if not parts:
        return None
    month = MONTH_ORDER.get(parts[0])
    if month is None:
        return None
    year = 0
    if len(parts) > 1:
        try:
            year = int(parts[1])
        except ValueError:
            return None
    return year, month


def month_sort_key(label: Optional[str]) -> Tuple[int, int, int, str]:
    parsed = parse_month_label(label)
    if parsed is None:
        return (1, 0, 0, label or "")
    year, month = parsed
    return (0, year, month, label or "")


def months_between(start: DateLike, end: DateLike) -> Iterator[str]:
    """Yield one label per calendar month from ``start`` to ``end`` inclusive."""
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        yield f"{MONTH_NAMES[month - 1]} {year}"
        month += 1
        if month > 12:
            month = 1
            year += 1
