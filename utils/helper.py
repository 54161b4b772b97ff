import re
from datetime import date
from typing import Optional, Tuple

TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")

THAI_MONTHS = ["ม.ค.", "ก.พ.", "มี.ค.", "เม.ย.", "พ.ค.", "มิ.ย.",
               "ก.ค.", "ส.ค.", "ก.ย.", "ต.ค.", "พ.ย.", "ธ.ค."]

# indexed by date.weekday(), Monday first
THAI_DAYS = ["วันจันทร์", "วันอังคาร", "วันพุธ", "วันพฤหัสบดี",
             "วันศุกร์", "วันเสาร์", "วันอาทิตย์"]


def is_valid_time(value: str) -> bool:
    match = TIME_PATTERN.match(value)
    return bool(match) and int(match.group(1)) < 24 and int(match.group(2)) < 60


def split_time(value: str) -> Tuple[int, int]:
    match = TIME_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time value: {value!r}")
    return int(match.group(1)), int(match.group(2))


def normalize_time(value: str) -> str:
    """Zero-pad to HH:MM so string order equals chronological order."""
    hours, minutes = split_time(value)
    return f"{hours:02d}:{minutes:02d}"


def time_to_minutes(value: str) -> int:
    hours, minutes = split_time(value)
    return hours * 60 + minutes


def parse_log_date(date_str: str) -> Optional[date]:
    parts = date_str.split("/")
    if len(parts) != 3:
        return None
    try:
        return date(int(parts[0]), int(parts[1]), int(parts[2]))
    except ValueError:
        return None


def date_sort_key(date_str: str) -> Tuple:
    parsed = parse_log_date(date_str)
    if parsed is None:
        return (1, date_str)
    return (0, parsed.isoformat())


def format_thai_date(date_str: str) -> str:
    parts = date_str.split("/")
    if len(parts) != 3:
        return date_str
    try:
        month = int(parts[1])
        day = int(parts[2])
    except ValueError:
        return date_str
    if not 1 <= month <= 12:
        return date_str
    return f"{day} {THAI_MONTHS[month - 1]} {parts[0]}"


def thai_day_name(date_str: str) -> str:
    parsed = parse_log_date(date_str)
    if parsed is None:
        return ""
    return THAI_DAYS[parsed.weekday()]


def format_ot(minutes: int) -> str:
    if minutes <= 0:
        return "-"
    hours, mins = divmod(minutes, 60)
    if hours > 0 and mins > 0:
        return f"{hours} ชม. {mins} น."
    if hours > 0:
        return f"{hours} ชม."
    return f"{mins} น."
