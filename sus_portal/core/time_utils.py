from datetime import date, datetime

DATE_FORMAT = "%d/%m/%Y"
TIME_FORMAT = "%H:%M"

# Indexed by date.weekday(): Monday is 0
WEEKDAY_NAMES = (
    "Segunda-feira",
    "Terça-feira",
    "Quarta-feira",
    "Quinta-feira",
    "Sexta-feira",
    "Sábado",
    "Domingo",
)


def now_local() -> datetime:
    """Return the naive local wall-clock time the portal schedules against."""
    return datetime.now()


def parse_date(value: str) -> date:
    """Parse a DD/MM/YYYY string. Raises ValueError on malformed input."""
    return datetime.strptime(value.strip(), DATE_FORMAT).date()


def parse_time(value: str) -> int:
    """Parse an HH:mm string into minutes since midnight."""
    parsed = datetime.strptime(value.strip(), TIME_FORMAT)
    return parsed.hour * 60 + parsed.minute


def normalize_date(value: str) -> str:
    """Canonical zero-padded DD/MM/YYYY form of a date, so 1/7/2025 equals 01/07/2025."""
    return parse_date(value).strftime(DATE_FORMAT)


def normalize_time(value: str) -> str:
    """Canonical zero-padded HH:mm form of a time."""
    return datetime.strptime(value.strip(), TIME_FORMAT).strftime(TIME_FORMAT)


def combine(date_str: str, time_str: str) -> datetime:
    """Compose a DD/MM/YYYY date and an HH:mm time into one instant."""
    return datetime.strptime(f"{date_str.strip()} {time_str.strip()}", f"{DATE_FORMAT} {TIME_FORMAT}")


def weekday_name(value: date) -> str:
    return WEEKDAY_NAMES[value.weekday()]


def format_time_range(start_time: str, end_time: str) -> str:
    return f"{start_time} - {end_time}"


def overlaps(start1: int, end1: int, start2: int, end2: int) -> bool:
    # Half-open intervals: touching endpoints do not overlap
    return start1 < end2 and start2 < end1
