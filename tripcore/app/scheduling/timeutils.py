"""Wall-clock time arithmetic for itinerary scheduling.

Times travel through the system as strings. The canonical form is 24-hour
``HH:MM``; catalog sources sometimes send ``HH:MM:SS`` and the display layer
uses ``h:MM AM/PM``. Everything here is pure.
"""

MINUTES_PER_DAY = 24 * 60


class MalformedTimeError(ValueError):
    """Time string could not be parsed as a wall-clock time."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Malformed time: {value!r}")
        self.value = value


def _parse_int(part: str, value: object) -> int:
    if not part.isdigit() or len(part) > 2:
        raise MalformedTimeError(value)
    return int(part)


def to_minutes(time: str) -> int:
    """Convert a clock time to minutes after midnight.

    Accepts ``HH:MM``, ``HH:MM:SS`` (seconds ignored) and the display form
    ``h:MM AM/PM``.

    Raises:
        MalformedTimeError: If the value is not a valid clock time
    """
    if not isinstance(time, str):
        raise MalformedTimeError(time)

    text = time.strip()
    meridiem: str | None = None
    upper = text.upper()
    if upper.endswith(("AM", "PM")):
        meridiem = upper[-2:]
        text = text[:-2].rstrip()

    parts = text.split(":")
    if len(parts) not in (2, 3):
        raise MalformedTimeError(time)

    hours = _parse_int(parts[0], time)
    minutes = _parse_int(parts[1], time)
    if len(parts) == 3:
        seconds = _parse_int(parts[2], time)
        if seconds > 59:
            raise MalformedTimeError(time)

    if minutes > 59:
        raise MalformedTimeError(time)

    if meridiem is None:
        if hours > 23:
            raise MalformedTimeError(time)
    else:
        if not 1 <= hours <= 12:
            raise MalformedTimeError(time)
        hours = hours % 12
        if meridiem == "PM":
            hours += 12

    return hours * 60 + minutes


def from_minutes(minutes: int) -> str:
    """Convert minutes after midnight back to ``HH:MM``."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"minutes must be within one day, got {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time(value: str) -> str:
    """Return the canonical ``HH:MM`` form, dropping any seconds component."""
    return from_minutes(to_minutes(value))


def format_for_display(time: str) -> str:
    """Format a clock time as ``h:MM AM/PM``.

    Total: values already in 12-hour form, or values that cannot be parsed,
    are returned unchanged.
    """
    text = str(time).strip()
    if "AM" in text.upper() or "PM" in text.upper():
        return text
    try:
        total = to_minutes(text)
    except MalformedTimeError:
        return text

    hours, minutes = divmod(total, 60)
    ampm = "PM" if hours >= 12 else "AM"
    display_hour = hours % 12 or 12
    return f"{display_hour}:{minutes:02d} {ampm}"


def format_time_range(start: str, end: str) -> str:
    """Format a start/end pair, e.g. ``9:00 AM - 10:30 AM``."""
    return f"{format_for_display(start)} - {format_for_display(end)}"


def duration_minutes(start: str, end: str) -> int:
    """Minutes from start to end. Negative when end precedes start."""
    return to_minutes(end) - to_minutes(start)


def format_duration(minutes: int) -> str:
    """Human duration: ``45 min``, ``4 hr``, ``1 hr 20 min``."""
    hours, mins = divmod(abs(minutes), 60)
    if hours == 0:
        return f"{mins} min"
    if mins == 0:
        return f"{hours} hr"
    return f"{hours} hr {mins} min"
