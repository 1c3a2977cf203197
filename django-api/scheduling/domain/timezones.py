"""Timezone resolution and display.

Every other module consumes aware instants; this is the only place that
knows how a wall-clock slot maps onto a zone.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from scheduling.domain.errors import TimezoneResolutionFailure
from scheduling.domain.models import WeeklyScheduleSlot

logger = logging.getLogger(__name__)

FALLBACK_TIMEZONE = "UTC"

COMMON_TIMEZONES = (
    "America/New_York",
    "America/Chicago",
    "America/Denver",
    "America/Los_Angeles",
    "America/Phoenix",
    "America/Anchorage",
    "Pacific/Honolulu",
    "Europe/London",
    "Europe/Paris",
    "Europe/Berlin",
    "Asia/Tokyo",
    "Asia/Shanghai",
    "Asia/Kolkata",
    "Australia/Sydney",
    "America/Toronto",
    "America/Vancouver",
)


@dataclass(frozen=True)
class ResolvedTimezone:
    """A timezone name plus whether it is a fallback the user must confirm."""

    name: str
    fallback: bool = False


@dataclass(frozen=True)
class TimezoneInfo:
    name: str
    abbreviation: str
    offset: str
    display_name: str


def get_zone(name: str | None) -> ZoneInfo:
    """Return the ZoneInfo for ``name``.

    Raises:
        TimezoneResolutionFailure: If the name is empty or not an IANA zone.
    """
    if not name:
        raise TimezoneResolutionFailure(name)
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise TimezoneResolutionFailure(name) from exc


def resolve_local_timezone(*candidates: str | None) -> ResolvedTimezone:
    """Return the first resolvable candidate, falling back to UTC.

    Candidates are tried in order (for example an explicit request field,
    then the browser's ``X-Timezone`` header). Never raises.
    """
    for candidate in candidates:
        try:
            zone = get_zone(candidate)
        except TimezoneResolutionFailure as exc:
            if candidate:
                logger.warning("Ignoring unresolvable timezone %r: %s", candidate, exc)
            continue
        return ResolvedTimezone(name=zone.key)
    logger.warning("No usable timezone among %r, falling back to %s", candidates, FALLBACK_TIMEZONE)
    return ResolvedTimezone(name=FALLBACK_TIMEZONE, fallback=True)


def _reference_datetime(time_of_day: time, zone: ZoneInfo, on: date | None) -> datetime:
    day = on or datetime.now(zone).date()
    return datetime.combine(day, time_of_day, tzinfo=zone)


def zone_abbreviation(name: str, on: date | None = None) -> str:
    """Short label such as ``EST`` or ``EDT`` for the zone on a given date."""
    zone = get_zone(name)
    return _reference_datetime(time(12, 0), zone, on).strftime("%Z")


def timezone_info(name: str, on: date | None = None) -> TimezoneInfo:
    zone = get_zone(name)
    moment = _reference_datetime(time(12, 0), zone, on)
    offset = moment.utcoffset() or timedelta(0)
    total_minutes = int(offset.total_seconds() // 60)
    sign = "+" if total_minutes >= 0 else "-"
    hours, minutes = divmod(abs(total_minutes), 60)
    abbreviation = moment.strftime("%Z")
    city = name.split("/")[-1].replace("_", " ")
    return TimezoneInfo(
        name=name,
        abbreviation=abbreviation,
        offset=f"GMT{sign}{hours:02d}:{minutes:02d}",
        display_name=f"{city} ({abbreviation})",
    )


def timezone_options(on: date | None = None) -> list[TimezoneInfo]:
    return [timezone_info(name, on) for name in COMMON_TIMEZONES]


def _twelve_hour(hour: int, minute: int) -> str:
    suffix = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12}:{minute:02d} {suffix}"


def format_slot(
    time_of_day: time,
    timezone: str,
    with_zone_label: bool = True,
    on: date | None = None,
) -> str:
    """Render ``14:00`` as ``2:00 PM`` or ``2:00 PM EST``."""
    text = _twelve_hour(time_of_day.hour, time_of_day.minute)
    if not with_zone_label:
        return text
    zone = get_zone(timezone)
    label = _reference_datetime(time_of_day, zone, on).strftime("%Z")
    return f"{text} {label}"


def format_instant(instant: datetime, timezone: str) -> str:
    """Render an aware instant in the given zone, e.g. ``Mar 5, 2024 at 2:00 PM EST``."""
    local = instant.astimezone(get_zone(timezone))
    clock = _twelve_hour(local.hour, local.minute)
    return f"{local:%b} {local.day}, {local.year} at {clock} {local:%Z}"


def _weekly_position(slot: WeeklyScheduleSlot, on: date) -> datetime:
    """UTC instant of the slot within the Sunday-started week containing ``on``."""
    zone = get_zone(slot.timezone)
    week_start = on - timedelta(days=(on.weekday() + 1) % 7)
    local_day = week_start + timedelta(days=slot.day_of_week)
    return datetime.combine(local_day, slot.time_of_day, tzinfo=zone).astimezone(ZoneInfo("UTC"))


def weekly_offset(slot: WeeklyScheduleSlot, on: date | None = None) -> int:
    """Seconds from Sunday 00:00 UTC to the slot, for the week containing ``on``.

    Slots in different zones land on the same offset only when they name the
    same absolute moment of the week.
    """
    reference = on or date.today()
    position = _weekly_position(slot, reference)
    since_sunday = (position.weekday() + 1) % 7
    return since_sunday * 86400 + position.hour * 3600 + position.minute * 60 + position.second


def same_weekly_position(
    slot_a: WeeklyScheduleSlot, slot_b: WeeklyScheduleSlot, on: date | None = None
) -> bool:
    return weekly_offset(slot_a, on) == weekly_offset(slot_b, on)


def describe_conflict(
    slot_a: WeeklyScheduleSlot, slot_b: WeeklyScheduleSlot, on: date | None = None
) -> str | None:
    """Human-readable message when two slots collide, else None."""
    if slot_a.id == slot_b.id or not same_weekly_position(slot_a, slot_b, on):
        return None
    when = format_slot(slot_a.time_of_day, slot_a.timezone, with_zone_label=True, on=on)
    return f"You have more than one session on {slot_a.day_name} at {when}"
