"""
Recurrence Engine.

Expands an RFC-5545 RRULE anchored at an instant into a bounded,
ascending list of future occurrences, and describes rules for display.

dateutil only checks UNTIL once a candidate matches, so a rule whose
filters stop matching is searched up to datetime.MAXYEAR. Expansion
therefore runs on a copy of the calendar moved as close to MAXYEAR as
possible. The Gregorian calendar repeats (every 400 years exactly, every
28 years between skipped leap days), so an offset that keeps each year's
weekday and leap status yields the same occurrences, and the search past
the horizon shrinks to a few decades.
"""

from calendar import isleap
from dataclasses import dataclass
from datetime import MAXYEAR, MINYEAR, UTC, date, datetime

from dateutil.parser import parse as parse_datetime
from dateutil.relativedelta import relativedelta
from dateutil.rrule import rrule, rrulestr

from src.config import get_logger
from src.core.entities.reminder import Reminder, ensure_utc
from src.core.exceptions import InvalidRuleError

logger = get_logger(__name__)

DEFAULT_LOOKAHEAD_YEARS = 2

# Exceptions dateutil raises for malformed rule text
_PARSE_ERRORS = (ValueError, TypeError, KeyError, IndexError, OverflowError)


@dataclass(frozen=True)
class RecurrencePreset:
    """A named rule offered for quick selection."""

    label: str
    value: str | None
    description: str


RECURRENCE_PRESETS: list[RecurrencePreset] = [
    RecurrencePreset("One-time", None, "Does not repeat"),
    RecurrencePreset("Daily", "FREQ=DAILY;INTERVAL=1", "Every day"),
    RecurrencePreset("Weekdays", "FREQ=WEEKLY;BYDAY=MO,TU,WE,TH,FR", "Monday through Friday"),
    RecurrencePreset("Weekly", "FREQ=WEEKLY;INTERVAL=1", "Once a week"),
    RecurrencePreset("Biweekly", "FREQ=WEEKLY;INTERVAL=2", "Every two weeks"),
    RecurrencePreset("Monthly", "FREQ=MONTHLY;INTERVAL=1", "Once a month"),
    RecurrencePreset("Yearly", "FREQ=YEARLY;INTERVAL=1", "Once a year"),
]

_FREQ_UNITS = {
    "YEARLY": "year",
    "MONTHLY": "month",
    "WEEKLY": "week",
    "DAILY": "day",
    "HOURLY": "hour",
    "MINUTELY": "minute",
    "SECONDLY": "second",
}

_DAY_NAMES = {
    "MO": "Mon",
    "TU": "Tue",
    "WE": "Wed",
    "TH": "Thu",
    "FR": "Fri",
    "SA": "Sat",
    "SU": "Sun",
}

_ORDINALS = {1: "first", 2: "second", 3: "third", 4: "fourth", 5: "fifth", -1: "last"}


def _rule_body(rule: str) -> str:
    body = rule.strip()
    if body.upper().startswith("RRULE:"):
        body = body[len("RRULE:"):]
    return body.strip()


def _rule_parts(body: str) -> dict[str, str]:
    parts = {}
    for item in body.split(";"):
        if "=" in item:
            key, value = item.split("=", 1)
            parts[key.strip().upper()] = value.strip().upper()
    return parts


def _same_calendar(year: int, other: int) -> bool:
    return isleap(year) == isleap(other) and date(year, 1, 1).weekday() == date(other, 1, 1).weekday()


def calendar_shift(first_year: int, last_year: int) -> int:
    """
    Largest year offset mapping first_year..last_year onto years with an
    identical calendar, keeping last_year + offset <= MAXYEAR.

    Returns 0 when there is none.
    """
    first_year = max(first_year, MINYEAR)
    for shift in range(MAXYEAR - last_year, 0, -1):
        if all(_same_calendar(year, year + shift) for year in range(first_year, last_year + 1)):
            return shift
    return 0


def _add_years(value: datetime, years: int) -> datetime:
    return value.replace(year=value.year + years) if years else value


class RecurrenceEngine:
    """
    Expands recurrence rules over a finite horizon.

    Every expansion is capped at `lookahead_years` after the reference
    instant, since rules such as FREQ=YEARLY never terminate on their own.
    """

    def __init__(self, lookahead_years: int = DEFAULT_LOOKAHEAD_YEARS) -> None:
        self._lookahead_years = lookahead_years

    @property
    def lookahead_years(self) -> int:
        return self._lookahead_years

    def horizon(self, reference: datetime) -> datetime:
        """Last instant (inclusive) considered for an expansion."""
        return ensure_utc(reference) + relativedelta(years=self._lookahead_years)

    def parse(self, rule: str, anchor: datetime) -> rrule:
        """
        Parse an RRULE body anchored at `anchor`.

        Raises:
            InvalidRuleError: If the rule cannot be parsed
        """
        body = _rule_body(rule)
        if not body:
            raise InvalidRuleError(rule, "empty rule")
        if "\n" in body or "DTSTART" in body.upper():
            raise InvalidRuleError(rule, "expected a single RRULE without DTSTART")
        if "BYEASTER" in body.upper():
            raise InvalidRuleError(rule, "BYEASTER is not supported")

        try:
            parsed = rrulestr(f"RRULE:{body}", dtstart=ensure_utc(anchor))
        except _PARSE_ERRORS as e:
            raise InvalidRuleError(rule, str(e) or e.__class__.__name__) from e

        if not isinstance(parsed, rrule):
            raise InvalidRuleError(rule, "rule sets are not supported")
        return parsed

    def next_occurrences(
        self,
        anchor: datetime,
        rule: str | None,
        reference: datetime,
        count: int,
    ) -> list[datetime]:
        """
        Upcoming occurrences, ascending and unique.

        Args:
            anchor: Rule start; the only occurrence when `rule` is empty
            rule: RRULE body or None for a one-time reminder
            reference: "Now"; occurrences before it are skipped
            count: Maximum number of occurrences to return

        Returns:
            At most `count` instants in [reference, reference + horizon].
            A one-time anchor is returned only if strictly after `reference`.

        Raises:
            InvalidRuleError: If `rule` is malformed
        """
        if count <= 0:
            return []

        anchor = ensure_utc(anchor)
        reference = ensure_utc(reference)

        if not rule or not rule.strip():
            return [anchor] if anchor > reference else []

        parsed = self.parse(rule, anchor)
        horizon = self.horizon(reference)
        if anchor > horizon:
            return []
        # neighbouring years feed week numbering
        shift = calendar_shift(min(anchor.year, reference.year) - 1, horizon.year + 1)

        occurrences: list[datetime] = []
        try:
            shifted = self._shifted_rule(parsed, rule, anchor, horizon, shift)
            shifted_horizon = _add_years(horizon, shift)
            for occurrence in shifted.xafter(_add_years(reference, shift), count=count, inc=True):
                if occurrence > shifted_horizon:
                    break
                occurrences.append(_add_years(occurrence, -shift).astimezone(UTC))
        except _PARSE_ERRORS as e:
            raise InvalidRuleError(rule, str(e) or e.__class__.__name__) from e

        return occurrences

    def _shifted_rule(
        self,
        parsed: rrule,
        rule: str,
        anchor: datetime,
        horizon: datetime,
        shift: int,
    ) -> rrule:
        """The parsed rule moved `shift` years later, UNTIL included."""
        if not shift:
            return parsed

        until = None
        until_text = _rule_parts(_rule_body(rule)).get("UNTIL")
        if until_text:
            until = parse_datetime(until_text)
            # an UNTIL past the horizon cuts nothing
            until = _add_years(until, shift) if until <= horizon else None

        return parsed.replace(dtstart=_add_years(anchor, shift), until=until)

    def next_occurrence(
        self,
        anchor: datetime,
        rule: str | None,
        reference: datetime,
    ) -> datetime | None:
        """Next occurrence or None; used for "Next: ..." display."""
        occurrences = self.next_occurrences(anchor, rule, reference, count=1)
        return occurrences[0] if occurrences else None

    def occurrences_for(
        self,
        reminder: Reminder,
        reference: datetime,
        count: int,
    ) -> list[datetime]:
        """Expand a reminder's anchor and rule."""
        return self.next_occurrences(reminder.anchor_at, reminder.rrule, reference, count)

    def describe(self, rule: str | None) -> str:
        """
        Human-readable rule description.

        Never raises: unparsable rules become "Custom recurrence".
        """
        if not rule or not rule.strip():
            return "One-time"

        body = _rule_body(rule)
        for preset in RECURRENCE_PRESETS:
            if preset.value is not None and preset.value == body:
                return preset.description

        try:
            self.parse(body, datetime.now(UTC))
            return _describe_parts(body)
        except (InvalidRuleError, KeyError, ValueError):
            logger.debug("recurrence_describe_fallback", rule=rule)
            return "Custom recurrence"


def _describe_parts(body: str) -> str:
    parts = _rule_parts(body)
    unit = _FREQ_UNITS[parts["FREQ"]]
    interval = int(parts.get("INTERVAL", "1"))
    text = f"Every {unit}" if interval == 1 else f"Every {interval} {unit}s"

    if "BYDAY" in parts:
        text += " on " + ", ".join(_describe_day(day) for day in parts["BYDAY"].split(","))

    if "COUNT" in parts:
        text += f", {int(parts['COUNT'])} times"
    elif "UNTIL" in parts:
        until = parts["UNTIL"]
        text += f" until {until[0:4]}-{until[4:6]}-{until[6:8]}"

    return text


def _describe_day(token: str) -> str:
    name = _DAY_NAMES[token[-2:]]
    prefix = token[:-2]
    if not prefix:
        return name
    ordinal = _ORDINALS.get(int(prefix), f"#{int(prefix)}")
    return f"the {ordinal} {name}"
