from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta

# (name, lowest, highest) per cron field, in expression order.
_FIELDS = (
    ("minute", 0, 59),
    ("hour", 0, 23),
    ("day_of_month", 1, 31),
    ("month", 1, 12),
    ("day_of_week", 0, 7),
)
_SEARCH_HORIZON_DAYS = 366 * 5


def _parse_value(raw: str, name: str, low: int, high: int) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"invalid {name} value: {raw!r}") from exc
    if value < low or value > high:
        raise ValueError(f"{name} value {value} outside {low}-{high}")
    return value


def _parse_field(raw: str, name: str, low: int, high: int) -> frozenset[int]:
    values: set[int] = set()
    for part in raw.split(","):
        if not part:
            raise ValueError(f"empty entry in {name} field")
        base, _, step_raw = part.partition("/")
        step = 1
        if step_raw:
            step = _parse_value(step_raw, f"{name} step", 1, high)
        if base == "*":
            start, end = low, high
        elif "-" in base:
            start_raw, end_raw = base.split("-", 1)
            start = _parse_value(start_raw, name, low, high)
            end = _parse_value(end_raw, name, low, high)
            if start > end:
                raise ValueError(f"{name} range {base} is reversed")
        else:
            start = _parse_value(base, name, low, high)
            values.update(range(start, (high if step_raw else start) + 1, step))
            continue
        # steps over "*" or a range keep the multiples of the step, as node-cron does
        values.update(value for value in range(start, end + 1) if value % step == 0)
    if not values:
        raise ValueError(f"{name} field {raw!r} selects no values")
    return frozenset(values)


@dataclass(frozen=True)
class CronSchedule:
    """Five-field cron expression evaluated against naive local time.

    Every field has to match for a minute to fire, including day-of-month and
    day-of-week together. ``7`` is accepted as an alias for Sunday.
    """

    expression: str
    minutes: frozenset[int]
    hours: frozenset[int]
    days_of_month: frozenset[int]
    months: frozenset[int]
    days_of_week: frozenset[int]

    @classmethod
    def parse(cls, expression: str) -> "CronSchedule":
        parts = expression.split()
        if len(parts) != len(_FIELDS):
            raise ValueError(f"cron expression needs {len(_FIELDS)} fields: {expression!r}")
        parsed = [
            _parse_field(raw, name, low, high) for raw, (name, low, high) in zip(parts, _FIELDS)
        ]
        days_of_week = frozenset(0 if day == 7 else day for day in parsed[4])
        return cls(
            expression=" ".join(parts),
            minutes=parsed[0],
            hours=parsed[1],
            days_of_month=parsed[2],
            months=parsed[3],
            days_of_week=days_of_week,
        )

    def matches_day(self, moment: datetime) -> bool:
        # cron counts Sunday as 0, Python's weekday() counts Monday as 0
        cron_weekday = (moment.weekday() + 1) % 7
        return (
            moment.month in self.months
            and moment.day in self.days_of_month
            and cron_weekday in self.days_of_week
        )

    def matches(self, moment: datetime) -> bool:
        return (
            self.matches_day(moment)
            and moment.hour in self.hours
            and moment.minute in self.minutes
        )

    def next_after(self, moment: datetime) -> datetime:
        """Return the first matching minute strictly after ``moment``."""
        earliest = moment.replace(second=0, microsecond=0) + timedelta(minutes=1)
        day = earliest.date()
        times = [time(hour, minute) for hour in sorted(self.hours) for minute in sorted(self.minutes)]
        for _ in range(_SEARCH_HORIZON_DAYS):
            candidate_day = datetime.combine(day, time(), tzinfo=moment.tzinfo)
            if self.matches_day(candidate_day):
                for slot in times:
                    candidate = datetime.combine(day, slot, tzinfo=moment.tzinfo)
                    if candidate >= earliest:
                        return candidate
            day += timedelta(days=1)
        raise ValueError(f"cron expression never fires: {self.expression!r}")
