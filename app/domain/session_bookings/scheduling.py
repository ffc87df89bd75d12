"""
Recurring schedule math for accepted bookings.
Weekdays are indexed Sunday=0 .. Saturday=6 when picking the start date.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional

WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def weekday_index(day: date) -> int:
    """Sunday-first weekday index (Python's weekday() is Monday-first)"""
    return (day.weekday() + 1) % 7


def get_start_date(days_of_week: list[str], today: Optional[date] = None) -> date:
    """
    First day the schedule can start on:
    today if it is listed, else the next listed day later this week,
    else the lowest-indexed listed day of the following week.
    """
    today = today or datetime.utcnow().date()
    today_index = weekday_index(today)
    indices = [WEEKDAY_NAMES.index(day) for day in days_of_week]

    if today_index in indices:
        return today

    later = [index for index in indices if index > today_index]
    if later:
        # first match in list order, not the nearest day
        return today + timedelta(days=later[0] - today_index)

    return today + timedelta(days=7 - today_index + min(indices))


def next_date_for_day(start_date: date, day_name: str, week_offset: int) -> date:
    """First occurrence of day_name on or after start_date, shifted by whole weeks"""
    days_to_add = (WEEKDAY_NAMES.index(day_name) - weekday_index(start_date)) % 7
    return start_date + timedelta(days=days_to_add + week_offset * 7)


def build_schedule(
    days_of_week: list[str], total_sessions: int, start_time: str, today: Optional[date] = None
) -> list[datetime]:
    """Datetimes of every session: days cycle in list order, one cycle per week"""
    start_date = get_start_date(days_of_week, today)
    hours, minutes = (int(part) for part in start_time.split(":"))

    schedule = []
    for i in range(total_sessions):
        day_name = days_of_week[i % len(days_of_week)]
        week_number = i // len(days_of_week)
        session_day = next_date_for_day(start_date, day_name, week_number)
        schedule.append(datetime.combine(session_day, time(hours, minutes)))
    return schedule
