"""
Period calculation service.
Computes the current accounting interval for a goal's recurrence type.
All intervals are half-open [start, end) in naive local time.
"""
from datetime import datetime, timedelta, date
from typing import Optional

from resolution_tracker.constants import (
    RECURRENCE_DAILY, RECURRENCE_WEEKLY, RECURRENCE_MONTHLY,
    RECURRENCE_QUARTERLY, RECURRENCE_CUSTOM, WEEK_START_DAY
)
from resolution_tracker.exceptions import ValidationException
from resolution_tracker.schemas import PeriodRange


class PeriodService:
    """Service for period boundary calculations"""

    @staticmethod
    def start_of_day(day: date) -> datetime:
        """Midnight at the start of the given date"""
        return datetime.combine(day, datetime.min.time())

    @staticmethod
    def get_day_range(target_date: date) -> PeriodRange:
        """
        Get datetime range for a full day (midnight to midnight).

        Args:
            target_date: Date to get range for

        Returns:
            PeriodRange covering the day
        """
        start = PeriodService.start_of_day(target_date)
        return PeriodRange(start=start, end=start + timedelta(days=1))

    @staticmethod
    def get_week_range(target_date: date) -> PeriodRange:
        """Get the calendar week (starting on WEEK_START_DAY) containing target_date"""
        offset = (target_date.weekday() - WEEK_START_DAY) % 7
        start = PeriodService.start_of_day(target_date - timedelta(days=offset))
        return PeriodRange(start=start, end=start + timedelta(days=7))

    @staticmethod
    def get_month_range(target_date: date) -> PeriodRange:
        """Get the calendar month containing target_date"""
        first = target_date.replace(day=1)
        if first.month == 12:
            next_first = first.replace(year=first.year + 1, month=1)
        else:
            next_first = first.replace(month=first.month + 1)
        return PeriodRange(
            start=PeriodService.start_of_day(first),
            end=PeriodService.start_of_day(next_first)
        )

    @staticmethod
    def get_quarter_range(target_date: date) -> PeriodRange:
        """Get the calendar quarter containing target_date"""
        first_month = 3 * ((target_date.month - 1) // 3) + 1
        first = date(target_date.year, first_month, 1)
        if first_month == 10:
            next_first = date(target_date.year + 1, 1, 1)
        else:
            next_first = date(target_date.year, first_month + 3, 1)
        return PeriodRange(
            start=PeriodService.start_of_day(first),
            end=PeriodService.start_of_day(next_first)
        )

    @staticmethod
    def get_custom_range(
        target_date: date,
        custom_deadline: Optional[datetime] = None
    ) -> PeriodRange:
        """
        Get the custom period: today until the end of the deadline day.

        Without a deadline, or with a deadline already in the past, this
        degrades to the current day.
        """
        today = PeriodService.get_day_range(target_date)
        if custom_deadline is None:
            return today

        deadline_end = PeriodService.start_of_day(custom_deadline.date()) + timedelta(days=1)
        return PeriodRange(start=today.start, end=max(deadline_end, today.end))

    @staticmethod
    def get_current_period(
        recurrence_type: str,
        custom_deadline: Optional[datetime] = None,
        now: Optional[datetime] = None
    ) -> PeriodRange:
        """
        Get the current accounting period for a recurrence type.

        Args:
            recurrence_type: "daily", "weekly", "monthly", "quarterly" or "custom"
            custom_deadline: Deadline for "custom" goals (ignored otherwise)
            now: Reference time (defaults to datetime.now())

        Returns:
            PeriodRange [start, end) containing now

        Raises:
            ValidationException: If recurrence_type is unknown
        """
        today = (now or datetime.now()).date()

        if recurrence_type == RECURRENCE_DAILY:
            return PeriodService.get_day_range(today)
        if recurrence_type == RECURRENCE_WEEKLY:
            return PeriodService.get_week_range(today)
        if recurrence_type == RECURRENCE_MONTHLY:
            return PeriodService.get_month_range(today)
        if recurrence_type == RECURRENCE_QUARTERLY:
            return PeriodService.get_quarter_range(today)
        if recurrence_type == RECURRENCE_CUSTOM:
            return PeriodService.get_custom_range(today, custom_deadline)

        raise ValidationException("recurrence_type", f"unknown recurrence type '{recurrence_type}'")

    @staticmethod
    def is_within_period(period: PeriodRange, moment: datetime) -> bool:
        """Check whether moment falls inside [start, end)"""
        return period.start <= moment < period.end
