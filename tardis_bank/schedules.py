"""
Recurring Schedule Module

Schedules describe a transfer that repeats every day, week, month or year.
A schedule is Idle until its ``next_run`` passes, then Due. Evaluating a due
schedule appends exactly one transaction for its amount and moves
``next_run`` forward by whole periods until it lies in the future again, so
a schedule that missed several periods fires once rather than catching up.
"""

from datetime import datetime, timedelta
from typing import List, Optional
from enum import Enum
import asyncio
import calendar
import uuid

from .database import BankDatabase
from .models import Account, Schedule, TimePeriod, Transaction, to_amount, ensure_utc, utc_now
from .transactions import TransactionProcessor
from .errors import ValidationError
from .logging_config import get_logger, log_action


class ScheduleState(Enum):
    IDLE = "idle"
    DUE = "due"


def schedule_state(schedule: Schedule, now: datetime) -> ScheduleState:
    return ScheduleState.DUE if ensure_utc(now) >= schedule.next_run else ScheduleState.IDLE


def _add_months(moment: datetime, months: int) -> datetime:
    """Add months to a datetime, clamping the day to the end of the month"""
    month = moment.month - 1 + months
    year = moment.year + month // 12
    month = month % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def advance(moment: datetime, period: TimePeriod) -> datetime:
    """Move ``moment`` forward by one period"""
    if period == TimePeriod.DAY:
        return moment + timedelta(days=1)
    elif period == TimePeriod.WEEK:
        return moment + timedelta(days=7)
    elif period == TimePeriod.MONTH:
        return _add_months(moment, 1)
    elif period == TimePeriod.YEAR:
        return _add_months(moment, 12)
    else:
        raise ValueError(f"Unsupported time period: {period}")


class ScheduleManager:
    """Creates, lists and deletes the schedules of an account"""

    def __init__(self, db: BankDatabase):
        self.db = db
        self.logger = get_logger("tardis_bank.schedules")

    def create_schedule(self, account: Account, time_period: TimePeriod,
                        next_run: datetime, amount) -> Schedule:
        amount = to_amount(amount)
        if amount.is_zero():
            raise ValidationError("Schedule amount must not be zero")

        now = utc_now()
        schedule = Schedule(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            account_id=account.id,
            time_period=time_period,
            next_run=ensure_utc(next_run),
            amount=amount
        )
        self.db.insert_schedule(schedule)

        log_action(
            self.logger, "info", "Schedule created",
            login_id=account.login_id, action="create_schedule", resource=f"schedule:{schedule.id}",
            extra={
                "account_id": account.id,
                "time_period": time_period.value,
                "next_run": schedule.next_run.isoformat(),
                "amount": str(amount)
            }
        )
        return schedule

    def list_schedules(self, account: Account) -> List[Schedule]:
        return self.db.schedules_by_account(account.id)

    def get_schedule(self, account: Account, schedule_id: str) -> Optional[Schedule]:
        schedule = self.db.schedule_by_id(schedule_id)
        if schedule is None or schedule.account_id != account.id:
            return None
        return schedule

    def delete_schedule(self, account: Account, schedule: Schedule) -> bool:
        deleted = self.db.delete_schedule(schedule.id, account.id)
        if deleted:
            log_action(
                self.logger, "info", "Schedule deleted",
                login_id=account.login_id, action="delete_schedule", resource=f"schedule:{schedule.id}"
            )
        return deleted


class ScheduleEvaluator:
    """Materialises due schedules into transactions"""

    def __init__(self, db: BankDatabase, transaction_processor: TransactionProcessor):
        self.db = db
        self.transaction_processor = transaction_processor
        self.logger = get_logger("tardis_bank.schedules")

    def evaluate(self, schedule: Schedule, now: Optional[datetime] = None) -> Optional[Transaction]:
        """Fire ``schedule`` if it is due; returns the transaction it created"""
        now = ensure_utc(now) if now else utc_now()
        if schedule_state(schedule, now) == ScheduleState.IDLE:
            return None

        with self.db.storage.atomic():
            account = self.db.account_by_id(schedule.account_id)
            if account is None:
                # Orphaned schedule; its account was deleted without it
                self.logger.warning(f"Schedule {schedule.id} references missing account {schedule.account_id}")
                return None

            transaction = self.transaction_processor.append_transaction(
                account, schedule.amount, transaction_date=now
            )

            next_run = schedule.next_run
            while next_run <= now:
                next_run = advance(next_run, schedule.time_period)
            self.db.update_schedule_next_run(schedule.id, next_run)

        log_action(
            self.logger, "info", "Schedule fired",
            login_id=account.login_id, action="run_schedule", resource=f"schedule:{schedule.id}",
            extra={
                "transaction_id": transaction.id,
                "previous_run": schedule.next_run.isoformat(),
                "next_run": next_run.isoformat()
            }
        )
        return transaction

    def run_due(self, now: Optional[datetime] = None) -> List[Transaction]:
        """Evaluate every schedule once"""
        now = ensure_utc(now) if now else utc_now()
        fired = []
        for schedule in self.db.all_schedules():
            try:
                transaction = self.evaluate(schedule, now)
            except ValidationError as e:
                # Left due; retried on the next evaluation
                self.logger.warning(f"Schedule {schedule.id} could not fire: {e}")
                continue
            if transaction is not None:
                fired.append(transaction)
        return fired


class ScheduleRunner:
    """Background task that evaluates schedules at a fixed interval"""

    def __init__(self, evaluator: ScheduleEvaluator, interval_seconds: float):
        self.evaluator = evaluator
        self.interval_seconds = interval_seconds
        self.logger = get_logger("tardis_bank.schedules")
        self._task: Optional[asyncio.Task] = None

    async def run_once(self) -> List[Transaction]:
        return await asyncio.to_thread(self.evaluator.run_due)

    async def _loop(self) -> None:
        while True:
            try:
                fired = await self.run_once()
                if fired:
                    self.logger.info(f"Schedule evaluation created {len(fired)} transaction(s)")
            except Exception:
                self.logger.exception("Schedule evaluation failed")
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self.interval_seconds <= 0 or self._task is not None:
            return
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
