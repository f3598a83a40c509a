"""
Ledger Entity Models

Dataclasses for the four persisted entities: Login, Account, Transaction and
Schedule. Each converts to and from the JSON documents held by the storage
backends. Amounts are Decimal, quantised to cents.
"""

from decimal import Decimal, ROUND_HALF_UP
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Dict, Any
from enum import Enum

from .storage import StorageRecord


CENT = Decimal("0.01")


def to_amount(value) -> Decimal:
    """Coerce a number or numeric string to a cent-precision Decimal"""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def ensure_utc(moment: datetime) -> datetime:
    """Interpret naive datetimes as UTC and normalise aware ones to UTC"""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: str) -> datetime:
    return ensure_utc(datetime.fromisoformat(value))


class TimePeriod(Enum):
    """Recurrence period of a schedule"""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


@dataclass
class Login(StorageRecord):
    """Credentials of a bank customer"""
    email: str
    password_hash: str
    password_salt: str
    verified: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Login':
        return cls(
            id=data['id'],
            created_at=_parse_datetime(data['created_at']),
            updated_at=_parse_datetime(data['updated_at']),
            email=data['email'],
            password_hash=data['password_hash'],
            password_salt=data['password_salt'],
            verified=bool(data.get('verified', False))
        )


@dataclass
class Account(StorageRecord):
    """A named account owned by a login"""
    login_id: str
    account_name: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        return cls(
            id=data['id'],
            created_at=_parse_datetime(data['created_at']),
            updated_at=_parse_datetime(data['updated_at']),
            login_id=data['login_id'],
            account_name=data['account_name']
        )


@dataclass
class Transaction(StorageRecord):
    """
    Immutable ledger entry.

    ``balance`` is the running total of the account up to and including this
    entry. ``sequence`` counts entries per account and orders entries that
    share a timestamp.
    """
    account_id: str
    transaction_date: datetime
    amount: Decimal
    balance: Decimal
    sequence: int

    @property
    def sort_key(self):
        return (self.transaction_date, self.sequence)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        return cls(
            id=data['id'],
            created_at=_parse_datetime(data['created_at']),
            updated_at=_parse_datetime(data['updated_at']),
            account_id=data['account_id'],
            transaction_date=_parse_datetime(data['transaction_date']),
            amount=Decimal(data['amount']),
            balance=Decimal(data['balance']),
            sequence=int(data['sequence'])
        )


@dataclass
class Schedule(StorageRecord):
    """Recurring transfer into (or out of) an account"""
    account_id: str
    time_period: TimePeriod
    next_run: datetime
    amount: Decimal

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['time_period'] = self.time_period.value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Schedule':
        return cls(
            id=data['id'],
            created_at=_parse_datetime(data['created_at']),
            updated_at=_parse_datetime(data['updated_at']),
            account_id=data['account_id'],
            time_period=TimePeriod(data['time_period']),
            next_run=_parse_datetime(data['next_run']),
            amount=Decimal(data['amount'])
        )
