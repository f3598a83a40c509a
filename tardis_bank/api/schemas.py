"""
Pydantic schemas for API requests and responses

Every response model carries the ``links`` of the resource it represents.
"""

from decimal import Decimal
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from ..models import Login, Account, Transaction, Schedule, TimePeriod
from ..hypermedia import (
    Caller, Link, links_for,
    HomeResource, RegistrationResource, TokenResource, PasswordResource,
    VerificationResource, AccountCollectionResource, AccountResource,
    TransactionCollectionResource, TransactionResource,
    ScheduleCollectionResource, ScheduleResource,
)


class LinkModel(BaseModel):
    rel: str = Field(..., description="Link relation")
    href: str

    @classmethod
    def from_link(cls, link: Link) -> 'LinkModel':
        return cls(rel=link.rel.value, href=link.href)


def _links(resource, caller: Caller) -> List[LinkModel]:
    return [LinkModel.from_link(link) for link in links_for(resource, caller)]


# Requests

class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    email: str
    password: str


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str = Field(..., min_length=1)


class AccountRequest(BaseModel):
    account_name: str = Field(..., min_length=1, max_length=200)


class TransactionRequest(BaseModel):
    amount: Decimal = Field(..., max_digits=16, decimal_places=2, description="Signed amount; negative for debits")
    transaction_date: Optional[datetime] = None  # Defaults to now; never in the future


class ScheduleRequest(BaseModel):
    time_period: TimePeriod = Field(..., description="Recurrence (day, week, month, year)")
    next_run: datetime
    amount: Decimal = Field(..., max_digits=16, decimal_places=2)


# Responses

class HomeResponse(BaseModel):
    email: Optional[str] = None
    links: List[LinkModel]

    @classmethod
    def build(cls, login: Optional[Login], caller: Caller) -> 'HomeResponse':
        return cls(
            email=login.email if login else None,
            links=_links(HomeResource(login), caller)
        )


class RegisterResponse(BaseModel):
    email: str
    links: List[LinkModel]

    @classmethod
    def build(cls, login: Login, caller: Caller) -> 'RegisterResponse':
        return cls(email=login.email, links=_links(RegistrationResource(login), caller))


class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    links: List[LinkModel]

    @classmethod
    def build(cls, token: str, caller: Caller) -> 'LoginResponse':
        return cls(token=token, links=_links(TokenResource(token), caller))


class ChangePasswordResponse(BaseModel):
    message: str = "Password changed"
    links: List[LinkModel]

    @classmethod
    def build(cls, login: Login, caller: Caller) -> 'ChangePasswordResponse':
        return cls(links=_links(PasswordResource(login), caller))


class VerificationResponse(BaseModel):
    email: str
    verified: bool
    links: List[LinkModel]

    @classmethod
    def build(cls, login: Login, caller: Caller) -> 'VerificationResponse':
        return cls(email=login.email, verified=login.verified,
                   links=_links(VerificationResource(login), caller))


class AccountResponse(BaseModel):
    account_id: str
    account_name: str
    links: List[LinkModel]

    @classmethod
    def build(cls, account: Account, caller: Caller, deleted: bool = False) -> 'AccountResponse':
        return cls(
            account_id=account.id,
            account_name=account.account_name,
            links=_links(AccountResource(account, deleted=deleted), caller)
        )


class AccountCollectionResponse(BaseModel):
    accounts: List[AccountResponse]
    links: List[LinkModel]

    @classmethod
    def build(cls, accounts: List[Account], caller: Caller) -> 'AccountCollectionResponse':
        return cls(
            accounts=[AccountResponse.build(account, caller) for account in accounts],
            links=_links(AccountCollectionResource(tuple(accounts)), caller)
        )


class TransactionResponse(BaseModel):
    transaction_id: str
    transaction_date: datetime
    amount: str = Field(..., description="Decimal amount as string")
    balance: str = Field(..., description="Running balance after this transaction")
    links: List[LinkModel]

    @classmethod
    def build(cls, account: Account, transaction: Transaction, caller: Caller) -> 'TransactionResponse':
        return cls(
            transaction_id=transaction.id,
            transaction_date=transaction.transaction_date,
            amount=str(transaction.amount),
            balance=str(transaction.balance),
            links=_links(TransactionResource(account, transaction), caller)
        )


class TransactionCollectionResponse(BaseModel):
    transactions: List[TransactionResponse]
    links: List[LinkModel]

    @classmethod
    def build(cls, account: Account, transactions: List[Transaction],
              caller: Caller) -> 'TransactionCollectionResponse':
        return cls(
            transactions=[TransactionResponse.build(account, t, caller) for t in transactions],
            links=_links(TransactionCollectionResource(account, tuple(transactions)), caller)
        )


class ScheduleResponse(BaseModel):
    schedule_id: str
    time_period: str
    next_run: datetime
    amount: str = Field(..., description="Decimal amount as string")
    links: List[LinkModel]

    @classmethod
    def build(cls, account: Account, schedule: Schedule, caller: Caller,
              deleted: bool = False) -> 'ScheduleResponse':
        return cls(
            schedule_id=schedule.id,
            time_period=schedule.time_period.value,
            next_run=schedule.next_run,
            amount=str(schedule.amount),
            links=_links(ScheduleResource(account, schedule, deleted=deleted), caller)
        )


class ScheduleCollectionResponse(BaseModel):
    schedules: List[ScheduleResponse]
    links: List[LinkModel]

    @classmethod
    def build(cls, account: Account, schedules: List[Schedule],
              caller: Caller) -> 'ScheduleCollectionResponse':
        return cls(
            schedules=[ScheduleResponse.build(account, s, caller) for s in schedules],
            links=_links(ScheduleCollectionResource(account, tuple(schedules)), caller)
        )
