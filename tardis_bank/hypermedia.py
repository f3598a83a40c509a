"""
Hypermedia Resource Module

Every representation the API returns carries a list of links, each tagged
with a relation from a closed set. Clients navigate by looking a relation up
on a resource they already hold and never assemble URLs themselves, so this
module is the only place that knows the URL layout.

Links are derived by ``links_for``, a pure function of the resource variant
and the caller. Which links appear depends on whether the caller is
authenticated and whether the caller owns the entity behind the resource; a
caller that does not own an account sees no links into it at all.
"""

from dataclasses import dataclass
from enum import Enum
from functools import singledispatch
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .models import Login, Account, Transaction, Schedule
from .errors import HypermediaError, LinkNotFoundError, AmbiguousLinkError


class Rel(str, Enum):
    """Link relations understood by server and client"""
    HOME = "home"
    SELF = "self"
    LOGIN = "login"
    ACCOUNT = "account"
    TRANSACTION = "transaction"
    SCHEDULE = "schedule"
    PASSWORD = "password"


@dataclass(frozen=True)
class Link:
    rel: Rel
    href: str

    def to_dict(self) -> Dict[str, str]:
        return {"rel": self.rel.value, "href": self.href}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Link':
        try:
            rel = Rel(data["rel"])
        except (KeyError, ValueError):
            raise HypermediaError(f"Unknown link relation: {data.get('rel')!r}")
        return cls(rel=rel, href=data["href"])


@dataclass(frozen=True)
class Caller:
    """Who is asking; ``login_id`` is None for anonymous requests"""
    login_id: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return self.login_id is not None

    def owns(self, account: Account) -> bool:
        return self.authenticated and account.login_id == self.login_id


ANONYMOUS = Caller()


# URL layout

HOME_HREF = "/"
LOGIN_HREF = "/login"
PASSWORD_HREF = "/password"
ACCOUNTS_HREF = "/accounts"


def account_href(account_id: str) -> str:
    return f"{ACCOUNTS_HREF}/{account_id}"


def transactions_href(account_id: str) -> str:
    return f"{account_href(account_id)}/transactions"


def transaction_href(account_id: str, transaction_id: str) -> str:
    return f"{transactions_href(account_id)}/{transaction_id}"


def schedules_href(account_id: str) -> str:
    return f"{account_href(account_id)}/schedules"


def schedule_href(account_id: str, schedule_id: str) -> str:
    return f"{schedules_href(account_id)}/{schedule_id}"


# Resource variants

@dataclass(frozen=True)
class HomeResource:
    login: Optional[Login] = None


@dataclass(frozen=True)
class RegistrationResource:
    login: Login


@dataclass(frozen=True)
class TokenResource:
    token: str


@dataclass(frozen=True)
class PasswordResource:
    login: Login


@dataclass(frozen=True)
class VerificationResource:
    login: Login


@dataclass(frozen=True)
class AccountCollectionResource:
    accounts: Tuple[Account, ...] = ()


@dataclass(frozen=True)
class AccountResource:
    account: Account
    deleted: bool = False


@dataclass(frozen=True)
class TransactionCollectionResource:
    account: Account
    transactions: Tuple[Transaction, ...] = ()


@dataclass(frozen=True)
class TransactionResource:
    account: Account
    transaction: Transaction


@dataclass(frozen=True)
class ScheduleCollectionResource:
    account: Account
    schedules: Tuple[Schedule, ...] = ()


@dataclass(frozen=True)
class ScheduleResource:
    account: Account
    schedule: Schedule
    deleted: bool = False


# Link derivation

@singledispatch
def links_for(resource, caller: Caller) -> List[Link]:
    """Outbound links of ``resource`` as seen by ``caller``"""
    raise TypeError(f"No link rules for {type(resource).__name__}")


@links_for.register
def _home_links(resource: HomeResource, caller: Caller) -> List[Link]:
    if caller.authenticated:
        # Adds password to the account/self/home set so clients can reach PUT /password from home
        return [
            Link(Rel.ACCOUNT, ACCOUNTS_HREF),
            Link(Rel.PASSWORD, PASSWORD_HREF),
            Link(Rel.SELF, HOME_HREF),
            Link(Rel.HOME, HOME_HREF),
        ]
    return [
        Link(Rel.LOGIN, LOGIN_HREF),
        Link(Rel.SELF, HOME_HREF),
        Link(Rel.HOME, HOME_HREF),
    ]


@links_for.register
def _registration_links(resource: RegistrationResource, caller: Caller) -> List[Link]:
    return [Link(Rel.SELF, HOME_HREF), Link(Rel.HOME, HOME_HREF)]


@links_for.register
def _token_links(resource: TokenResource, caller: Caller) -> List[Link]:
    return [Link(Rel.HOME, HOME_HREF)]


@links_for.register
def _password_links(resource: PasswordResource, caller: Caller) -> List[Link]:
    if caller.login_id != resource.login.id:
        return []
    return [Link(Rel.SELF, PASSWORD_HREF), Link(Rel.HOME, HOME_HREF)]


@links_for.register
def _verification_links(resource: VerificationResource, caller: Caller) -> List[Link]:
    return [Link(Rel.LOGIN, LOGIN_HREF), Link(Rel.HOME, HOME_HREF)]


@links_for.register
def _account_collection_links(resource: AccountCollectionResource, caller: Caller) -> List[Link]:
    if not caller.authenticated:
        return []
    return [Link(Rel.SELF, ACCOUNTS_HREF), Link(Rel.HOME, HOME_HREF)]


@links_for.register
def _account_links(resource: AccountResource, caller: Caller) -> List[Link]:
    account = resource.account
    if not caller.owns(account):
        return []
    if resource.deleted:
        return [Link(Rel.ACCOUNT, ACCOUNTS_HREF), Link(Rel.HOME, HOME_HREF)]
    return [
        Link(Rel.SELF, account_href(account.id)),
        Link(Rel.TRANSACTION, transactions_href(account.id)),
        Link(Rel.SCHEDULE, schedules_href(account.id)),
        Link(Rel.ACCOUNT, ACCOUNTS_HREF),
        Link(Rel.HOME, HOME_HREF),
    ]


@links_for.register
def _transaction_collection_links(resource: TransactionCollectionResource, caller: Caller) -> List[Link]:
    account = resource.account
    if not caller.owns(account):
        return []
    return [
        Link(Rel.SELF, transactions_href(account.id)),
        Link(Rel.ACCOUNT, account_href(account.id)),
        Link(Rel.HOME, HOME_HREF),
    ]


@links_for.register
def _transaction_links(resource: TransactionResource, caller: Caller) -> List[Link]:
    account = resource.account
    if not caller.owns(account) or resource.transaction.account_id != account.id:
        return []
    return [
        Link(Rel.SELF, transaction_href(account.id, resource.transaction.id)),
        Link(Rel.ACCOUNT, account_href(account.id)),
    ]


@links_for.register
def _schedule_collection_links(resource: ScheduleCollectionResource, caller: Caller) -> List[Link]:
    account = resource.account
    if not caller.owns(account):
        return []
    return [
        Link(Rel.SELF, schedules_href(account.id)),
        Link(Rel.ACCOUNT, account_href(account.id)),
        Link(Rel.HOME, HOME_HREF),
    ]


@links_for.register
def _schedule_links(resource: ScheduleResource, caller: Caller) -> List[Link]:
    account = resource.account
    if not caller.owns(account) or resource.schedule.account_id != account.id:
        return []
    if resource.deleted:
        return [
            Link(Rel.SCHEDULE, schedules_href(account.id)),
            Link(Rel.ACCOUNT, account_href(account.id)),
        ]
    return [
        Link(Rel.SELF, schedule_href(account.id, resource.schedule.id)),
        Link(Rel.ACCOUNT, account_href(account.id)),
    ]


# Navigation

def find_link(links: Iterable[Link], rel: Rel) -> Link:
    """
    Resolve ``rel`` to its single link.

    Raises:
        LinkNotFoundError: No link carries the relation
        AmbiguousLinkError: More than one link carries it
    """
    rel = Rel(rel)
    matches = [link for link in links if link.rel == rel]
    if not matches:
        raise LinkNotFoundError(f"Resource has no '{rel.value}' link")
    if len(matches) > 1:
        raise AmbiguousLinkError(f"Resource has {len(matches)} '{rel.value}' links")
    return matches[0]


def serialize_links(links: Iterable[Link]) -> List[Dict[str, str]]:
    return [link.to_dict() for link in links]
