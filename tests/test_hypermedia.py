"""
Tests for link derivation and navigation
"""

import pytest
from decimal import Decimal
from datetime import datetime, timezone

from tardis_bank.models import Login, Account, Transaction, Schedule, TimePeriod
from tardis_bank.hypermedia import (
    Rel, Link, Caller, ANONYMOUS, links_for, find_link, serialize_links,
    HomeResource, RegistrationResource, TokenResource, PasswordResource,
    VerificationResource, AccountCollectionResource, AccountResource,
    TransactionCollectionResource, TransactionResource,
    ScheduleCollectionResource, ScheduleResource,
)
from tardis_bank.errors import HypermediaError, LinkNotFoundError, AmbiguousLinkError


NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)

LOGIN = Login(id="login_1", created_at=NOW, updated_at=NOW, email="a@x.com",
              password_hash="h", password_salt="s", verified=True)
ACCOUNT = Account(id="acc_1", created_at=NOW, updated_at=NOW, login_id="login_1", account_name="Checking")
TRANSACTION = Transaction(id="tx_1", created_at=NOW, updated_at=NOW, account_id="acc_1",
                          transaction_date=NOW, amount=Decimal("1.45"), balance=Decimal("1.45"), sequence=1)
SCHEDULE = Schedule(id="sch_1", created_at=NOW, updated_at=NOW, account_id="acc_1",
                    time_period=TimePeriod.WEEK, next_run=NOW, amount=Decimal("10.00"))

OWNER = Caller(login_id="login_1")
STRANGER = Caller(login_id="login_2")


def rels(links):
    return [link.rel for link in links]


class TestHomeLinks:
    """Test entry point links"""

    def test_anonymous_home(self):
        links = links_for(HomeResource(), ANONYMOUS)
        assert rels(links) == [Rel.LOGIN, Rel.SELF, Rel.HOME]
        assert find_link(links, Rel.LOGIN).href == "/login"

    def test_authenticated_home(self):
        links = links_for(HomeResource(LOGIN), OWNER)
        assert rels(links) == [Rel.ACCOUNT, Rel.PASSWORD, Rel.SELF, Rel.HOME]
        assert find_link(links, Rel.ACCOUNT).href == "/accounts"

    def test_registration(self):
        assert rels(links_for(RegistrationResource(LOGIN), ANONYMOUS)) == [Rel.SELF, Rel.HOME]

    def test_token(self):
        assert rels(links_for(TokenResource("t"), ANONYMOUS)) == [Rel.HOME]

    def test_verification(self):
        assert rels(links_for(VerificationResource(LOGIN), ANONYMOUS)) == [Rel.LOGIN, Rel.HOME]

    def test_password_only_for_its_login(self):
        assert rels(links_for(PasswordResource(LOGIN), OWNER)) == [Rel.SELF, Rel.HOME]
        assert links_for(PasswordResource(LOGIN), STRANGER) == []


class TestAccountLinks:
    """Test account and child resource links"""

    def test_account_collection(self):
        links = links_for(AccountCollectionResource((ACCOUNT,)), OWNER)
        assert rels(links) == [Rel.SELF, Rel.HOME]
        assert links_for(AccountCollectionResource(), ANONYMOUS) == []

    def test_account(self):
        links = links_for(AccountResource(ACCOUNT), OWNER)
        assert rels(links) == [Rel.SELF, Rel.TRANSACTION, Rel.SCHEDULE, Rel.ACCOUNT, Rel.HOME]
        assert find_link(links, Rel.SELF).href == "/accounts/acc_1"
        assert find_link(links, Rel.TRANSACTION).href == "/accounts/acc_1/transactions"
        assert find_link(links, Rel.SCHEDULE).href == "/accounts/acc_1/schedules"
        assert find_link(links, Rel.ACCOUNT).href == "/accounts"

    def test_deleted_account(self):
        links = links_for(AccountResource(ACCOUNT, deleted=True), OWNER)
        assert rels(links) == [Rel.ACCOUNT, Rel.HOME]

    def test_transactions(self):
        links = links_for(TransactionCollectionResource(ACCOUNT, (TRANSACTION,)), OWNER)
        assert rels(links) == [Rel.SELF, Rel.ACCOUNT, Rel.HOME]
        assert find_link(links, Rel.ACCOUNT).href == "/accounts/acc_1"

    def test_transaction(self):
        links = links_for(TransactionResource(ACCOUNT, TRANSACTION), OWNER)
        assert rels(links) == [Rel.SELF, Rel.ACCOUNT]
        assert find_link(links, Rel.SELF).href == "/accounts/acc_1/transactions/tx_1"

    def test_schedules(self):
        links = links_for(ScheduleCollectionResource(ACCOUNT, (SCHEDULE,)), OWNER)
        assert rels(links) == [Rel.SELF, Rel.ACCOUNT, Rel.HOME]

    def test_schedule(self):
        links = links_for(ScheduleResource(ACCOUNT, SCHEDULE), OWNER)
        assert rels(links) == [Rel.SELF, Rel.ACCOUNT]
        assert find_link(links, Rel.SELF).href == "/accounts/acc_1/schedules/sch_1"

    def test_deleted_schedule(self):
        links = links_for(ScheduleResource(ACCOUNT, SCHEDULE, deleted=True), OWNER)
        assert rels(links) == [Rel.SCHEDULE, Rel.ACCOUNT]

    @pytest.mark.parametrize("resource", [
        AccountResource(ACCOUNT),
        TransactionCollectionResource(ACCOUNT),
        TransactionResource(ACCOUNT, TRANSACTION),
        ScheduleCollectionResource(ACCOUNT),
        ScheduleResource(ACCOUNT, SCHEDULE),
    ])
    def test_no_links_for_non_owner(self, resource):
        assert links_for(resource, STRANGER) == []
        assert links_for(resource, ANONYMOUS) == []

    def test_unknown_resource(self):
        with pytest.raises(TypeError):
            links_for(object(), OWNER)


class TestNavigation:
    """Test link lookup and parsing"""

    def test_missing_relation(self):
        with pytest.raises(LinkNotFoundError):
            find_link(links_for(HomeResource(), ANONYMOUS), Rel.ACCOUNT)

    def test_duplicate_relation(self):
        links = [Link(Rel.SELF, "/a"), Link(Rel.SELF, "/b")]
        with pytest.raises(AmbiguousLinkError):
            find_link(links, Rel.SELF)

    def test_relation_by_name(self):
        links = links_for(HomeResource(), ANONYMOUS)
        assert find_link(links, "login").href == "/login"

    def test_serialize_and_parse(self):
        data = serialize_links(links_for(TokenResource("t"), ANONYMOUS))
        assert data == [{"rel": "home", "href": "/"}]
        assert Link.from_dict(data[0]) == Link(Rel.HOME, "/")

    def test_unknown_relation_rejected(self):
        with pytest.raises(HypermediaError):
            Link.from_dict({"rel": "teleport", "href": "/"})
