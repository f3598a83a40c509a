"""
Integration tests for the Tardis Bank API
Tests end-to-end workflows using FastAPI TestClient
"""

import pytest
from decimal import Decimal
from datetime import datetime, timezone
from fastapi.testclient import TestClient

from tardis_bank.api import create_app
from tardis_bank.api.auth import BankSystem
from tardis_bank.config import TardisConfig
from tardis_bank.storage import InMemoryStorage
from tardis_bank.notifications import LogMailer
from tardis_bank.client import BankClient, ApiError
from tardis_bank.hypermedia import Rel
from tardis_bank.errors import LinkNotFoundError


@pytest.fixture
def system():
    """Banking system on in-memory storage with the background runner disabled"""
    config = TardisConfig(
        database_url="memory://",
        jwt_secret="test-secret",
        schedule_poll_seconds=0,
        log_level="WARNING",
    )
    return BankSystem(InMemoryStorage(), config, mailer=LogMailer())


@pytest.fixture
def client(system):
    return TestClient(create_app(system))


def link(body, rel):
    matches = [item["href"] for item in body["links"] if item["rel"] == rel]
    assert len(matches) == 1, f"expected one '{rel}' link in {body['links']}"
    return matches[0]


def rels(body):
    return [item["rel"] for item in body["links"]]


def auth(token):
    return {"Authorization": f"Bearer {token}"}


def verification_token(system, email):
    message = [m for m in system.mailer.sent if m.recipient == email][-1]
    return message.body.split("/verify/")[1].split()[0]


def register_and_login(client, system, email="a@x.com", password="pw1"):
    home = client.get("/").json()
    r = client.post(link(home, "home"), json={"email": email, "password": password})
    assert r.status_code == 201
    r = client.get(f"/verify/{verification_token(system, email)}")
    assert r.status_code == 200
    r = client.post(link(home, "login"), json={"email": email, "password": password})
    assert r.status_code == 200
    return r.json()["token"]


def open_account(client, token, name="Checking"):
    home = client.get("/", headers=auth(token)).json()
    r = client.post(link(home, "account"), json={"account_name": name}, headers=auth(token))
    assert r.status_code == 201
    return r.json()


class TestHealthEndpoints:
    """Test basic health and entry endpoints"""

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "healthy"

    def test_anonymous_home(self, client):
        r = client.get("/")
        assert r.status_code == 200
        data = r.json()
        assert rels(data) == ["login", "self", "home"]
        assert data["email"] is None

    def test_invalid_token_rejected(self, client):
        r = client.get("/", headers=auth("garbage"))
        assert r.status_code == 401


class TestLoginFlow:
    """Registration, verification and authentication"""

    def test_register(self, client, system):
        home = client.get("/").json()
        r = client.post(link(home, "home"), json={"email": "a@x.com", "password": "pw1"})
        assert r.status_code == 201
        data = r.json()
        assert data["email"] == "a@x.com"
        assert rels(data) == ["self", "home"]
        # Sent as a background task once the response is complete
        assert [m.recipient for m in system.mailer.sent] == ["a@x.com"]

    def test_login_before_verification_fails(self, client):
        client.post("/", json={"email": "a@x.com", "password": "pw1"})
        r = client.post("/login", json={"email": "a@x.com", "password": "pw1"})
        assert r.status_code == 401
        assert r.json()["detail"] == "Unknown Email or Password."

    def test_verification(self, client, system):
        client.post("/", json={"email": "a@x.com", "password": "pw1"})
        r = client.get(f"/verify/{verification_token(system, 'a@x.com')}")
        assert r.status_code == 200
        data = r.json()
        assert data["verified"] is True
        assert rels(data) == ["login", "home"]

    def test_bad_verification_token(self, client):
        r = client.get("/verify/not-a-token")
        assert r.status_code == 401

    def test_verification_after_login_deleted(self, client, system):
        """A verification link for a deleted login is rejected, not a server fault"""
        token = register_and_login(client, system)
        client.post("/", json={"email": "b@x.com", "password": "pw1"})
        pending = verification_token(system, "b@x.com")
        stored = system.storage.find("logins", {"email": "b@x.com"})[0]
        system.login_manager.delete_login(stored["id"])

        r = client.get(f"/verify/{pending}")
        assert r.status_code == 401
        assert client.get("/", headers=auth(token)).status_code == 200

    def test_authenticated_home(self, client, system):
        token = register_and_login(client, system)
        r = client.get("/", headers=auth(token))
        assert r.status_code == 200
        data = r.json()
        assert data["email"] == "a@x.com"
        assert rels(data) == ["account", "password", "self", "home"]

    def test_wrong_password(self, client, system):
        register_and_login(client, system)
        r = client.post("/login", json={"email": "a@x.com", "password": "nope"})
        assert r.status_code == 401
        assert r.json()["detail"] == "Unknown Email or Password."

    def test_duplicate_registration(self, client):
        client.post("/", json={"email": "a@x.com", "password": "pw1"})
        r = client.post("/", json={"email": "a@x.com", "password": "pw2"})
        assert r.status_code == 409

    def test_change_password(self, client, system):
        token = register_and_login(client, system)
        home = client.get("/", headers=auth(token)).json()

        r = client.put(link(home, "password"), json={"old_password": "pw1", "new_password": "pw2"},
                       headers=auth(token))
        assert r.status_code == 200
        assert rels(r.json()) == ["self", "home"]

        assert client.post("/login", json={"email": "a@x.com", "password": "pw1"}).status_code == 401
        assert client.post("/login", json={"email": "a@x.com", "password": "pw2"}).status_code == 200

    def test_change_password_wrong_old(self, client, system):
        token = register_and_login(client, system)
        r = client.put("/password", json={"old_password": "bad", "new_password": "pw2"}, headers=auth(token))
        assert r.status_code == 401

    def test_delete_login(self, client, system):
        token = register_and_login(client, system)
        open_account(client, token)
        home = client.get("/", headers=auth(token)).json()

        r = client.delete(link(home, "self"), headers=auth(token))
        assert r.status_code == 200
        assert rels(r.json()) == ["login", "self", "home"]
        assert system.storage.count("accounts") == 0

        # The token is still well-formed but names a login that no longer exists
        r = client.get("/", headers=auth(token))
        assert r.status_code == 500


class TestAccountFlow:
    """Accounts, transactions and schedules"""

    def test_full_scenario(self, client, system):
        token = register_and_login(client, system)
        home = client.get("/", headers=auth(token)).json()

        r = client.get(link(home, "account"), headers=auth(token))
        assert r.status_code == 200
        assert r.json()["accounts"] == []

        account = open_account(client, token)
        assert account["account_name"] == "Checking"
        assert rels(account) == ["self", "transaction", "schedule", "account", "home"]

        transactions_href = link(account, "transaction")
        r = client.post(transactions_href, json={"amount": "1.45"}, headers=auth(token))
        assert r.status_code == 201
        assert Decimal(r.json()["balance"]) == Decimal("1.45")
        assert rels(r.json()) == ["self", "account"]

        r = client.post(transactions_href, json={"amount": "2.78"}, headers=auth(token))
        assert Decimal(r.json()["balance"]) == Decimal("4.23")

        r = client.get(transactions_href, headers=auth(token))
        assert r.status_code == 200
        data = r.json()
        assert [Decimal(t["balance"]) for t in data["transactions"]] == [Decimal("4.23"), Decimal("1.45")]
        assert rels(data) == ["self", "account", "home"]

        first = data["transactions"][-1]
        r = client.get(link(first, "self"), headers=auth(token))
        assert r.status_code == 200
        assert Decimal(r.json()["amount"]) == Decimal("1.45")

        r = client.get(link(home, "account"), headers=auth(token))
        assert [a["account_id"] for a in r.json()["accounts"]] == [account["account_id"]]

    def test_requires_authentication(self, client):
        assert client.get("/accounts").status_code == 401
        assert client.post("/accounts", json={"account_name": "X"}).status_code == 401

    def test_other_login_sees_not_found(self, client, system):
        owner = register_and_login(client, system, "a@x.com")
        stranger = register_and_login(client, system, "b@x.com")
        account = open_account(client, owner)

        for rel in ("self", "transaction", "schedule"):
            r = client.get(link(account, rel), headers=auth(stranger))
            assert r.status_code == 404
        r = client.post(link(account, "transaction"), json={"amount": "5.00"}, headers=auth(stranger))
        assert r.status_code == 404

        r = client.get("/accounts", headers=auth(stranger))
        assert r.json()["accounts"] == []

    def test_delete_account(self, client, system):
        token = register_and_login(client, system)
        account = open_account(client, token)
        client.post(link(account, "transaction"), json={"amount": "1.00"}, headers=auth(token))

        r = client.delete(link(account, "self"), headers=auth(token))
        assert r.status_code == 200
        assert rels(r.json()) == ["account", "home"]

        assert client.get(link(account, "self"), headers=auth(token)).status_code == 404
        assert client.get(link(account, "transaction"), headers=auth(token)).status_code == 404
        assert system.storage.count("transactions") == 0

    def test_transaction_validation(self, client, system):
        token = register_and_login(client, system)
        account = open_account(client, token)
        href = link(account, "transaction")

        assert client.post(href, json={"amount": "1.234"}, headers=auth(token)).status_code == 422
        assert client.post(href, json={"amount": "0"}, headers=auth(token)).status_code == 400

        r = client.post(href, json={"amount": "1.00", "transaction_date": "2020-01-02T00:00:00+00:00"},
                        headers=auth(token))
        assert r.status_code == 201
        r = client.post(href, json={"amount": "1.00", "transaction_date": "2020-01-01T00:00:00+00:00"},
                        headers=auth(token))
        assert r.status_code == 400

    def test_future_dated_transaction_rejected(self, client, system):
        token = register_and_login(client, system)
        account = open_account(client, token)
        href = link(account, "transaction")

        r = client.post(href, json={"amount": "1.00", "transaction_date": "2999-01-01T00:00:00+00:00"},
                        headers=auth(token))
        assert r.status_code == 400

        r = client.post(href, json={"amount": "2.00"}, headers=auth(token))
        assert r.status_code == 201
        assert Decimal(r.json()["balance"]) == Decimal("2.00")

    def test_missing_transaction(self, client, system):
        token = register_and_login(client, system)
        account = open_account(client, token)
        r = client.get(f"{link(account, 'transaction')}/missing", headers=auth(token))
        assert r.status_code == 404

    def test_schedules(self, client, system):
        token = register_and_login(client, system)
        account = open_account(client, token)
        schedules_href = link(account, "schedule")

        r = client.post(schedules_href, json={
            "time_period": "week",
            "next_run": "2020-01-01T00:00:00+00:00",
            "amount": "10.00"
        }, headers=auth(token))
        assert r.status_code == 201
        schedule = r.json()
        assert schedule["time_period"] == "week"
        assert rels(schedule) == ["self", "account"]

        r = client.get(schedules_href, headers=auth(token))
        assert [s["schedule_id"] for s in r.json()["schedules"]] == [schedule["schedule_id"]]

        fired = system.schedule_evaluator.run_due(datetime(2020, 1, 1, tzinfo=timezone.utc))
        assert len(fired) == 1
        r = client.get(link(account, "transaction"), headers=auth(token))
        assert Decimal(r.json()["transactions"][0]["balance"]) == Decimal("10.00")

        r = client.delete(link(schedule, "self"), headers=auth(token))
        assert r.status_code == 200
        assert rels(r.json()) == ["schedule", "account"]
        assert client.get(link(schedule, "self"), headers=auth(token)).status_code == 404

    def test_invalid_time_period(self, client, system):
        token = register_and_login(client, system)
        account = open_account(client, token)
        r = client.post(link(account, "schedule"), json={
            "time_period": "fortnight",
            "next_run": "2030-01-01T00:00:00+00:00",
            "amount": "10.00"
        }, headers=auth(token))
        assert r.status_code == 422


class TestBankClient:
    """Navigate the API purely by following links"""

    def test_navigation(self, client, system):
        bank = BankClient(client)
        home = bank.get_home()

        bank.post(home.link(Rel.HOME), {"email": "a@x.com", "password": "pw1"})
        client.get(f"/verify/{verification_token(system, 'a@x.com')}")
        token = bank.post(home.link(Rel.LOGIN), {"email": "a@x.com", "password": "pw1"})["token"]

        authed = bank.with_token(token)
        home = authed.get_home()
        assert home["email"] == "a@x.com"

        accounts = authed.get(home.link(Rel.ACCOUNT))
        account = authed.post(accounts.link(Rel.SELF), {"account_name": "Checking"})
        transactions = authed.get(account.link(Rel.TRANSACTION))
        authed.post(transactions.link(Rel.SELF), {"amount": "1.45"})
        latest = authed.post(transactions.link(Rel.SELF), {"amount": "2.78"})
        assert Decimal(latest["balance"]) == Decimal("4.23")

        back = authed.get(latest.link(Rel.ACCOUNT))
        assert back["account_id"] == account["account_id"]

        deleted = authed.delete(account.link(Rel.SELF))
        with pytest.raises(LinkNotFoundError):
            deleted.link(Rel.SELF)
        with pytest.raises(ApiError) as exc_info:
            authed.get(account.link(Rel.SELF))
        assert exc_info.value.status_code == 404

    def test_failed_login(self, client):
        bank = BankClient(client)
        home = bank.get_home()
        with pytest.raises(LinkNotFoundError):
            home.link(Rel.ACCOUNT)
        with pytest.raises(ApiError) as exc_info:
            bank.post(home.link(Rel.LOGIN), {"email": "nobody@x.com", "password": "pw1"})
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Unknown Email or Password."
