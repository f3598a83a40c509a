"""
Persistence Gateway

Typed insert/select/update/delete operations for logins, accounts,
transactions and schedules on top of a StorageInterface. Every call is a
single storage operation; callers that need several to happen together wrap
them in ``storage.atomic()``.

Lookups come in two flavours. Lookups by a key the system itself handed out
(a login id from a verified token) must succeed and raise RecordMissingError
otherwise. Lookups by a key a client supplied (an email, an account id from
a URL) may legitimately miss and return None.
"""

from datetime import datetime
from typing import List, Optional

from .storage import StorageInterface
from .models import Login, Account, Transaction, Schedule, utc_now
from .errors import RecordMissingError


class BankDatabase:
    """Typed gateway over the storage backend"""

    LOGINS = "logins"
    ACCOUNTS = "accounts"
    TRANSACTIONS = "transactions"
    SCHEDULES = "schedules"

    def __init__(self, storage: StorageInterface):
        self.storage = storage

    # Logins

    def insert_login(self, login: Login) -> Login:
        self.storage.save(self.LOGINS, login.id, login.to_dict())
        return login

    def update_login_password(self, login_id: str, password_hash: str, password_salt: str) -> Login:
        login = self.login_by_id(login_id)
        login.password_hash = password_hash
        login.password_salt = password_salt
        login.updated_at = utc_now()
        self.storage.save(self.LOGINS, login.id, login.to_dict())
        return login

    def update_login_set_verified(self, login_id: str) -> Login:
        login = self.login_by_id(login_id)
        login.verified = True
        login.updated_at = utc_now()
        self.storage.save(self.LOGINS, login.id, login.to_dict())
        return login

    def login_by_id(self, login_id: str) -> Login:
        """Fetch a login whose id came from the system; a miss is a server fault"""
        data = self.storage.load(self.LOGINS, login_id)
        if data is None:
            raise RecordMissingError(f"Login {login_id} not found in storage")
        return Login.from_dict(data)

    def find_login(self, login_id: str) -> Optional[Login]:
        """Fetch a login whose id came from a client; a miss gives None"""
        data = self.storage.load(self.LOGINS, login_id)
        if data is None:
            return None
        return Login.from_dict(data)

    def login_by_email(self, email: str) -> Optional[Login]:
        """Fetch a verified login by email; unverified or unknown gives None"""
        for data in self.storage.find(self.LOGINS, {"email": email}):
            if data.get("verified"):
                return Login.from_dict(data)
        return None

    def email_registered(self, email: str) -> bool:
        return bool(self.storage.find(self.LOGINS, {"email": email}))

    def delete_login(self, login_id: str) -> bool:
        return self.storage.delete(self.LOGINS, login_id)

    # Accounts

    def insert_account(self, account: Account) -> Account:
        self.storage.save(self.ACCOUNTS, account.id, account.to_dict())
        return account

    def account_by_id(self, account_id: str) -> Optional[Account]:
        data = self.storage.load(self.ACCOUNTS, account_id)
        if data is None:
            return None
        return Account.from_dict(data)

    def accounts_by_login(self, login_id: str) -> List[Account]:
        accounts = [Account.from_dict(data)
                    for data in self.storage.find(self.ACCOUNTS, {"login_id": login_id})]
        return sorted(accounts, key=lambda account: account.created_at)

    def delete_account(self, account_id: str) -> bool:
        return self.storage.delete(self.ACCOUNTS, account_id)

    # Transactions

    def insert_transaction(self, transaction: Transaction) -> Transaction:
        self.storage.save(self.TRANSACTIONS, transaction.id, transaction.to_dict())
        return transaction

    def transaction_by_id(self, transaction_id: str) -> Optional[Transaction]:
        data = self.storage.load(self.TRANSACTIONS, transaction_id)
        if data is None:
            return None
        return Transaction.from_dict(data)

    def transactions_by_account(self, account_id: str, limit: Optional[int] = None) -> List[Transaction]:
        """Transactions newest first, optionally truncated to ``limit`` entries

        Stored dates are UTC isoformat strings, so the backend orders them
        chronologically without parsing.
        """
        records = self.storage.find_sorted(
            self.TRANSACTIONS, {"account_id": account_id},
            ["transaction_date", "sequence"], descending=True, limit=limit
        )
        return [Transaction.from_dict(data) for data in records]

    def latest_transaction(self, account_id: str) -> Optional[Transaction]:
        transactions = self.transactions_by_account(account_id, limit=1)
        return transactions[0] if transactions else None

    def delete_transactions_by_account(self, account_id: str) -> int:
        deleted = 0
        for data in self.storage.find(self.TRANSACTIONS, {"account_id": account_id}):
            if self.storage.delete(self.TRANSACTIONS, data["id"]):
                deleted += 1
        return deleted

    # Schedules

    def insert_schedule(self, schedule: Schedule) -> Schedule:
        self.storage.save(self.SCHEDULES, schedule.id, schedule.to_dict())
        return schedule

    def schedule_by_id(self, schedule_id: str) -> Optional[Schedule]:
        data = self.storage.load(self.SCHEDULES, schedule_id)
        if data is None:
            return None
        return Schedule.from_dict(data)

    def schedules_by_account(self, account_id: str) -> List[Schedule]:
        schedules = [Schedule.from_dict(data)
                     for data in self.storage.find(self.SCHEDULES, {"account_id": account_id})]
        return sorted(schedules, key=lambda schedule: schedule.created_at)

    def all_schedules(self) -> List[Schedule]:
        return [Schedule.from_dict(data) for data in self.storage.load_all(self.SCHEDULES)]

    def update_schedule_next_run(self, schedule_id: str, next_run: datetime) -> Schedule:
        data = self.storage.load(self.SCHEDULES, schedule_id)
        if data is None:
            raise RecordMissingError(f"Schedule {schedule_id} not found in storage")
        schedule = Schedule.from_dict(data)
        schedule.next_run = next_run
        schedule.updated_at = utc_now()
        self.storage.save(self.SCHEDULES, schedule.id, schedule.to_dict())
        return schedule

    def delete_schedule(self, schedule_id: str, account_id: str) -> bool:
        """Delete a schedule only if it belongs to ``account_id``"""
        schedule = self.schedule_by_id(schedule_id)
        if schedule is None or schedule.account_id != account_id:
            return False
        return self.storage.delete(self.SCHEDULES, schedule_id)

    def delete_schedules_by_account(self, account_id: str) -> int:
        deleted = 0
        for data in self.storage.find(self.SCHEDULES, {"account_id": account_id}):
            if self.storage.delete(self.SCHEDULES, data["id"]):
                deleted += 1
        return deleted
