"""
Account Management Module

Creates, lists and deletes the accounts owned by a login. Ownership is the
only authorization rule: an account that belongs to another login is
reported exactly like one that does not exist.
"""

from typing import List, Optional
import uuid

from .database import BankDatabase
from .models import Account, utc_now
from .errors import ValidationError
from .logging_config import get_logger, log_action


class AccountManager:
    """Manages account lifecycle for authenticated logins"""

    def __init__(self, db: BankDatabase):
        self.db = db
        self.logger = get_logger("tardis_bank.accounts")

    def create_account(self, login_id: str, account_name: str) -> Account:
        """
        Create a new account for a login

        Args:
            login_id: ID of the owning login
            account_name: Display name, must not be blank

        Returns:
            Created Account object
        """
        account_name = account_name.strip()
        if not account_name:
            raise ValidationError("Account name must not be empty")

        now = utc_now()
        account = Account(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            login_id=login_id,
            account_name=account_name
        )
        self.db.insert_account(account)

        log_action(
            self.logger, "info", "Account created",
            login_id=login_id, action="create_account", resource=f"account:{account.id}",
            extra={"account_name": account_name}
        )
        return account

    def get_owned_account(self, login_id: str, account_id: str) -> Optional[Account]:
        """Get an account if it exists and belongs to ``login_id``"""
        account = self.db.account_by_id(account_id)
        if account is None or account.login_id != login_id:
            return None
        return account

    def list_accounts(self, login_id: str) -> List[Account]:
        return self.db.accounts_by_login(login_id)

    def delete_account(self, account: Account) -> None:
        """Delete an account after its transactions and schedules"""
        with self.db.storage.atomic():
            transactions = self.db.delete_transactions_by_account(account.id)
            schedules = self.db.delete_schedules_by_account(account.id)
            self.db.delete_account(account.id)

        log_action(
            self.logger, "info", "Account deleted",
            login_id=account.login_id, action="delete_account", resource=f"account:{account.id}",
            extra={"transactions_deleted": transactions, "schedules_deleted": schedules}
        )
