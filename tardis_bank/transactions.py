"""
Transaction Processing Module

Appends transactions to an account and maintains the running balance. The
balance of each new transaction is the previous balance plus its amount,
computed once at insert time and never revisited. Appends are chronological:
a transaction may not be dated before the account's latest one, nor after now.
"""

from decimal import Decimal, InvalidOperation
from datetime import datetime
from typing import List, Optional
import uuid

from .database import BankDatabase
from .models import Account, Transaction, to_amount, ensure_utc, utc_now
from .errors import ValidationError, TransactionOrderError, InsufficientFundsError
from .logging_config import get_logger, log_action


# Display window for account history, not a pagination mechanism
TRANSACTION_LIST_LIMIT = 100


class TransactionProcessor:
    """
    Accounting engine for account transactions

    Overdrafts are allowed unless ``allow_overdraft`` is False, in which case
    an append that would leave a negative balance is rejected.
    """

    def __init__(self, db: BankDatabase, allow_overdraft: bool = True):
        self.db = db
        self.allow_overdraft = allow_overdraft
        self.logger = get_logger("tardis_bank.transactions")

    def append_transaction(
        self,
        account: Account,
        amount,
        transaction_date: Optional[datetime] = None
    ) -> Transaction:
        """
        Append a transaction and compute its running balance

        Args:
            account: Account receiving the transaction
            amount: Signed amount; negative for debits
            transaction_date: When the transaction happened (defaults to now)

        Returns:
            The persisted Transaction with its computed balance

        Raises:
            ValidationError: If the amount is zero or not a finite number,
                or the date lies in the future
            TransactionOrderError: If dated before the latest transaction
            InsufficientFundsError: If overdrafts are disabled and the
                resulting balance would be negative
        """
        try:
            amount = to_amount(amount)
        except (InvalidOperation, ValueError):
            raise ValidationError(f"Invalid amount: {amount}")
        if not amount.is_finite():
            raise ValidationError(f"Invalid amount: {amount}")
        if amount.is_zero():
            raise ValidationError("Transaction amount must not be zero")

        now = utc_now()
        transaction_date = ensure_utc(transaction_date) if transaction_date else now
        if transaction_date > now:
            raise ValidationError(f"Transaction date {transaction_date.isoformat()} is in the future")

        with self.db.storage.atomic():
            latest = self.db.latest_transaction(account.id)
            if latest is None:
                previous_balance = Decimal("0.00")
                sequence = 1
            else:
                if transaction_date < latest.transaction_date:
                    raise TransactionOrderError(
                        f"Transaction date {transaction_date.isoformat()} is before the latest "
                        f"transaction on account {account.id} ({latest.transaction_date.isoformat()})"
                    )
                previous_balance = latest.balance
                sequence = latest.sequence + 1

            balance = previous_balance + amount
            if not self.allow_overdraft and balance < 0:
                raise InsufficientFundsError(
                    f"Insufficient funds: balance {previous_balance} cannot cover {amount}"
                )

            transaction = Transaction(
                id=str(uuid.uuid4()),
                created_at=now,
                updated_at=now,
                account_id=account.id,
                transaction_date=transaction_date,
                amount=amount,
                balance=balance,
                sequence=sequence
            )
            self.db.insert_transaction(transaction)

        log_action(
            self.logger, "info", "Transaction appended",
            login_id=account.login_id, action="append_transaction",
            resource=f"transaction:{transaction.id}",
            extra={
                "account_id": account.id,
                "amount": str(amount),
                "balance": str(balance),
                "sequence": sequence
            }
        )
        return transaction

    def list_transactions(self, account: Account) -> List[Transaction]:
        """Most recent transactions first, at most TRANSACTION_LIST_LIMIT of them"""
        return self.db.transactions_by_account(account.id, limit=TRANSACTION_LIST_LIMIT)

    def get_transaction(self, account: Account, transaction_id: str) -> Optional[Transaction]:
        transaction = self.db.transaction_by_id(transaction_id)
        if transaction is None or transaction.account_id != account.id:
            return None
        return transaction

    def get_balance(self, account: Account) -> Decimal:
        latest = self.db.latest_transaction(account.id)
        return latest.balance if latest else Decimal("0.00")
