"""
Bank system wiring and authentication dependencies
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..config import TardisConfig, get_config
from ..storage import StorageInterface, create_storage
from ..database import BankDatabase
from ..security import PasswordHasher, TokenService
from ..notifications import VerificationNotifier, Mailer, create_mailer
from ..accounts import AccountManager
from ..logins import LoginManager
from ..transactions import TransactionProcessor
from ..schedules import ScheduleManager, ScheduleEvaluator
from ..hypermedia import Caller, ANONYMOUS
from ..models import Account
from ..errors import InvalidTokenError


class BankSystem:
    """All ledger components wired over one storage backend"""

    def __init__(self, storage: StorageInterface, config: Optional[TardisConfig] = None,
                 mailer: Optional[Mailer] = None):
        config = config or get_config()
        self.config = config
        self.storage = storage
        self.db = BankDatabase(storage)

        self.hasher = PasswordHasher()
        self.tokens = TokenService(
            secret=config.jwt_secret,
            algorithm=config.jwt_algorithm,
            access_expiry_hours=config.jwt_expiry_hours,
            verification_expiry_hours=config.verification_expiry_hours
        )
        self.mailer = mailer or create_mailer(config.mail_webhook_url, timeout=config.mail_timeout)
        self.notifier = VerificationNotifier(self.mailer, config.public_base_url, config.mail_sender)

        self.account_manager = AccountManager(self.db)
        self.login_manager = LoginManager(
            self.db, self.account_manager, self.hasher, self.tokens,
            notifier=self.notifier,
            password_min_length=config.password_min_length,
            auto_verify=config.auto_verify_logins
        )
        self.transaction_processor = TransactionProcessor(self.db, allow_overdraft=config.allow_overdraft)
        self.schedule_manager = ScheduleManager(self.db)
        self.schedule_evaluator = ScheduleEvaluator(self.db, self.transaction_processor)

    @classmethod
    def from_config(cls, config: Optional[TardisConfig] = None) -> 'BankSystem':
        config = config or get_config()
        storage = create_storage(config.database_url, pool_size=config.database_pool_size)
        return cls(storage, config)

    def close(self) -> None:
        self.storage.close()


# Bearer token security; missing credentials mean an anonymous caller
security = HTTPBearer(auto_error=False)


def get_bank_system(request: Request) -> BankSystem:
    return request.app.state.bank_system


def get_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    system: BankSystem = Depends(get_bank_system)
) -> Caller:
    """Resolve the bearer token, if any, into the calling login"""
    if not credentials:
        return ANONYMOUS
    try:
        login_id = system.tokens.decode(credentials.credentials, TokenService.ACCESS)
    except InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"}
        )
    return Caller(login_id=login_id)


def require_caller(caller: Caller = Depends(get_caller)) -> Caller:
    if not caller.authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return caller


def get_owned_account(
    account_id: str,
    caller: Caller = Depends(require_caller),
    system: BankSystem = Depends(get_bank_system)
) -> Account:
    """Path dependency; another login's account is reported as missing"""
    account = system.account_manager.get_owned_account(caller.login_id, account_id)
    if account is None:
        raise HTTPException(status_code=404, detail="Account not found")
    return account
