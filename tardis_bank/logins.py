"""
Login Management Module

Registration, email verification, authentication, password change and login
deletion. Authentication failures are deliberately vague: an unknown email,
an unverified login and a wrong password all produce the same error.
"""

from typing import Any, Callable, Optional, Tuple
import uuid

from .database import BankDatabase
from .accounts import AccountManager
from .models import Login, utc_now
from .security import PasswordHasher, TokenService
from .notifications import VerificationNotifier
from .errors import AuthenticationError, ConflictError, ValidationError, InvalidTokenError
from .logging_config import get_logger, log_action


class LoginManager:
    """Manages login credentials and their lifecycle"""

    def __init__(
        self,
        db: BankDatabase,
        account_manager: AccountManager,
        hasher: PasswordHasher,
        tokens: TokenService,
        notifier: Optional[VerificationNotifier] = None,
        password_min_length: int = 1,
        auto_verify: bool = False
    ):
        self.db = db
        self.account_manager = account_manager
        self.hasher = hasher
        self.tokens = tokens
        self.notifier = notifier
        self.password_min_length = password_min_length
        self.auto_verify = auto_verify
        self.logger = get_logger("tardis_bank.logins")

    def _check_password(self, password: str) -> None:
        if len(password) < max(self.password_min_length, 1):
            raise ValidationError(
                f"Password must be at least {max(self.password_min_length, 1)} characters"
            )

    def register(self, email: str, password: str,
                 defer: Optional[Callable[..., Any]] = None) -> Tuple[Login, str]:
        """
        Register a new, unverified login

        Args:
            email: Address the verification mail goes to
            password: Plain password, hashed before storage
            defer: Schedules the verification mail instead of sending it
                inline, for example ``BackgroundTasks.add_task``

        Returns:
            The stored login and the verification token mailed to it
        """
        email = email.strip()
        if not email or "@" not in email:
            raise ValidationError("A valid email address is required")
        self._check_password(password)

        if self.db.email_registered(email):
            raise ConflictError("Email already registered")

        password_hash, salt = self.hasher.hash(password)
        now = utc_now()
        login = Login(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            email=email,
            password_hash=password_hash,
            password_salt=salt,
            verified=self.auto_verify
        )
        self.db.insert_login(login)

        token = self.tokens.issue_verification_token(login.id)
        if self.notifier and not login.verified:
            if defer:
                defer(self.notifier.send_verification, login, token)
            else:
                self.notifier.send_verification(login, token)

        log_action(
            self.logger, "info", "Login registered",
            login_id=login.id, action="register", resource=f"login:{login.id}"
        )
        return login, token

    def verify_email(self, token: str) -> Login:
        """Mark the login named by a verification token as verified"""
        login_id = self.tokens.decode(token, TokenService.VERIFY)
        with self.db.storage.atomic():
            if self.db.find_login(login_id) is None:
                raise InvalidTokenError("Invalid token")
            login = self.db.update_login_set_verified(login_id)
        log_action(
            self.logger, "info", "Email verified",
            login_id=login.id, action="verify_email", resource=f"login:{login.id}"
        )
        return login

    def authenticate(self, email: str, password: str) -> str:
        """Check credentials and return a bearer token"""
        login = self.db.login_by_email(email)
        if login is None or not self.hasher.verify(password, login.password_hash, login.password_salt):
            log_action(
                self.logger, "warning", "Authentication failed",
                action="login_failed", resource="auth"
            )
            raise AuthenticationError()

        log_action(
            self.logger, "info", "Login authenticated",
            login_id=login.id, action="login", resource="auth"
        )
        return self.tokens.issue_access_token(login.id)

    def get_login(self, login_id: str) -> Login:
        """Load the login behind an authenticated request"""
        return self.db.login_by_id(login_id)

    def change_password(self, login_id: str, old_password: str, new_password: str) -> Login:
        login = self.db.login_by_id(login_id)
        if not self.hasher.verify(old_password, login.password_hash, login.password_salt):
            raise AuthenticationError()
        self._check_password(new_password)

        password_hash, salt = self.hasher.hash(new_password)
        login = self.db.update_login_password(login_id, password_hash, salt)
        log_action(
            self.logger, "info", "Password changed",
            login_id=login_id, action="change_password", resource=f"login:{login_id}"
        )
        return login

    def delete_login(self, login_id: str) -> Login:
        """Delete a login together with every account it owns"""
        login = self.db.login_by_id(login_id)
        with self.db.storage.atomic():
            for account in self.account_manager.list_accounts(login_id):
                self.account_manager.delete_account(account)
            self.db.delete_login(login_id)

        log_action(
            self.logger, "info", "Login deleted",
            login_id=login_id, action="delete_login", resource=f"login:{login_id}"
        )
        return login
