"""
Credentials and Token Module

Password hashing with salted scrypt and JWT issuance/validation for access
and email-verification tokens.
"""

import hashlib
import hmac
import secrets
from datetime import datetime, timezone, timedelta
from typing import Tuple

import jwt

from .errors import InvalidTokenError


class PasswordHasher:
    """Salted scrypt password hashing"""

    def __init__(self, n: int = 16384, r: int = 8, p: int = 1):
        self.n = n
        self.r = r
        self.p = p

    def generate_salt(self) -> str:
        return secrets.token_hex(16)

    def _digest(self, password: str, salt: str) -> str:
        return hashlib.scrypt(
            password.encode(),
            salt=salt.encode(),
            n=self.n, r=self.r, p=self.p
        ).hex()

    def hash(self, password: str) -> Tuple[str, str]:
        """Hash a password with a fresh salt, returning (hash, salt)"""
        salt = self.generate_salt()
        return self._digest(password, salt), salt

    def verify(self, password: str, password_hash: str, salt: str) -> bool:
        if not password_hash or not salt:
            return False
        return hmac.compare_digest(self._digest(password, salt), password_hash)


class TokenService:
    """Issues and validates signed JWTs"""

    ACCESS = "access"
    VERIFY = "verify"

    def __init__(self, secret: str, algorithm: str = "HS256",
                 access_expiry_hours: int = 24, verification_expiry_hours: int = 72):
        self.secret = secret
        self.algorithm = algorithm
        self.access_expiry = timedelta(hours=access_expiry_hours)
        self.verification_expiry = timedelta(hours=verification_expiry_hours)

    def _issue(self, login_id: str, purpose: str, lifetime: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": login_id,
            "purpose": purpose,
            "iat": now,
            "exp": now + lifetime,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def issue_access_token(self, login_id: str) -> str:
        return self._issue(login_id, self.ACCESS, self.access_expiry)

    def issue_verification_token(self, login_id: str) -> str:
        return self._issue(login_id, self.VERIFY, self.verification_expiry)

    def decode(self, token: str, purpose: str) -> str:
        """Validate ``token`` for ``purpose`` and return the login id it carries"""
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError("Token expired")
        except jwt.InvalidTokenError:
            raise InvalidTokenError("Invalid token")

        login_id = payload.get("sub")
        if not login_id or payload.get("purpose") != purpose:
            raise InvalidTokenError("Invalid token")
        return login_id
