"""Local identity service: accounts in the application database.

Registration and password reset use a six-digit code. With no mail server the
code is handed back to the caller (and logged) for the UI to show.
"""
from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from sqlmodel import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from fatura.core.errors import FaturaError
from fatura.core.models import AppUser
from fatura.data.db import session_scope, get_session
from fatura.data.models import AccountRecord

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
PBKDF2_ITERATIONS = 200_000


@dataclass(frozen=True)
class SignUpStep:
    next_step: str  # "CONFIRM_SIGN_UP" | "DONE"
    code: Optional[str] = None


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _hash_password(password: str, salt: str) -> str:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt), PBKDF2_ITERATIONS).hex()


def _new_code() -> str:
    return f"{secrets.randbelow(1_000_000):06d}"


def _check_password(password: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise FaturaError.validation(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")


def _to_user(row: AccountRecord) -> AppUser:
    name = (row.name or "").strip() or row.email.split("@")[0] or "User"
    return AppUser(id=str(row.id), name=name, email=row.email)


class IdentityService:
    """Session lookup, register/confirm, login/logout and password reset."""

    def __init__(self) -> None:
        self._user: Optional[AppUser] = None

    def get_session_user(self) -> Optional[AppUser]:
        return self._user

    def register(self, name: str, email: str, password: str) -> SignUpStep:
        addr = _normalize_email(email)
        if "@" not in addr:
            raise FaturaError.validation("Enter a valid email address.")
        _check_password(password)
        salt = secrets.token_hex(16)
        code = _new_code()
        try:
            with session_scope() as s:
                s.add(AccountRecord(
                    email=addr,
                    name=(name or "").strip(),
                    password_hash=_hash_password(password, salt),
                    salt=salt,
                    confirm_code=code,
                ))
        except IntegrityError as e:
            raise FaturaError.collaborator("An account with this email already exists.") from e
        except SQLAlchemyError as e:
            logger.exception("Registration failed for %s", addr)
            raise FaturaError.collaborator("Registration failed.") from e
        logger.info("Registered %s; confirmation code %s", addr, code)
        return SignUpStep(next_step="CONFIRM_SIGN_UP", code=code)

    def _account(self, s, email: str) -> Optional[AccountRecord]:
        return s.exec(select(AccountRecord).where(AccountRecord.email == _normalize_email(email))).first()

    def confirm(self, email: str, code: str) -> None:
        with session_scope() as s:
            row = self._account(s, email)
            if row is None or not row.confirm_code or not hmac.compare_digest(row.confirm_code, (code or "").strip()):
                raise FaturaError.collaborator("The confirmation code is not valid.")
            row.confirmed = True
            row.confirm_code = None
            s.add(row)

    def login(self, email: str, password: str) -> AppUser:
        with get_session() as s:
            row = self._account(s, email)
            if row is None or not hmac.compare_digest(row.password_hash, _hash_password(password or "", row.salt)):
                raise FaturaError.collaborator("Incorrect email or password.")
            if not row.confirmed:
                raise FaturaError.collaborator("Confirm your account before signing in.")
            self._user = _to_user(row)
        logger.info("Signed in %s", self._user.email)
        return self._user

    def logout(self) -> None:
        self._user = None

    def start_password_reset(self, email: str) -> str:
        code = _new_code()
        with session_scope() as s:
            row = self._account(s, email)
            if row is None:
                raise FaturaError.collaborator("No account uses this email.")
            row.reset_code = code
            s.add(row)
        logger.info("Password reset code for %s: %s", _normalize_email(email), code)
        return code

    def complete_password_reset(self, email: str, code: str, new_password: str) -> None:
        _check_password(new_password)
        with session_scope() as s:
            row = self._account(s, email)
            if row is None or not row.reset_code or not hmac.compare_digest(row.reset_code, (code or "").strip()):
                raise FaturaError.collaborator("The reset code is not valid.")
            row.salt = secrets.token_hex(16)
            row.password_hash = _hash_password(new_password, row.salt)
            row.reset_code = None
            s.add(row)
