"""Registration and credential checks for users and admins"""

import secrets
import string
import uuid
from typing import Optional
from sqlalchemy.orm import Session

from data4me_wallet.config import Settings
from data4me_wallet.domain.exceptions import (
    AuthenticationError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from data4me_wallet.infrastructure.database.models import Admin, User
from data4me_wallet.infrastructure.database.repositories import AdminRepository, UserRepository
from data4me_wallet.infrastructure.database.unit_of_work import run_in_transaction
from data4me_wallet.infrastructure.security.passwords import hash_password, verify_password
from data4me_wallet.services.otp import OneTimeCodeService
from data4me_wallet.services.referrals import ReferralAccumulator

REFERRAL_CODE_ALPHABET = string.ascii_uppercase + string.digits
REFERRAL_CODE_LENGTH = 8
REFERRAL_CODE_ATTEMPTS = 10


def generate_referral_code() -> str:
    return "".join(secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(REFERRAL_CODE_LENGTH))


class AccountService:
    """Identity store operations: register, authenticate, look up"""

    def __init__(self, db: Session, settings: Settings, codes: Optional[OneTimeCodeService] = None):
        self.db = db
        self.settings = settings
        self.codes = codes
        self.users = UserRepository(db)
        self.admins = AdminRepository(db)
        self.referrals = ReferralAccumulator(db, settings)

    def register(
        self,
        username: str,
        phone_number: str,
        password: str,
        otp: str,
        referral_code: Optional[str] = None,
    ) -> User:
        """
        Create a wallet for a phone number proven by a one-time code.

        Uniqueness is checked before the code is consumed, and the code, the
        new user, and any referral bonus commit together.

        Raises:
            ValidationError: Taken phone/username, bad code, unknown referral code
        """
        if self.codes is None:
            raise RuntimeError("AccountService.register needs a OneTimeCodeService")

        referral_code = (referral_code or "").strip().upper() or None
        password_hash = hash_password(password, self.settings.bcrypt_rounds)

        def work() -> User:
            if self.users.get_by_phone_number(phone_number) is not None:
                raise ValidationError("Phone number already registered")
            if self.users.get_by_username(username) is not None:
                raise ValidationError("Username already taken")
            if not self.codes.verify(phone_number, otp):
                raise ValidationError("Invalid or expired OTP")

            if referral_code:
                self.referrals.record_referral(referral_code)

            return self.users.add(
                User(
                    username=username,
                    phone_number=phone_number,
                    password_hash=password_hash,
                    referral_code=self._unique_referral_code(),
                    referred_by=referral_code,
                    telegram_verified=True,
                )
            )

        return run_in_transaction(self.db, work, self.settings.ledger_max_attempts)

    def authenticate_user(self, username: str, password: str) -> User:
        user = self.users.get_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid credentials")
        return user

    def authenticate_admin(self, username: str, password: str) -> Admin:
        admin = self.admins.get_by_username(username)
        if admin is None or not verify_password(password, admin.password_hash):
            raise AuthenticationError("Invalid credentials")
        return admin

    def get_user(self, user_id: uuid.UUID) -> User:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def ensure_admin(self, username: str, password: str) -> Admin:
        """Create the admin account if it does not exist yet"""

        def work() -> Admin:
            admin = self.admins.get_by_username(username)
            if admin is None:
                admin = self.admins.add(
                    Admin(username=username, password_hash=hash_password(password, self.settings.bcrypt_rounds))
                )
            return admin

        return run_in_transaction(self.db, work)

    def _unique_referral_code(self) -> str:
        for _ in range(REFERRAL_CODE_ATTEMPTS):
            code = generate_referral_code()
            if not self.users.referral_code_exists(code):
                return code
        raise PersistenceError("Could not generate unique referral code")
