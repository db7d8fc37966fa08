"""One-time codes delivered through the Telegram bot"""

import hmac
import logging
import secrets
from datetime import datetime
from typing import Callable
from sqlalchemy.orm import Session

from data4me_wallet.config import Settings
from data4me_wallet.domain.exceptions import ExternalServiceError, NotFoundError, ValidationError
from data4me_wallet.infrastructure.clients.telegram import TelegramClient
from data4me_wallet.infrastructure.database.models import OneTimeCode
from data4me_wallet.infrastructure.database.repositories import OneTimeCodeRepository
from data4me_wallet.infrastructure.database.unit_of_work import run_in_transaction
from data4me_wallet.infrastructure.observability.metrics import otp_delivery_counter
from data4me_wallet.utils.date_utils import expires_after, utcnow

WELCOME_MESSAGE = (
    "Welcome to DATA4ME! 🎉\n\n"
    "Share your phone number with this bot and we'll send your 6-digit "
    "verification code here when you register on our website."
)

LINKED_MESSAGE = "Your phone number {phone_number} is linked. Return to the website and request your code."

CODE_MESSAGE = (
    "🔐 Your DATA4ME verification code is: {code}\n\n"
    "This code will expire in {ttl} minutes.\n\n"
    "If you didn't request this code, please ignore this message."
)


class OneTimeCodeService:
    """
    Issue and verify short-lived numeric codes bound to a phone number.

    Contract:
    - One live code per phone: issuing replaces the previous code
    - Codes expire `otp_ttl_minutes` after issue
    - A code verifies at most once
    """

    def __init__(
        self,
        db: Session,
        settings: Settings,
        telegram: TelegramClient,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.settings = settings
        self.telegram = telegram
        self.clock = clock
        self.codes = OneTimeCodeRepository(db)

    def link_chat(self, phone_number: str, chat_id: str, contact_user_id, sender_user_id) -> OneTimeCode:
        """
        Remember which Telegram chat receives codes for this phone.

        Only a contact the sender shared about themselves is accepted: the
        contact's Telegram user id must equal the message sender's id.

        Raises:
            ValidationError: Contact belongs to someone else or carries no user id
        """
        if contact_user_id is None or sender_user_id is None or str(contact_user_id) != str(sender_user_id):
            raise ValidationError("Shared contact is not the sender's own number")
        owner = str(sender_user_id)
        return run_in_transaction(self.db, lambda: self.codes.link_chat(phone_number, chat_id, owner))

    async def issue(self, phone_number: str) -> str:
        """
        Generate a fresh code and deliver it over Telegram.

        The new code is committed only after Telegram accepts the message, so
        a delivery failure leaves the previous state untouched.

        Raises:
            NotFoundError: Phone was never linked to the bot
            ExternalServiceError: Telegram could not be reached
        """
        record = self.codes.get_by_phone_number(phone_number, for_update=True)
        if record is None or not record.telegram_chat_id:
            self.db.rollback()
            raise NotFoundError("Please start the Telegram bot and share your phone number first")

        code = self._generate_code()
        now = self.clock()
        record.code = code
        record.expires_at = expires_after(self.settings.otp_ttl_minutes, now)
        record.verified = False
        record.created_at = now
        chat_id = record.telegram_chat_id
        self.db.flush()

        try:
            await self.telegram.send_message(
                chat_id,
                CODE_MESSAGE.format(code=code, ttl=self.settings.otp_ttl_minutes),
            )
        except ExternalServiceError:
            self.db.rollback()
            otp_delivery_counter.labels(outcome="failed").inc()
            logging.warning("One-time code delivery failed", extra={"phone_number": phone_number})
            raise

        self.db.commit()
        otp_delivery_counter.labels(outcome="sent").inc()
        return code

    def verify(self, phone_number: str, code: str) -> bool:
        """
        Check a code and mark it used.

        Stages the change on the session without committing, so a caller can
        consume the code in the same unit of work as whatever it unlocks.
        """
        record = self.codes.get_by_phone_number(phone_number, for_update=True)
        if record is None or record.code is None or record.expires_at is None:
            return False
        if not hmac.compare_digest(record.code.encode("utf-8"), (code or "").encode("utf-8")):
            return False
        if self.clock() > record.expires_at:
            return False
        if record.verified:
            return False

        record.verified = True
        self.db.flush()
        return True

    def _generate_code(self) -> str:
        length = self.settings.otp_length
        return str(secrets.randbelow(9 * 10 ** (length - 1)) + 10 ** (length - 1))
