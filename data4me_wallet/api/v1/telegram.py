"""POST /v1/telegram/webhook - bot updates that link phones to chats"""

import logging
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, Header, Request

from data4me_wallet.api.dependencies import get_app_settings, get_otp_service, get_request_id
from data4me_wallet.config import Settings
from data4me_wallet.domain.exceptions import AuthenticationError, ExternalServiceError, ValidationError
from data4me_wallet.domain.phone import normalize_phone_number
from data4me_wallet.services.otp import LINKED_MESSAGE, WELCOME_MESSAGE, OneTimeCodeService

router = APIRouter()


@router.post("/telegram/webhook")
async def telegram_webhook(
    update: Dict[str, Any],
    request: Request,
    secret_token: Optional[str] = Header(default=None, alias="X-Telegram-Bot-Api-Secret-Token"),
    settings: Settings = Depends(get_app_settings),
    codes: OneTimeCodeService = Depends(get_otp_service),
):
    """
    Handle a Telegram bot update.

    - `/start` replies with instructions
    - A contact the sender shared about themselves links that phone to the chat
    - Contacts of other people and malformed payloads are logged and ignored

    Always acknowledges once the update is authenticated so Telegram does not
    redeliver it.
    """
    if settings.telegram_webhook_secret and secret_token != settings.telegram_webhook_secret:
        raise AuthenticationError("Invalid webhook secret")

    message = update.get("message")
    if not isinstance(message, dict):
        return {"ok": True}
    chat = message.get("chat")
    chat_id = chat.get("id") if isinstance(chat, dict) else None
    if chat_id is None or isinstance(chat_id, (dict, list)):
        return {"ok": True}
    chat_id = str(chat_id)
    sender = message.get("from")
    sender_id = sender.get("id") if isinstance(sender, dict) else None
    contact = message.get("contact")
    text = message.get("text")
    request_id = get_request_id(request)

    try:
        if isinstance(contact, dict) and isinstance(contact.get("phone_number"), (str, int)):
            phone_number = normalize_phone_number(str(contact["phone_number"]))
            codes.link_chat(phone_number, chat_id, contact.get("user_id"), sender_id)
            logging.info("Telegram chat linked", extra={"request_id": request_id, "phone_number": phone_number})
            await codes.telegram.send_message(chat_id, LINKED_MESSAGE.format(phone_number=phone_number))
        elif isinstance(text, str) and text.startswith("/start"):
            await codes.telegram.send_message(chat_id, WELCOME_MESSAGE)
    except ValidationError as e:
        logging.warning(f"Telegram update ignored: {e.message}", extra={"request_id": request_id, "chat_id": chat_id})
    except ExternalServiceError as e:
        logging.error(f"Telegram update not handled: {e.message}", extra={"request_id": request_id})

    return {"ok": True}
