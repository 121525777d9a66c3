"""Texts and keyboards shown in the chat (Uzbek / English)."""

from __future__ import annotations

from html import escape
from typing import Any

from authbot.domain.events import RENEW_CODE_ACTION

PARSE_MODE_HTML = "HTML"
START_REACTION = "🆒"

SHARE_CONTACT_BUTTON = "Share Contact / Kontaktni yuborish"
RENEW_BUTTON = "🔄 Yangilash / Renew"
GET_NEW_CODE_BUTTON = "🔄 Yangi kod olish / Get new code"

SHARE_CONTACT_FIRST = (
    "🇺🇿 Iltimos, avval kontaktingizni yuboring\n\n"
    "🇺🇸 Please share your contact first"
)
SHARE_CONTACT_FIRST_ALERT = (
    "Avval kontaktingizni yuboring / Please share your contact first"
)
SHARE_OWN_CONTACT = (
    "🇺🇿 Iltimos, o'z kontaktingizni yuboring\n\n"
    "🇺🇸 Please share your own contact"
)
CODE_STILL_VALID = "Eski kodingiz hali ham kuchda ☝️ / Your code is still valid ☝️"
CODE_STILL_VALID_REPLY = "🇺🇿 Eski kodingiz hali ham kuchda ☝️\n\n🇺🇸 Your code is still valid ☝️"
CODE_EXPIRED = "⚠️ 🇺🇿 Kod muddati tugadi\n\n🇺🇸 Code has expired"
INSTRUCTIONS = (
    "🇺🇿 🔑 Yangi kod olish uchun /login ni bosing\n\n"
    "🇺🇸 🔑 To get a new code click /login"
)
GENERIC_ERROR_ALERT = "An error occurred. Please try again."


def greeting(first_name: str | None, brand_name: str) -> str:
    name = first_name or "User"
    return (
        f"🇺🇿\nSalom {name} 👋 {brand_name}'ning rasmiy botiga xush kelibsiz\n\n"
        "⬇ Kontaktingizni yuboring (tugmani bosib)\n\n"
        f"🇺🇸\nHi {name} 👋\nWelcome to {brand_name} official bot\n\n"
        "⬇ Send your contact (by clicking button)"
    )


def code_text(code: str) -> str:
    return f"🔒Code: <code>{escape(code)}</code>"


def contact_keyboard() -> dict[str, Any]:
    return {
        "keyboard": [[{"text": SHARE_CONTACT_BUTTON, "request_contact": True}]],
        "resize_keyboard": True,
        "one_time_keyboard": True,
    }


def remove_keyboard() -> dict[str, Any]:
    return {"remove_keyboard": True}


def renew_keyboard(*, expired: bool = False) -> dict[str, Any]:
    label = GET_NEW_CODE_BUTTON if expired else RENEW_BUTTON
    return {"inline_keyboard": [[{"text": label, "callback_data": RENEW_CODE_ACTION}]]}
