from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

import authbot.domain.services as domain_services
from authbot.application import messages
from authbot.application.expiration import ExpirationScheduler
from authbot.application.keyed_lock import KeyedLock
from authbot.application.retry import RetryPolicy, edit_with_retries, with_retries
from authbot.domain.entities import Account, ActiveCode, normalize_phone
from authbot.domain.errors import AccountNotFound, ChatApiError, ContactOwnershipMismatch
from authbot.domain.events import (
    ChatEvent,
    ChatUser,
    ContactSharedEvent,
    LoginEvent,
    MessageHandle,
    RenewCallbackEvent,
    StartEvent,
)
from authbot.domain.ports.chat_port import ChatPort
from authbot.domain.ports.instruction_flags import InstructionFlagsPort
from authbot.domain.ports.unit_of_work import UnitOfWorkPort

logger = logging.getLogger(__name__)


class LifecycleController:
    """
    Owns every write to the code store.

    Per account the state is NONE (no account), ACTIVE (live code) or EXPIRED
    (record past expires_at). Check-then-issue runs under a per-account lock
    in-process and under a row lock on the account inside the transaction.
    Delivering the code message and arming its expiry happen under the same
    in-process lock, so the visible message always follows the stored code.
    """

    def __init__(
        self,
        *,
        uow_factory: Callable[[], UnitOfWorkPort],
        chat: ChatPort,
        scheduler: ExpirationScheduler,
        instruction_flags: InstructionFlagsPort,
        code_ttl_seconds: int = 20,
        brand_name: str = "Viloyat Taxi",
        retry_policy: RetryPolicy | None = None,
        locks: KeyedLock | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._chat = chat
        self._scheduler = scheduler
        self._flags = instruction_flags
        self._ttl = code_ttl_seconds
        self._brand_name = brand_name
        self._retry_policy = retry_policy or RetryPolicy()
        self._locks = locks or KeyedLock()
        self._handlers: dict[type, Callable[..., Awaitable[None]]] = {
            StartEvent: self.on_start,
            LoginEvent: self.on_login,
            ContactSharedEvent: self.on_contact_shared,
            RenewCallbackEvent: self.on_renew_callback,
        }

    async def handle(self, event: ChatEvent) -> None:
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"unsupported chat event: {type(event).__name__}")
        await handler(event)

    # -- store transitions -------------------------------------------------

    async def issue(self, account_id: int) -> ActiveCode:
        """Replace the account's code unconditionally (contact share)."""
        async with self._locks.hold(account_id):
            return await self._issue_locked(account_id, only_if_expired=False)

    async def renew(self, account_id: int) -> ActiveCode | None:
        """Issue a new code only if no live one exists. None means rejected."""
        async with self._locks.hold(account_id):
            return await self._issue_locked(account_id, only_if_expired=True)

    async def _issue_locked(
        self, account_id: int, *, only_if_expired: bool
    ) -> ActiveCode | None:
        async with self._uow_factory() as tx:
            await tx.accounts.lock(account_id)
            if only_if_expired:
                current = await tx.codes.find_active(account_id)
                if current is not None:
                    logger.info(
                        "renewal rejected; code still valid",
                        extra={"account_id": account_id},
                    )
                    return None
            record = await tx.codes.issue(
                account_id, domain_services.generate_code(), self._ttl
            )
            await tx.commit()

        logger.info(
            "code issued",
            extra={
                "account_id": account_id,
                "expires_at": record.expires_at.isoformat(),
            },
        )
        return record

    async def _revoke(self, record: ActiveCode) -> None:
        """Drop a code the user never got to see, so renewal is possible again."""
        async with self._uow_factory() as tx:
            await tx.codes.invalidate(record.account_id, code=record.code)
            await tx.commit()

    async def _find_account(self, user: ChatUser) -> Account:
        async with self._uow_factory() as tx:
            account = await tx.accounts.get_by_external_id(user.external_id)
        if account is None:
            raise AccountNotFound(user.external_id)
        return account

    # -- chat events ---------------------------------------------------------

    async def on_start(self, event: StartEvent) -> None:
        try:
            await self._chat.set_reaction(event.message, messages.START_REACTION)
        except ChatApiError as e:
            logger.info("could not react to /start", extra={"error": e.description})

        await with_retries(
            lambda: self._chat.send_message(
                event.message.chat_id,
                messages.greeting(event.user.first_name, self._brand_name),
                reply_markup=messages.contact_keyboard(),
            ),
            self._retry_policy,
            name="send_greeting",
        )

    async def on_contact_shared(self, event: ContactSharedEvent) -> None:
        contact = event.contact
        chat_id = event.message.chat_id
        try:
            self._check_contact_owner(event)
        except ContactOwnershipMismatch:
            logger.warning(
                "foreign contact refused",
                extra={"external_id": event.user.external_id},
            )
            await self._reply(
                chat_id,
                messages.SHARE_OWN_CONTACT,
                reply_markup=messages.contact_keyboard(),
                name="send_share_own_contact",
            )
            return

        async with self._uow_factory() as tx:
            account = await tx.accounts.upsert_from_contact(
                external_id=event.user.external_id,
                phone_number=normalize_phone(contact.phone_number),
                first_name=contact.first_name,
                last_name=contact.last_name,
                username=event.user.username,
            )
            await tx.commit()

        async with self._locks.hold(account.id):
            record = await self._issue_locked(account.id, only_if_expired=False)
            handle = await self._send_code(chat_id, record)
            if handle is not None:
                self._scheduler.arm(account.id, handle, self._ttl)

        if handle is not None:
            await self._send_instructions_once(event.user, chat_id)

    async def on_login(self, event: LoginEvent) -> None:
        chat_id = event.message.chat_id
        try:
            account = await self._find_account(event.user)
        except AccountNotFound:
            await self._reply(
                chat_id,
                messages.SHARE_CONTACT_FIRST,
                reply_markup=messages.contact_keyboard(),
                name="send_share_contact_first",
            )
            return

        async with self._locks.hold(account.id):
            record = await self._issue_locked(account.id, only_if_expired=True)
            if record is None:
                await self._reply(
                    chat_id, messages.CODE_STILL_VALID_REPLY, name="send_code_still_valid"
                )
                return
            handle = await self._send_code(chat_id, record)
            if handle is not None:
                self._scheduler.arm(account.id, handle, self._ttl)

    async def on_renew_callback(self, event: RenewCallbackEvent) -> None:
        try:
            await self._renew_from_callback(event)
        except Exception:
            logger.exception(
                "renew callback failed",
                extra={"external_id": event.user.external_id},
            )
            await self._answer(event.callback_id, messages.GENERIC_ERROR_ALERT)

    async def _renew_from_callback(self, event: RenewCallbackEvent) -> None:
        try:
            account = await self._find_account(event.user)
        except AccountNotFound:
            await self._answer(event.callback_id, messages.SHARE_CONTACT_FIRST_ALERT)
            return

        async with self._locks.hold(account.id):
            record = await self._issue_locked(account.id, only_if_expired=True)
            if record is None:
                await self._answer(event.callback_id, messages.CODE_STILL_VALID)
                return

            await self._answer(event.callback_id)

            if event.message is None:
                # private chat: the chat id is the user id
                handle = await self._send_code(event.user.id, record)
            else:
                handle = await self._edit_code(event.message, record)
            if handle is not None:
                self._scheduler.arm(account.id, handle, self._ttl)

    # -- delivery --------------------------------------------------------------

    async def _send_code(self, chat_id: int, record: ActiveCode) -> MessageHandle | None:
        try:
            return await with_retries(
                lambda: self._chat.send_message(
                    chat_id,
                    messages.code_text(record.code),
                    reply_markup=messages.renew_keyboard(),
                    parse_mode=messages.PARSE_MODE_HTML,
                ),
                self._retry_policy,
                name="send_code",
            )
        except ChatApiError as e:
            logger.error(
                "code message not delivered; revoking code",
                extra={"account_id": record.account_id, "error": e.description},
            )
            await self._revoke(record)
            return None

    async def _edit_code(
        self, message: MessageHandle, record: ActiveCode
    ) -> MessageHandle | None:
        try:
            await edit_with_retries(
                self._chat,
                message,
                messages.code_text(record.code),
                self._retry_policy,
                reply_markup=messages.renew_keyboard(),
                parse_mode=messages.PARSE_MODE_HTML,
            )
        except ChatApiError as e:
            logger.error(
                "code message not updated; revoking code",
                extra={"account_id": record.account_id, "error": e.description},
            )
            await self._revoke(record)
            return None
        return message

    async def _reply(
        self,
        chat_id: int,
        text: str,
        *,
        name: str,
        reply_markup: dict[str, Any] | None = None,
    ) -> None:
        try:
            await with_retries(
                lambda: self._chat.send_message(chat_id, text, reply_markup=reply_markup),
                self._retry_policy,
                name=name,
            )
        except ChatApiError as e:
            logger.warning(
                "reply not delivered",
                extra={"chat_id": chat_id, "operation": name, "error": e.description},
            )

    async def _answer(self, callback_id: str, text: str | None = None) -> None:
        try:
            await self._chat.answer_callback_query(
                callback_id, text=text, show_alert=text is not None
            )
        except ChatApiError as e:
            logger.warning(
                "could not acknowledge callback query", extra={"error": e.description}
            )

    async def _send_instructions_once(self, user: ChatUser, chat_id: int) -> None:
        if not await self._flags.mark_once(user.external_id):
            return
        try:
            await with_retries(
                lambda: self._chat.send_message(
                    chat_id,
                    messages.INSTRUCTIONS,
                    reply_markup=messages.remove_keyboard(),
                    parse_mode=messages.PARSE_MODE_HTML,
                ),
                self._retry_policy,
                name="send_instructions",
            )
        except ChatApiError as e:
            logger.warning(
                "instructions not delivered", extra={"error": e.description}
            )
            await self._flags.clear(user.external_id)

    @staticmethod
    def _check_contact_owner(event: ContactSharedEvent) -> None:
        owner = event.contact.user_id
        if owner is not None and owner != event.user.id:
            raise ContactOwnershipMismatch(event.user.external_id)
