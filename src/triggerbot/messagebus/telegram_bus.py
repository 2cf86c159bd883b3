"""Telegram message bus implementation."""

import asyncio
import logging
from dataclasses import dataclass

from telegram import Update
from telegram.ext import Application, ContextTypes, MessageHandler, filters

from triggerbot.messagebus.base import (
    MessageBus,
    MessageContext,
    MessageEvent,
    OnMessage,
    split_message,
    wait_for_shutdown,
)
from triggerbot.utils.config import TelegramConfig

logger = logging.getLogger(__name__)

MESSAGE_LIMIT = 4096


@dataclass
class TelegramContext(MessageContext):
    """Context for Telegram messages; replies go to chat_id."""

    chat_id: str


class TelegramBus(MessageBus[TelegramContext]):
    """Telegram platform implementation using python-telegram-bot long polling."""

    platform_name = "telegram"

    def __init__(self, config: TelegramConfig):
        self.config = config
        self.application: Application | None = None
        self._watch_task: asyncio.Task | None = None
        self._stopping: asyncio.Event | None = None

    def is_allowed(self, context: TelegramContext) -> bool:
        allowed = self.config.allowed_user_ids
        return not allowed or context.user_id in allowed

    def to_event(self, text: str, user_id: str, chat_id: str) -> MessageEvent[TelegramContext]:
        """Build a dispatcher event; Telegram has no per-chat bot permissions."""
        mentions: tuple[str, ...] = ()
        if self.application and self.application.bot.username:
            mentions = (f"@{self.application.bot.username}",)

        return MessageEvent(
            content=text,
            context=TelegramContext(user_id=user_id, chat_id=chat_id),
            bus=self,
            mentions=mentions,
        )

    def _event_from_update(self, update: Update) -> MessageEvent[TelegramContext] | None:
        message = update.message
        if not (message and message.text and message.from_user and update.effective_chat):
            return None
        return self.to_event(
            message.text,
            user_id=str(message.from_user.id),
            chat_id=str(update.effective_chat.id),
        )

    async def run(self, on_message: OnMessage[TelegramContext]) -> None:
        if self.application is not None:
            raise RuntimeError("TelegramBus already running")

        self.application = Application.builder().token(self.config.bot_token).build()
        self._stopping = asyncio.Event()

        async def handle_message(update: Update, _: ContextTypes.DEFAULT_TYPE) -> None:
            event = self._event_from_update(update)
            if event is None:
                return
            logger.debug(f"Telegram message from {event.author_id} in {event.context.chat_id}")
            try:
                await on_message(event)
            except Exception as e:
                logger.error(f"Error in message callback: {e}")

        # Slash-style prefixes are ordinary text for the dispatcher
        self.application.add_handler(MessageHandler(filters.TEXT, handle_message))

        await self.application.initialize()
        await self.application.start()
        if self.application.updater:
            await self.application.updater.start_polling()
        logger.info("TelegramBus started")

        self._watch_task = asyncio.create_task(
            self._watch_updater(self.application, self._stopping), name="telegram-updater"
        )
        await self._watch_task

    @staticmethod
    async def _watch_updater(application: Application, stopping: asyncio.Event) -> None:
        """Return once stop() was requested, raise if polling died on its own."""
        while not stopping.is_set():
            updater = application.updater
            if updater is not None and not updater.running:
                raise RuntimeError("Telegram updater stopped unexpectedly")
            try:
                await asyncio.wait_for(stopping.wait(), timeout=1.0)
            except asyncio.TimeoutError:
                continue

    async def reply(self, content: str, context: TelegramContext) -> None:
        """Send `content` to the originating chat, split at the Telegram length limit."""
        if self.application is None:
            raise RuntimeError("TelegramBus not started")

        for chunk in split_message(content, MESSAGE_LIMIT):
            await self.application.bot.send_message(chat_id=int(context.chat_id), text=chunk)
        logger.debug(f"Sent Telegram reply to {context.chat_id}")

    async def stop(self) -> None:
        application, self.application = self.application, None
        if application is None:
            return

        if self._stopping is not None:
            self._stopping.set()
        if application.updater and application.updater.running:
            await application.updater.stop()
        await application.stop()
        await application.shutdown()

        await wait_for_shutdown(self._watch_task)
        self._watch_task = None
        self._stopping = None
        logger.info("TelegramBus stopped")
