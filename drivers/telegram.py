# Telegram driver via python-telegram-bot (v20+).
# Uses long-polling to receive messages and the bot API to send.
#
# Config keys (under telegram.<instance_id>):
#   bot_token          – Telegram bot token from @BotFather (required)
#   enabled            – set false to keep the block but skip starting it
#   allowed_users      – numeric Telegram user ids allowed to talk to the bot;
#                        empty / absent = everyone
#   parse_mode         – formatting mode for outgoing text (default Markdown)
#   max_message_length – outgoing text is split into chunks of this size
#                        (default 4096, the Bot API limit)
#   typing_indicator   – show "typing…" while an inbound message is handled
#   notify_on_stop     – emit "disconnected" to the host when stopped
#
# Outbound channel_id is the Telegram chat id (negative for groups,
# e.g. "-100123456789").

from telegram import ReplyParameters, Update
from telegram.error import TelegramError
from telegram.constants import ChatAction
from telegram.ext import Application, ContextTypes, MessageHandler, filters

import services.logger as log
from services.config_schema import TelegramConfig
from services.message import ChannelType
from services.normalize import EventKind
from drivers import BaseDriver, ErrorHandler, EventHandler

l = log.get_logger()

_FILTERS = {
    EventKind.TEXT:     filters.TEXT,
    EventKind.PHOTO:    filters.PHOTO,
    EventKind.DOCUMENT: filters.Document.ALL,
    EventKind.VOICE:    filters.VOICE,
    EventKind.AUDIO:    filters.AUDIO,
    EventKind.VIDEO:    filters.VIDEO,
}


def _chat_id(channel_id: str) -> int | str:
    # Numeric ids go over the wire as integers; "@channelname" stays a string
    return int(channel_id) if channel_id.lstrip("-").isdigit() else channel_id


class TelegramClient:
    """python-telegram-bot ``Application`` wrapped in the driver client protocol."""

    def __init__(self, bot_token: str, parse_mode: str, application: Application | None = None):
        self._app = application or Application.builder().token(bot_token).build()
        self._parse_mode = parse_mode

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def on_event(self, kind: EventKind, handler: EventHandler) -> None:
        async def callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
            if update.message is not None:
                await handler(update.message)

        self._app.add_handler(MessageHandler(_FILTERS[kind], callback))

    def on_error(self, handler: ErrorHandler) -> None:
        async def callback(update: object, context: ContextTypes.DEFAULT_TYPE):
            await handler(context.error)

        self._app.add_error_handler(callback)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        await self._app.initialize()
        await self._app.start()
        # Polling failures reach error handlers only through process_error
        await self._app.updater.start_polling(
            allowed_updates=Update.ALL_TYPES,
            error_callback=self._on_polling_error,
        )

    def _on_polling_error(self, exc: TelegramError) -> None:
        l.warning(f"Telegram polling error: {exc}")
        self._app.create_task(self._app.process_error(None, exc))

    async def stop(self) -> None:
        if self._app.updater is not None and self._app.updater.running:
            await self._app.updater.stop()
        if self._app.running:
            await self._app.stop()
        await self._app.shutdown()

    # ------------------------------------------------------------------
    # Send primitives
    # ------------------------------------------------------------------

    async def send_text(self, channel_id: str, text: str, reply_to_id: str | None = None) -> None:
        await self._app.bot.send_message(
            chat_id=_chat_id(channel_id),
            text=text,
            parse_mode=self._parse_mode,
            reply_parameters=ReplyParameters(message_id=int(reply_to_id)) if reply_to_id else None,
        )

    async def send_photo(self, channel_id: str, source: bytes | str) -> None:
        await self._app.bot.send_photo(chat_id=_chat_id(channel_id), photo=source)

    async def send_document(self, channel_id: str, source: bytes | str, filename: str) -> None:
        await self._app.bot.send_document(chat_id=_chat_id(channel_id), document=source, filename=filename)

    async def send_typing(self, channel_id: str) -> None:
        await self._app.bot.send_chat_action(chat_id=_chat_id(channel_id), action=ChatAction.TYPING)


class TelegramDriver(BaseDriver[TelegramConfig]):
    channel_type = ChannelType.TELEGRAM

    def __init__(self, instance_id: str, config: TelegramConfig, hub):
        super().__init__(instance_id, config, hub)
        self.max_text_length = config.max_message_length

    def create_client(self) -> TelegramClient:
        return TelegramClient(self.config.bot_token, self.config.parse_mode)


from drivers.registry import register
register("telegram", TelegramConfig, TelegramDriver)
