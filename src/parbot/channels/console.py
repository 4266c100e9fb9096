"""Console chat adapter for local runs."""

from __future__ import annotations

import sys
import threading
import uuid
from collections import deque
from typing import TextIO

from loguru import logger
from rich.console import Console
from rich.markup import escape

from parbot.errors import StaleSessionError
from parbot.ports import ChatType, Message

MAX_HISTORY = 200


def parse_line(line: str, default_sender: str) -> tuple[str, str] | None:
    """Split ``name: text`` into sender and content."""
    stripped = line.strip()
    if not stripped:
        return None
    name, sep, content = stripped.partition(":")
    name = name.strip()
    if sep and name and " " not in name:
        return name, content.strip()
    return default_sender, stripped


class ConsoleChat:
    """Chat port fed by ``name: text`` lines from a text stream.

    Lines without a name prefix are attributed to ``default_sender``. Replies
    submitted by the bot are printed to the console and appended to the chat.
    """

    name = "console"

    def __init__(
        self,
        bot_name: str,
        *,
        stream: TextIO | None = None,
        console: Console | None = None,
        default_sender: str = "you",
        chat_type: ChatType = ChatType.GLOBAL,
    ) -> None:
        self._bot_name = bot_name
        self._stream = stream if stream is not None else sys.stdin
        self._console = console or Console()
        self._default_sender = default_sender
        self._chat_type = chat_type
        self._messages: deque[Message] = deque(maxlen=MAX_HISTORY)
        self._lock = threading.Lock()
        self._closed = threading.Event()
        self._reader: threading.Thread | None = None

    def start(self) -> None:
        if self._reader is not None:
            return
        self._reader = threading.Thread(target=self._read, name="parbot-console", daemon=True)
        self._reader.start()
        logger.info("console.channel.start sender={}", self._default_sender)

    def feed(self, line: str) -> Message | None:
        parsed = parse_line(line, self._default_sender)
        if parsed is None:
            return None
        sender, content = parsed
        return self._append(sender, content, self._chat_type)

    def get_messages(self, chat_type: ChatType | None = None) -> list[Message]:
        self._ensure_open()
        with self._lock:
            return [message for message in self._messages if chat_type is None or message.chat_type == chat_type]

    def submit_message(self, text: str, chat_type: ChatType | None = None) -> None:
        self._ensure_open()
        self._append(self._bot_name, text, chat_type or self._chat_type)
        self._console.print(f"[bold cyan]{escape(self._bot_name)}[/bold cyan]: {escape(text)}")

    def close(self) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        logger.info("console.channel.stopped")

    def _append(self, sender: str, content: str, chat_type: ChatType) -> Message:
        message = Message(sender=sender, content=content, identity=uuid.uuid4().hex, chat_type=chat_type)
        with self._lock:
            self._messages.append(message)
        return message

    def _ensure_open(self) -> None:
        if self._closed.is_set():
            raise StaleSessionError("console chat is closed")

    def _read(self) -> None:
        for line in self._stream:
            if self._closed.is_set():
                return
            self.feed(line)
        logger.info("console.channel.eof")
