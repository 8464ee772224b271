"""Telegram notification module for signal alerts."""

import asyncio
import html
from datetime import datetime, timezone
from typing import Optional

import aiohttp

from aisignal.brain.prompt import sanitize_for_prompt
from aisignal.errors import NotifierError
from aisignal.signals.base import MarketSnapshot, Signal
from aisignal.utils.logger import get_logger

logger = get_logger(__name__)

SIGNAL_EMOJI = {"buy": "🟢", "sell": "🔴", "hold": "⚪"}


def format_signal_message(
    snapshot: MarketSnapshot,
    signal: Signal,
    now: Optional[datetime] = None,
) -> str:
    """Render the HTML alert for a final signal.

    Args:
        snapshot: Request snapshot
        signal: Final (filtered) signal
        now: Timestamp to print (defaults to current UTC time)

    Returns:
        Message text for Telegram's HTML parse mode
    """
    now = now or datetime.now(timezone.utc)
    emoji = SIGNAL_EMOJI.get(signal.signal, "📡")
    symbol = html.escape(sanitize_for_prompt(snapshot.symbol))
    tf = html.escape(sanitize_for_prompt(snapshot.tf))

    lines = [
        f"{emoji} <b>AI Signal: {signal.signal.upper()}</b>",
        f"📈 <b>{symbol} | {tf}</b>",
        f"📊 Close: {snapshot.ohlc.close:.5f}",
    ]
    if signal.confidence:
        lines.append(f"<b>Confidence:</b> {signal.confidence}")
    lines.append(f"🎯 <i>{html.escape(signal.explanation)}</i>")
    lines.append(f"<code>{now.strftime('%Y-%m-%d %H:%M:%S UTC')}</code>")
    return "\n".join(lines)


class TelegramNotifier:
    """Send signal alerts via Telegram bot.

    Best effort: failures are logged and reported as False, never raised.
    """

    BASE_URL = "https://api.telegram.org/bot{token}/sendMessage"

    def __init__(self, bot_token: str, chat_id: str, timeout: float = 5.0) -> None:
        """Initialize Telegram notifier.

        Args:
            bot_token: Bot API token
            chat_id: Destination chat
            timeout: Total wall-clock budget per message in seconds
        """
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.timeout = timeout
        self.enabled = bool(self.bot_token and self.chat_id)
        self._session: Optional[aiohttp.ClientSession] = None

        if self.enabled:
            logger.info("Telegram notifier enabled")
        else:
            logger.warning("Telegram notifier disabled (token/chat_id not set)")

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure aiohttp session exists."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def _post(self, text: str, parse_mode: str) -> None:
        """Deliver one message.

        Raises:
            NotifierError: On non-200 status, network error or timeout
        """
        session = await self._ensure_session()
        url = self.BASE_URL.format(token=self.bot_token)
        payload = {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": parse_mode,
        }

        try:
            async with session.post(
                url,
                json=payload,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status != 200:
                    error = await response.text()
                    raise NotifierError(f"Telegram API error {response.status}: {error[:200]}")
        except asyncio.TimeoutError as e:
            raise NotifierError(f"Telegram send timed out after {self.timeout:g}s") from e
        except aiohttp.ClientError as e:
            raise NotifierError(f"Network error: {e}") from e

    async def send_message(self, text: str, parse_mode: str = "HTML") -> bool:
        """Send a message to Telegram.

        Args:
            text: Message text (supports HTML formatting)
            parse_mode: Parse mode (HTML or Markdown)

        Returns:
            True if sent successfully
        """
        if not self.enabled:
            return False

        try:
            await self._post(text, parse_mode)
        except NotifierError as e:
            logger.error("Failed to send Telegram message", error=e.message)
            return False

        logger.debug("Telegram message sent")
        return True

    async def notify_signal(self, snapshot: MarketSnapshot, signal: Signal) -> bool:
        """Notify about a final signal.

        Returns:
            True if sent successfully
        """
        return await self.send_message(format_signal_message(snapshot, signal))

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
