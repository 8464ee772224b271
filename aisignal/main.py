"""Entry point: build the service from settings and serve HTTP."""

from aiohttp import web

from aisignal.brain.gateway import ChatCompletionGateway
from aisignal.server import create_app
from aisignal.service import SignalService
from aisignal.utils.config import Settings, get_settings
from aisignal.utils.logger import get_logger
from aisignal.utils.telegram import TelegramNotifier

logger = get_logger(__name__)


def build_service(settings: Settings) -> SignalService:
    """Wire gateway, notifier and shared state from settings."""
    if not settings.pre_shared_token.get_secret_value():
        logger.warning("PRE_SHARED_TOKEN not set - every request will be rejected")

    gateway = ChatCompletionGateway(
        api_key=settings.model_api_key.get_secret_value(),
        endpoint=settings.model_endpoint,
        model=settings.model_name,
        temperature=settings.model_temperature,
        max_tokens=settings.model_max_tokens,
        timeout=settings.model_timeout,
    )
    notifier = TelegramNotifier(
        bot_token=settings.telegram_bot_token,
        chat_id=settings.telegram_chat_id,
        timeout=settings.notifier_timeout,
    )
    return SignalService(settings, gateway=gateway, notifier=notifier)


def main() -> None:
    """Run the HTTP server until interrupted."""
    settings = get_settings()
    app = create_app(build_service(settings))

    logger.info(
        "Starting signal server",
        host=settings.host,
        port=settings.port,
        profile=settings.profile,
        env=settings.env,
    )
    web.run_app(app, host=settings.host, port=settings.port, print=None)


if __name__ == "__main__":
    main()
