import logging
from typing import Callable, Optional

import typer
from typing_extensions import Annotated

from telegram_bot_runtime.api import TelegramBotApi, TelegramBotApiError, UnauthorizedError
from telegram_bot_runtime.bot import Bot, create_bot
from telegram_bot_runtime.logger import setup_logging
from telegram_bot_runtime.runtime_config import (
    DEFAULT_BASE_URL,
    TELEGRAM_API_BASE_URL_ENV,
    TELEGRAM_BOT_TOKEN_ENV,
    TELEGRAM_FALLBACK_REPLY_ENV,
    TELEGRAM_LOG_LEVEL_ENV,
    RuntimeConfig,
    load_envs,
)

# Global factory function - set by create_app()
_bot_factory: Optional[Callable[[RuntimeConfig], Bot]] = None


def default_bot_factory(config: RuntimeConfig) -> Bot:
    """Default factory for creating Bot instances."""
    return create_bot(config)


def _require_token(token: Optional[str]) -> str:
    if not token:
        typer.echo(
            "Error: bot token is required. Please set the TELEGRAM_BOT_TOKEN environment variable or use the --token option",
            err=True,
        )
        raise typer.Exit(code=1)
    return token


def run(
    token: Annotated[
        Optional[str],
        typer.Option("--token", envvar=TELEGRAM_BOT_TOKEN_ENV, help="Telegram bot token"),
    ] = None,
    base_url: Annotated[
        str,
        typer.Option(envvar=TELEGRAM_API_BASE_URL_ENV, help="Bot API base URL"),
    ] = DEFAULT_BASE_URL,
    max_attempts: Annotated[
        int,
        typer.Option(help="Attempts per call when the provider rate limits the bot"),
    ] = 3,
    request_timeout: Annotated[
        float, typer.Option(help="Transport timeout for a single call, in seconds")
    ] = 30.0,
    poll_timeout: Annotated[
        int, typer.Option(help="Long-poll timeout for getUpdates, in seconds")
    ] = 30,
    prefix: Annotated[
        str, typer.Option("--prefix", help="Character that starts a command")
    ] = "/",
    history_depth: Annotated[
        int, typer.Option(help="Maximum history entries kept per user")
    ] = 50,
    session_ttl: Annotated[
        float, typer.Option(help="Seconds before an idle form session is dropped")
    ] = 3600.0,
    retry_network_errors: Annotated[
        bool,
        typer.Option(
            "--retry-network-errors",
            help="Also retry calls that fail at the transport level",
        ),
    ] = False,
    fallback_reply: Annotated[
        Optional[str],
        typer.Option(
            envvar=TELEGRAM_FALLBACK_REPLY_ENV,
            help="Reply sent to plain text that no form is waiting for",
        ),
    ] = None,
    log_level: Annotated[
        str, typer.Option(envvar=TELEGRAM_LOG_LEVEL_ENV, help="Console log level")
    ] = "INFO",
) -> None:
    """Start the bot and poll for updates until interrupted."""
    cfg = RuntimeConfig(
        bot_token=_require_token(token),
        base_url=base_url,
        max_attempts=max_attempts,
        request_timeout=request_timeout,
        poll_timeout=poll_timeout,
        command_prefix=prefix,
        history_max_depth=history_depth,
        form_session_ttl=session_ttl,
        retry_on_network_error=retry_network_errors,
        fallback_reply=fallback_reply,
        log_level=log_level,
    )
    log_file = setup_logging(cfg.log_level)
    logger = logging.getLogger(__name__)
    logger.info("Starting bot against %s (log file %s)", cfg.base_url, log_file)

    factory = _bot_factory or default_bot_factory
    bot = factory(cfg)
    try:
        bot.run_forever()
    except UnauthorizedError as e:
        typer.echo(f"Error: the bot token was rejected: {e}", err=True)
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        print("\nExiting...")
    finally:
        bot.close()


def whoami(
    token: Annotated[
        Optional[str],
        typer.Option("--token", envvar=TELEGRAM_BOT_TOKEN_ENV, help="Telegram bot token"),
    ] = None,
    base_url: Annotated[
        str,
        typer.Option(envvar=TELEGRAM_API_BASE_URL_ENV, help="Bot API base URL"),
    ] = DEFAULT_BASE_URL,
) -> None:
    """Check the token by asking the provider who the bot is."""
    cfg = RuntimeConfig(bot_token=_require_token(token), base_url=base_url)
    with TelegramBotApi(cfg) as api:
        try:
            me = api.get_me()
        except TelegramBotApiError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1)
    typer.echo(f"@{me.get('username', '?')} (id {me.get('id', '?')})")


def create_app(
    bot_factory: Optional[Callable[[RuntimeConfig], Bot]] = None,
) -> typer.Typer:
    """
    Create and configure the Typer application.

    Args:
        bot_factory: Factory function to create Bot instances

    Returns:
        Typer application
    """
    # Load the token and related settings from .env if not already set in the environment
    load_envs()

    # Set global factory function
    global _bot_factory
    _bot_factory = bot_factory

    app = typer.Typer(rich_markup_mode=None)
    app.command("run")(run)
    app.command("whoami")(whoami)
    return app


# Create default app instance for the console script
app = create_app()


if __name__ == "__main__":
    app()
