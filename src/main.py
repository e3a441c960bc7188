import asyncio
import logging
import sys
from pathlib import Path

import logfire
from pydantic import ValidationError

from config import Settings, get_settings
from engine import EngineFactory
from ports import PortUnavailableError, find_available_port
from server import ServerSettings, ThinkingServer
from tools import create_default_registry

HOME_DIR = Path.home()
CONFIG_DIR = HOME_DIR / ".deepseek-thinker"
LOG_FILE = CONFIG_DIR / "server.log"


def validate_paths() -> None:
    CONFIG_DIR.mkdir(exist_ok=True, parents=True)

    # create an empty log file if missing
    if not LOG_FILE.exists():
        LOG_FILE.touch()


def load_settings() -> Settings:
    """Load settings, exiting before anything is served if any are missing."""
    try:
        return get_settings()
    except ValidationError as e:
        for error in e.errors():
            variable = ".".join(str(part) for part in error["loc"])
            if error["type"] == "missing":
                print(f"Missing required environment variable: {variable}", file=sys.stderr)
            else:
                print(f"Invalid value for {variable}: {error['msg']}", file=sys.stderr)
        sys.exit(1)


def setup_logging(settings: Settings) -> logging.Logger:
    # Initialize Logfire if enabled
    if settings.logfire_enabled:
        try:
            logfire.configure(
                token=settings.logfire_token,
                service_name=settings.logfire_service_name,
            )

            # Instrument HTTPX for upstream request tracing
            logfire.instrument_httpx(capture_all=True)

            print(f"Logfire initialized for service: {settings.logfire_service_name}")
        except Exception as e:
            print(f"Failed to initialize Logfire: {e}")
    else:
        logfire.configure(send_to_logfire=False, console=False)

    # Set logging level based on debug setting
    log_level = logging.DEBUG if settings.debug else logging.INFO

    logging.basicConfig(
        filename=LOG_FILE,
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger = logging.getLogger("deepseek-thinker")

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    formatter = logging.Formatter("%(name)s - %(levelname)s - %(message)s")
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


async def main() -> None:
    validate_paths()

    settings = load_settings()

    logger = setup_logging(settings)

    try:
        port = await find_available_port(
            settings.port,
            max_attempts=settings.port_search_limit,
            host=settings.host,
            log=logger,
        )
    except PortUnavailableError as e:
        logger.error(f"Cannot start server: {e}")
        sys.exit(1)

    if port != settings.port:
        logger.info(f"Port {settings.port} was not available, using port {port} instead")

    engine = EngineFactory.create_engine(
        settings.engine_type, settings.get_engine_config()
    )
    registry = create_default_registry(engine)

    server_settings = ServerSettings(
        host=settings.host,
        port=port,
        messages_path=settings.messages_path,
        ping_interval=settings.sse_ping_interval,
        debug=settings.debug,
    )

    server = ThinkingServer(logger, registry, server_settings, engine=engine)

    try:
        await server.listen()
    except Exception as e:
        print(f"Error running server: {e}")
        sys.exit(1)


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
