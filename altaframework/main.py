"""Main entry point for altaframework.

Initializes logging in two phases (defaults then config-driven),
builds an ExtendedClient from settings.yaml/.env, and runs it until
the connection closes or SIGTERM/SIGINT arrives.

Key functions:
    main: Async entry point -- logging, config, client, signal
        handlers, then the gateway connection.
    run: Synchronous wrapper that calls asyncio.run(main()).
"""

import asyncio
import signal
import sys

import structlog

from . import __version__
from .exceptions import AltaError
from .logging_config import setup_logging


async def main():
    """Main async entry point."""
    # Phase 1: defaults, cache_logger_on_first_use=False
    setup_logging()
    logger = structlog.get_logger("altaframework")

    logger.info("altaframework_starting", version=__version__)

    from .client import ExtendedClient
    from .commands.builtin import register_builtin_commands
    from .config import get_config

    config = get_config()
    config.validate()

    # Phase 2: reconfigure with real config, cache_logger_on_first_use=True
    setup_logging(config)

    client = ExtendedClient.from_config(config)
    if config.builtin_commands:
        register_builtin_commands(client)

    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def handle_shutdown(sig):
        logger.info("shutdown_signal_received", signal=sig.name)
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, handle_shutdown, sig)
        except NotImplementedError:
            # Windows: fall back to signal.signal for SIGINT (Ctrl+C)
            if sig == signal.SIGINT:
                signal.signal(
                    signal.SIGINT,
                    lambda s, f: handle_shutdown(signal.SIGINT),
                )

    try:
        client_task = asyncio.create_task(client.authorize())
        shutdown_task = asyncio.create_task(shutdown_event.wait())

        done, _ = await asyncio.wait(
            {client_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED
        )
        if client_task in done:
            shutdown_task.cancel()
            # Re-raises fatal errors such as UnsupportedAccountError
            client_task.result()
        else:
            client_task.cancel()
            try:
                await client_task
            except asyncio.CancelledError:
                pass

    except Exception as e:
        logger.error("client_error", error=str(e), exc_type=type(e).__name__)
        raise
    finally:
        await client.close()
        logger.info("altaframework_stopped")


def run():
    """Synchronous entry point for the ``altaframework`` console script."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
    except AltaError as e:
        print(f"altaframework: fatal: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    run()
