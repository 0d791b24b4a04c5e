#!/usr/bin/env python3
"""
Main entry point for the IRC channel service
"""

import argparse
import asyncio
import json
import logging
import os
import sys

from .accounts import list_account_ids, resolve_account
from .config import IrcConfig, create_config_watcher, load_irc_config
from .errors import ConfigurationError, ProtocolError, log_error
from .gateway import IrcGateway
from .logging_config import LoggerConfigurator
from .logs.logger import logger
from .monitor import InboundMessage
from .probe import ProbeService
from .signal_handler import SignalHandler

DEFAULT_CONFIG_FILE = "irc_channel.json"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="irc_channel", description="IRC account connections for the chat platform"
    )
    parser.add_argument(
        "--config",
        default=os.environ.get("IRC_CONF_FILE", DEFAULT_CONFIG_FILE),
        help="Path to the JSON config file (env IRC_CONF_FILE)",
    )
    parser.add_argument(
        "--probe",
        action="store_true",
        help="Probe every enabled account once and exit",
    )
    return parser.parse_args(argv)


def log_inbound(message: InboundMessage) -> None:
    logger.log_event(
        "inbound",
        "message",
        account=message.account_id,
        target=message.target,
        nick=message.nick,
        text=message.text,
        hostmask=message.hostmask,
    )


def report_protocol_error(error: Exception) -> None:
    if isinstance(error, ProtocolError):
        logger.log_event(
            "inbound",
            "protocol_error",
            level=logging.WARNING,
            account=error.data.get("account_id"),
            error=str(error),
        )


async def run_probes(config: IrcConfig, service: ProbeService | None = None) -> int:
    """Probe each enabled account; returns the process exit code."""
    service = service or ProbeService()
    failures = 0
    account_ids = list_account_ids(config)
    if not account_ids:
        logger.log_event("app", "no_accounts", level=logging.WARNING)
        return 1
    for account_id in account_ids:
        try:
            account = resolve_account(config, account_id)
        except ConfigurationError as e:
            log_error("Probe skipped", e)
            failures += 1
            continue
        result = await service.probe(account.server_config)
        print(json.dumps({"account_id": account_id, **result.to_dict()}))
        if not result.ok:
            failures += 1
    return 1 if failures else 0


async def run_gateway(config: IrcConfig, config_file: str) -> int:
    """Run every enabled account until SIGINT/SIGTERM."""
    signals = SignalHandler()
    signals.setup_signal_handlers(asyncio.get_running_loop())

    gateway = IrcGateway(
        config, inbound_handler=log_inbound, error_handler=report_protocol_error
    )
    started = await gateway.start_all()
    logger.log_event(
        "app", "accounts_started", started=len(started), total=len(list_account_ids(config))
    )
    for issue in gateway.collect_status_issues():
        logger.log_event("app", "status_issue", level=logging.WARNING, issue=issue)

    watcher = await create_config_watcher(config_file, gateway.apply_config)
    try:
        await signals.wait()
    finally:
        watcher.stop()
        await gateway.stop_all()
    return 0


async def main(argv: list[str] | None = None) -> int:
    """Load configuration and run either the gateway or the probe mode.

    Returns:
        Process exit code.
    """
    args = parse_args(argv)
    try:
        config = load_irc_config(args.config)
    except ConfigurationError as e:
        log_error("Configuration error", e)
        return 1
    if config is None:
        logger.log_event("app", "no_config", level=logging.ERROR, path=args.config)
        return 1

    if args.probe:
        return await run_probes(config)

    print("🚀 Starting IRC channel service")
    try:
        return await run_gateway(config, args.config)
    finally:
        logging.info("✅ Application shutdown complete")


def run() -> None:
    """Synchronous entry point for the application.

    Raises:
        SystemExit: Always, with the exit code of ``main``.
    """
    LoggerConfigurator().configure()
    try:
        code = asyncio.run(main())
    except (KeyboardInterrupt, asyncio.CancelledError):
        code = 0
    except Exception as e:
        log_error("Top-level error", e)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    run()
