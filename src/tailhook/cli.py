from __future__ import annotations

"""
Command-line entry point.

Usage examples:
  tailhook --file /var/log/app.log --pattern 'ERROR|FATAL' --webhook https://hooks.example.com/alerts

  # Settings from YAML, with the retry count overridden on the command line
  TAILHOOK_CONFIG_PATH=/etc/tailhook.yaml tailhook --retries 5
"""

import argparse
from typing import List, Optional

from .delivery.retry import RetryPolicy
from .delivery.webhook import WebhookClient
from .errors import TailhookError
from .ingestion.event_source import WatchdogEventSource
from .ingestion.tail_cursor import TailCursor
from .matching import Matcher
from .orchestrator import Orchestrator, SignalSubscription
from .utils.config import CONFIG_PATH, WatchConfig, build_watch_config, load_config, merge_settings
from .utils.logger import logger, setup_logging


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="tailhook", description="Post log lines matching a pattern to a webhook")
    ap.add_argument("--file", help="Log file to watch")
    ap.add_argument("--pattern", help="Regular expression searched for in each new line")
    ap.add_argument("--webhook", help="URL receiving a JSON POST per matching line")
    ap.add_argument("--retries", type=int, help="Additional delivery attempts after a failure (default: 3)")
    ap.add_argument("--retry-delay", dest="retry_delay", type=float, help="Seconds between delivery attempts (default: 5)")
    ap.add_argument("--backoff", type=float, help="Multiplier applied to the delay after each retry (default: 1, fixed)")
    ap.add_argument("--polling", action="store_true", default=None, help="Use the portable polling observer")
    ap.add_argument("--config", default=CONFIG_PATH, help="YAML config file (default: $TAILHOOK_CONFIG_PATH)")
    ap.add_argument("--log-level", dest="log_level", help="Log level (default: INFO)")
    ap.add_argument("--log-file", dest="log_file", help="Also write logs to this file")
    return ap


def run(cfg: WatchConfig) -> None:
    """Open the watch and tail until a termination signal arrives."""
    logger.info("Watching {} for /{}/", cfg.target_path, cfg.pattern.pattern)
    events = WatchdogEventSource(cfg.directory, polling=cfg.polling)
    try:
        cursor = TailCursor.open(cfg.target_path)
    except TailhookError:
        events.close()
        raise
    policy = RetryPolicy(max_retries=cfg.max_retries, delay=cfg.retry_delay, backoff=cfg.backoff)
    with WebhookClient(cfg.webhook_url, policy) as client:
        orch = Orchestrator(cfg.file_name, events, cursor, Matcher(cfg.pattern), client)
        with SignalSubscription(orch.shutdown):
            orch.run()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    overrides = {k: v for k, v in vars(args).items() if k != "config"}
    setup_logging(args.log_level or "INFO", args.log_file)
    try:
        settings = merge_settings(load_config(args.config), overrides)
        setup_logging(settings["log_level"], settings["log_file"])
        cfg = build_watch_config(settings)
        run(cfg)
    except TailhookError as exc:
        logger.error("{}", exc)
        return 1
    return 0


__all__ = ["build_parser", "main", "run"]
