#!/usr/bin/env python3
"""
Interactive Microhal chat

Reads one input per line from stdin, prints one response per line, and keeps
the instance saved in the background while chatting.

Usage:
    python -m models.microhal.chat --env development
    python -m models.microhal.chat --name alice --order 4 --new
"""
import sys
import argparse

from models.microhal.errors import ConfigurationError, PersistenceError
from models.microhal.microhal import Microhal
from models.microhal.service import MicrohalService
from utils.config_loader import load_config, validate_config
from utils.loggers.json_logger import get_logger, log_json
from utils.storage.json_store import MicrohalJsonStore


def build_parser():
    parser = argparse.ArgumentParser(description="Chat with a Microhal instance")
    parser.add_argument("--config-dir", help="Directory holding microhal*.yaml files")
    parser.add_argument("--env", default="development",
                        help="Environment override to load (default: development)")
    parser.add_argument("--name", help="Instance name (default: from config)")
    parser.add_argument("--order", type=int, help="Chain order for a new instance")
    parser.add_argument("--max-length", type=int,
                        help="Maximum generated characters per direction")
    parser.add_argument("--save-interval", type=float, help="Seconds between snapshots")
    parser.add_argument("--data-dir", help="Directory of instance documents")
    parser.add_argument("--new", action="store_true",
                        help="Create a new instance, overwriting a saved one")
    return parser


def apply_overrides(config, args):
    """
    Copy command-line overrides into the `microhal` config section.
    """
    settings = config["microhal"]
    overrides = {
        "name": args.name,
        "order": args.order,
        "max_length": args.max_length,
        "save_interval": args.save_interval,
        "data_dir": args.data_dir,
    }
    for key, value in overrides.items():
        if value is not None:
            settings[key] = value
    validate_config(config)
    return config


def open_instance(settings, store, logger, create=False):
    """
    Load the configured instance, creating it if asked to or if none is saved.
    """
    name = settings["name"]
    if create or not store.exists(name):
        return Microhal.create(name, settings["order"], store, logger)
    return Microhal.load(name, store, logger)


def clean_input(line):
    """
    Strip the line break and turn lone surrogates into U+FFFD.

    Undecodable stdin bytes arrive as surrogates under `surrogateescape`;
    one replacement character stands in for each bad byte.
    """
    text = line.rstrip("\n")
    return "".join("\ufffd" if "\ud800" <= char <= "\udfff" else char for char in text)


def chat(service, stdin=None, stdout=None):
    """
    Feed stdin lines through a started service until EOF.

    Returns:
        int: Number of inputs answered
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    inbound, outbound = service.inbound, service.outbound
    answered = 0
    for line in stdin:
        text = clean_input(line)
        if not text:
            continue
        inbound.put(text)
        print(outbound.get(), file=stdout, flush=True)
        answered += 1
    return answered


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        config = apply_overrides(load_config(args.env, config_dir=args.config_dir), args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    log_settings = config["logging"]
    logger = get_logger(
        f"microhal_{args.env}",
        log_file=log_settings["log_file"],
        level=log_settings["level"],
        console_json=log_settings["console_json"],
    )
    settings = config["microhal"]
    store = MicrohalJsonStore(settings["data_dir"], logger=logger)

    try:
        microhal = open_instance(settings, store, logger, create=args.new)
        if microhal.order != settings["order"]:
            logger.warning("Saved instance keeps its own order", extra={
                "metrics": {"saved_order": microhal.order, "configured_order": settings["order"]}
            })
        service = MicrohalService(
            microhal,
            store,
            logger=logger,
            max_length=settings["max_length"],
            save_interval=settings["save_interval"],
            outbound_queue_size=settings["outbound_queue_size"],
        )
        service.start()
    except (ConfigurationError, PersistenceError) as e:
        logger.critical(f"Cannot start Microhal: {e}", exc_info=True)
        return 1

    # Bad bytes become surrogates for clean_input() instead of a decode error
    if hasattr(sys.stdin, "reconfigure"):
        sys.stdin.reconfigure(errors="surrogateescape")

    try:
        answered = chat(service)
    except KeyboardInterrupt:
        answered = None
    finally:
        service.stop()

    log_json(logger, "Chat session ended", {"name": microhal.name, "answered": answered})
    return 0


if __name__ == "__main__":
    sys.exit(main())
