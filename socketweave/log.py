"""Structured logging helpers used throughout the package."""

from __future__ import annotations

import logging

logger = logging.getLogger("socketweave")


def _render(msg: str, args: tuple) -> str:
    """Join a message with key=value pairs taken from alternating args."""
    pairs = []
    items = iter(args)
    for key in items:
        try:
            value = next(items)
        except StopIteration:
            pairs.append(f"!BADKEY={key}")
            break
        pairs.append(f"{key}={value}")
    return " ".join([msg, *pairs])


def error(msg: str, err: BaseException | str) -> None:
    """Log ``msg`` at error level together with the error text."""
    logger.error("%s", _render(msg, ("err", str(err))))


def info(msg: str, *args) -> None:
    """Log ``msg`` at info level; ``args`` are alternating keys and values."""
    logger.info("%s", _render(msg, args))