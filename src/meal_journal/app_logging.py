"""Logging configuration helpers."""

import logging
from pathlib import Path

ACTION_LOGGER = "meal_journal.actions"


def configure_logging(action_log_path: str | None = None) -> None:
    """Configure application logging with a single stream handler."""
    logger = logging.getLogger("meal_journal")
    logger.setLevel(logging.INFO)
    if action_log_path:
        _attach_action_file(action_log_path)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def _attach_action_file(path: str) -> None:
    action_logger = logging.getLogger(ACTION_LOGGER)
    target = str(Path(path).resolve())
    for handler in action_logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
            return
    Path(target).parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(target, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter("%(asctime)s %(message)s"))
    action_logger.addHandler(file_handler)


def log_action(identity: str | None, action: str, status: int | str | None = None) -> None:
    """Record a user action line such as "+15550100 just did save meal"."""
    message = f"{identity or 'unknown user'} just did {action}"
    if status:
        message += f" [status: {status}]"
    logging.getLogger(ACTION_LOGGER).info(message)
