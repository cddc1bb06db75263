#!/usr/bin/env python

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.logging import RichHandler

from .constants import (
    LOG_FILE_PATH, LOG_FORMAT, LOG_DATE_FORMAT,
    MAX_LOG_FILE_SIZE, LOG_BACKUP_COUNT,
)


class SugLogger:
    """Centralized logging system for sug.

    stdout carries the suggestion for the shell front-end, so console
    logging always goes to stderr.
    """

    _instance: Optional['SugLogger'] = None

    def __new__(cls) -> 'SugLogger':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if hasattr(self, '_initialized'):
            return

        self._initialized = True
        self.configured = False
        self.debug_enabled = False
        self.console = Console(stderr=True)
        self.logger = logging.getLogger("sug")
        self.logger.addHandler(logging.NullHandler())

    def configure(self, debug: bool = False, log_file: Optional[Path] = None):
        """Attach handlers; called once by the command-line entry point"""
        if self.configured:
            return
        self.configured = True
        self.debug_enabled = debug

        console_handler = RichHandler(
            console=self.console,
            show_time=False,
            show_path=False,
            markup=False
        )
        console_handler.setLevel(logging.DEBUG if debug else logging.WARNING)
        self.logger.addHandler(console_handler)

        # The debug log file is only written when asked for
        if debug:
            self._add_file_handler(log_file or LOG_FILE_PATH)

        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

    def _add_file_handler(self, log_file: Path):
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file, maxBytes=MAX_LOG_FILE_SIZE, backupCount=LOG_BACKUP_COUNT
            )
        except OSError as e:
            self.logger.warning(f"Could not open log file {log_file}: {e}")
            return
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
        self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message"""
        self.logger.debug(message, **kwargs)

    def info(self, message: str, **kwargs):
        """Log info message"""
        self.logger.info(message, **kwargs)

    def log_api_request(self, provider: str, model: str, prompt_length: int, response_length: int):
        """Log API request details"""
        self.debug(f"API Request - Provider: {provider}, Model: {model}, Prompt: {prompt_length} chars, Response: {response_length} chars")

    def log_partial_data(self, source: str, detail: str):
        """Log a non-fatal gap in collected context or history.

        Logged at INFO, so it only shows up with debug enabled.
        """
        self.info(f"Incomplete {source}: {detail}")


# Global logger instance
logger = SugLogger()
