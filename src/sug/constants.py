#!/usr/bin/env python

"""Constants and configuration values for sug"""

from pathlib import Path

# Application Information
APP_NAME = "sug"
APP_VERSION = "0.3.0"

# File and Directory Constants
DEFAULT_CONFIG_FILE = ".sug.yaml"
HOME_DIR = Path.home()
APP_DATA_DIR = HOME_DIR / ".sug"
LOGS_DIR = APP_DATA_DIR / "logs"
LOG_FILE_PATH = LOGS_DIR / "sug.log"
CONFIG_FILE_PATH = HOME_DIR / DEFAULT_CONFIG_FILE

# File Size Limits
MAX_CONFIG_FILE_SIZE = 1024 * 1024  # 1MB
MAX_LOG_FILE_SIZE = 1024 * 1024 * 5  # 5MB
LOG_BACKUP_COUNT = 2

# Providers, in auto-detection order
PROVIDER_ENV_VARS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "groq": "GROQ_API_KEY",
}

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-sonnet-latest",
    "gemini": "gemini-1.5-flash-latest",
    "groq": "llama-3.1-70b-versatile",
}

DEFAULT_BASE_URLS = {
    "openai": "https://api.openai.com/v1",
    "anthropic": "https://api.anthropic.com",
    "gemini": "https://generativelanguage.googleapis.com",
    "groq": "https://api.groq.com/openai/v1",
}

ANTHROPIC_VERSION = "2023-06-01"
ANTHROPIC_MAX_TOKENS = 1000

# Environment overrides for persisted options
ENV_PREFIX = "SUG_"

# Timeouts (Go-style duration strings, parsed by config.parse_duration)
COMPLETE_TIMEOUT = "30s"
PREDICT_TIMEOUT = "10s"
PROBE_TIMEOUT = 2  # seconds, for git/kubectl/alias probes

# History
DEFAULT_HISTORY_LIMIT = 5
HISTORY_FILES = {
    "zsh": ".zsh_history",
    "bash": ".bash_history",
}
FALLBACK_HISTORY_FILE = ".history"
OUTPUT_UNAVAILABLE = "[command output not available]"

# Prompt limits
COMPLETION_ALIAS_LIMIT = 10
PREDICTION_ALIAS_LIMIT = 15
OUTPUT_TRUNCATE_LENGTH = 200
OUTPUT_TRUNCATE_LINES = 3
ERROR_TRUNCATE_LENGTH = 100
TRUNCATED_MARKER = "...(truncated)"

# Alias sources
ALIAS_FILES = [".aliases", ".bash_aliases", ".zsh_aliases"]
SHELL_RC_FILES = {
    "zsh": "~/.zshrc",
    "bash": "~/.bashrc",
}

# Logging Configuration
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Command Exit Codes
SUCCESS_EXIT_CODE = 0
ERROR_EXIT_CODE = 1
INTERRUPTED_EXIT_CODE = 130
