# snova/config_handler.py

import os
import sys
import json
import re
import logging
from typing import Any, Dict, Optional

# --- Module-specific logger ---
logger = logging.getLogger(__name__)

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
PACKAGED_CONFIG_DIR = os.path.join(PACKAGE_DIR, "config")
DEFAULT_CONFIG_FILENAME = "default_config.json"
USER_CONFIG_FILENAME = "user_config.json"

# Matches a string literal (kept) or a // or /* */ comment (dropped)
_COMMENT_PATTERN = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)


def strip_json_comments(text: str) -> str:
    return _COMMENT_PATTERN.sub(lambda m: m.group(1) or "", text)


def load_jsonc_file(filepath: str) -> Optional[Dict[str, Any]]:
    """
    Loads a JSON file that may contain single-line (//) and multi-line (/* */) comments.

    Comment markers inside string literals (e.g. 'http://localhost') are left alone.

    Args:
        filepath (str): The full path to the .jsonc or .json file.

    Returns:
        Optional[Dict[str, Any]]: A dictionary with the file's contents,
                                  or None if the file is not found or cannot be parsed.
    """
    if not os.path.exists(filepath):
        logger.info(f"Configuration file not found at: {filepath}")
        return None

    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            file_content = f.read()

        return json.loads(strip_json_comments(file_content))

    except json.JSONDecodeError as e:
        logger.error(f"Error decoding JSON from {filepath}: {e}", exc_info=True)
        print(f"❌ Error: Could not parse the file at {filepath}. Please check for syntax errors.", file=sys.stderr)
        return None
    except IOError as e:
        logger.error(f"Error reading file {filepath}: {e}", exc_info=True)
        print(f"❌ Error: Could not read the file at {filepath}.", file=sys.stderr)
        return None


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """ Helper function to recursively merge dictionaries. """
    merged = base.copy()
    for key, value in override.items():
        if isinstance(value, dict) and key in merged and isinstance(merged[key], dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value
    return merged


def user_config_dir() -> str:
    """Returns the per-user config directory ($XDG_CONFIG_HOME/snova)."""
    base = os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    return os.path.join(base, "snova")


def resolve_path(config: Dict[str, Any], key: str, default: str) -> str:
    """Reads config['paths'][key], expanding '~' and environment variables."""
    value = config.get("paths", {}).get(key) or default
    return os.path.expandvars(os.path.expanduser(value))


def load_configuration(config_dir: Optional[str] = None) -> Dict[str, Any]:
    """
    Loads the packaged default configuration and merges the optional user file.
    The default_config.json file is mandatory for the application to start.
    """
    default_config_path = os.path.join(PACKAGED_CONFIG_DIR, DEFAULT_CONFIG_FILENAME)
    base_config = load_jsonc_file(default_config_path)
    if base_config is None:
        error_msg = f"CRITICAL ERROR: Default configuration file not found or failed to parse at '{default_config_path}'."
        logger.critical(error_msg)
        raise FileNotFoundError(error_msg)

    config_dir = config_dir or user_config_dir()
    user_config_path = os.path.join(config_dir, USER_CONFIG_FILENAME)
    user_settings = load_jsonc_file(user_config_path)
    if user_settings:
        logger.info(f"Loaded and merged user configuration from {user_config_path}")
        config = merge_configs(base_config, user_settings)
    else:
        logger.info(f"{user_config_path} not found or is invalid. No user configuration overrides applied.")
        config = base_config

    config.setdefault("paths", {}).setdefault("user_config_dir", config_dir)
    return config
