#!/usr/bin/env python3
"""
Configuration management for DeutschLehrer.
Handles API keys, tutor settings and the local data directory.
"""

import os
import json
from pathlib import Path
from typing import Optional, Dict, Any
from getpass import getpass

from .logger import get_logger

logger = get_logger(__name__)

# Environment variable that relocates the data directory (tests, portable installs)
HOME_ENV_VAR = 'DEUTSCHLEHRER_HOME'

DEFAULT_SETTINGS: Dict[str, Any] = {
    'pacing_delay': 1.0,       # seconds before a follow-up tutor message
    'feedback_timeout': 30.0,  # seconds to wait for the feedback service
    'history_limit': 6,        # transcript messages sent as context
}


def get_config_dir() -> Path:
    """Get the DeutschLehrer config directory (~/.deutschlehrer)"""
    override = os.getenv(HOME_ENV_VAR)
    config_dir = Path(override) if override else Path.home() / '.deutschlehrer'
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    """Get the config file path"""
    return get_config_dir() / 'config.json'


def get_lessons_path() -> Path:
    """Get the path of the persisted lesson collection"""
    return get_config_dir() / 'lessons.json'


def get_logs_dir() -> Path:
    """Get the log directory"""
    logs_dir = get_config_dir() / 'logs'
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir


def load_config() -> Dict[str, Any]:
    """Load configuration from file"""
    config_path = get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Ignoring unreadable config file %s: %s", config_path, e)
            return {}
    return {}


def save_config(config: Dict[str, Any]) -> None:
    """Save configuration to file"""
    config_path = get_config_path()
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)
    # Secure the file (read/write only for owner)
    config_path.chmod(0o600)


def get_config_value(key: str, default: Any = None) -> Any:
    """Get a specific config value"""
    config = load_config()
    return config.get(key, default)


def set_config_value(key: str, value: Any) -> None:
    """Set a specific config value"""
    config = load_config()
    config[key] = value
    save_config(config)


def get_setting(key: str) -> Any:
    """Get a tutor setting, falling back to DEFAULT_SETTINGS"""
    if key not in DEFAULT_SETTINGS:
        raise KeyError(f"Unknown setting: {key}")
    value = get_config_value(key, DEFAULT_SETTINGS[key])
    default = DEFAULT_SETTINGS[key]
    try:
        return type(default)(value)
    except (TypeError, ValueError):
        logger.warning("Invalid value %r for setting '%s', using %r", value, key, default)
        return default


def prompt_for_api_key(provider: str = None) -> Optional[str]:
    """
    Interactively prompt user for API key and offer to save it.

    Args:
        provider: Specific provider to configure. If None, user chooses.

    Returns:
        API key string or None if user declines
    """
    from .llm import PROVIDERS

    print("\n" + "=" * 60)
    print("Feedback Service API Key Setup")
    print("=" * 60)

    if not provider:
        print("\nDeutschLehrer can get feedback from these providers:")
        providers_list = list(PROVIDERS.keys())
        for i, p in enumerate(providers_list, 1):
            info = PROVIDERS[p]
            print(f"  {i}. {info['display_name']}")

        print()
        try:
            choice = input(f"Choose provider [1-{len(providers_list)}] (default: 1): ").strip()
            if not choice:
                choice = "1"
            idx = int(choice) - 1
            if 0 <= idx < len(providers_list):
                provider = providers_list[idx]
            else:
                print("Invalid choice.")
                return None
        except (ValueError, KeyboardInterrupt):
            print("\nCancelled.")
            return None

    info = PROVIDERS[provider]
    print(f"\n{info['display_name']} selected.")
    print(f"Get your API key at: {info['url']}")
    print(f"\nYour key will be stored locally in {get_config_path()}")
    print()

    try:
        api_key = getpass("Paste your API key (input hidden): ").strip()

        if not api_key:
            print("\nNo key provided. Feedback will be unavailable.")
            return None

        expected_prefix = info['key_prefix']
        if not api_key.startswith(expected_prefix):
            print(f"\nWarning: Key doesn't look like a {provider} key (expected prefix: '{expected_prefix}')")
            confirm = input("Save anyway? [y/N]: ").strip().lower()
            if confirm != 'y':
                return None

        save = input(f"\nSave key to {get_config_path()} for future sessions? [Y/n]: ").strip().lower()

        if save != 'n':
            config = load_config()
            config[info['config_key']] = api_key
            config['preferred_provider'] = provider
            save_config(config)
            print(f"Key saved! {info['display_name']} set as preferred provider.")
        else:
            print("Key will only be used for this session.")

        return api_key

    except (KeyboardInterrupt, EOFError):
        print("\nCancelled.")
        return None


def clear_api_key(provider: str = None) -> None:
    """Remove stored API key from config"""
    from .llm import PROVIDERS

    config = load_config()

    if provider:
        if provider in PROVIDERS:
            key = PROVIDERS[provider]['config_key']
            if key in config:
                del config[key]
                save_config(config)
                print(f"{provider} API key removed from config.")
            else:
                print(f"No stored {provider} API key found.")
        else:
            print(f"Unknown provider: {provider}")
    else:
        removed = []
        for p, info in PROVIDERS.items():
            if info['config_key'] in config:
                del config[info['config_key']]
                removed.append(p)

        if removed:
            save_config(config)
            print(f"Removed API keys for: {', '.join(removed)}")
        else:
            print("No stored API keys found.")
