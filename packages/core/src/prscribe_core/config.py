import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "backends": ["openai", "anthropic"],  # narrative backends, tried in this order
    "backend_timeout": 5.0,  # seconds per backend call; keeps the fallback path responsive
    "github_timeout": 15,
    "github_retries": 2,
    "store": "sqlite",  # "sqlite" | "memory"
    "store_path": ".prscribe.db",
    "user_id": None,  # None = use the OS login name
}

KNOWN_BACKENDS = ("openai", "anthropic")


def _normalize_backends(value) -> list:
    """Accept a single name or a list of names; reject names no backend answers to."""
    if value is None:
        return list(DEFAULT_CONFIG["backends"])
    names = [value] if isinstance(value, str) else list(value)
    unknown = [name for name in names if name not in KNOWN_BACKENDS]
    if unknown:
        raise ValueError(
            f"Unknown narrative backend: {unknown[0]!r}. Choose from {', '.join(KNOWN_BACKENDS)}."
        )
    return names


def load_config(config_path: str = ".prscribe.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prscribe.yml in the current directory
      3. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG, "backends": list(DEFAULT_CONFIG["backends"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    config["backends"] = _normalize_backends(config.get("backends"))

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")

    return config
