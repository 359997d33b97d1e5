import json
import os
from pathlib import Path

GLOBAL_CONFIG_FILE = Path.home() / ".snapdeck" / "config.json"

ENV_PREFIX = "SNAPDECK_"

DEFAULT_CONFIG = {
    "host": "127.0.0.1",
    "port": 8888,
    "snapper": "snapper",
    "configs_dir": "/etc/snapper/configs",
    "timeout": None,
    # Optional: "assets_dir": "/srv/snapdeck-ui", "audit_log": "/var/log/snapdeck.jsonl"
    "assets_dir": None,
    "audit_log": None,
}


def load_global_config():
    """Per-user defaults for the web console and CLI (host, port, snapper path...).

    A missing, unreadable or non-object file counts as no overrides, so a
    broken ~/.snapdeck never stops `snapdeck serve` from starting.
    """
    try:
        saved = json.loads(GLOBAL_CONFIG_FILE.read_text())
    except (json.JSONDecodeError, OSError):
        return {}
    return saved if isinstance(saved, dict) else {}


def save_global_config(updates):
    """Persist `snapdeck config KEY VALUE` settings, keeping the other saved keys."""
    saved = {**load_global_config(), **updates}
    GLOBAL_CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    GLOBAL_CONFIG_FILE.write_text(json.dumps(saved, indent=2, sort_keys=True) + "\n")


def _env_overrides():
    overrides = {}
    for key in DEFAULT_CONFIG:
        value = os.environ.get(ENV_PREFIX + key.upper())
        if value is not None:
            overrides[key] = value
    return overrides


def _coerce(config):
    try:
        config["port"] = int(config["port"])
    except (TypeError, ValueError):
        raise ValueError(f"port must be an integer, got {config['port']!r}")

    timeout = config.get("timeout")
    if timeout in (None, "", "none", "None"):
        config["timeout"] = None
    else:
        try:
            config["timeout"] = float(timeout)
        except (TypeError, ValueError):
            raise ValueError(f"timeout must be a number of seconds, got {timeout!r}")
        if config["timeout"] <= 0:
            raise ValueError(f"timeout must be positive, got {timeout!r}")
    return config


def load_config(path=None):
    # Merge order: defaults → global config → explicit file → SNAPDECK_* env vars
    config = {**DEFAULT_CONFIG, **load_global_config()}

    if path:
        path = Path(path)
        try:
            raw = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}")
        if not isinstance(raw, dict):
            raise ValueError(f"{path} must contain a JSON object")
        config.update(raw)

    config.update(_env_overrides())
    return _coerce(config)


def create_snapper(config=None):
    from snapdeck.snapper import Snapper

    config = config or DEFAULT_CONFIG
    return Snapper(
        program=config.get("snapper") or DEFAULT_CONFIG["snapper"],
        configs_dir=config.get("configs_dir") or DEFAULT_CONFIG["configs_dir"],
        timeout=config.get("timeout"),
    )


def create_assets(config=None):
    from snapdeck.assets import AssetProvider

    config = config or DEFAULT_CONFIG
    return AssetProvider(config.get("assets_dir"))
