"""
Engine Settings - User configuration stored as JSON.

Settings live in ~/.config/joinrender/settings.json. A missing file gives
the defaults; a broken file is logged and also gives the defaults.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from joinrender.core.execution import CyclePolicy, ThreadingMode

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "joinrender"
SETTINGS_PATH = CONFIG_DIR / "settings.json"
CUSTOM_NODES_PATH = CONFIG_DIR / "custom_nodes.json"
PLUGIN_DIR = CONFIG_DIR / "plugins"


@dataclass
class EngineSettings:
    """
    Configuration for a workflow session.

    Attributes:
        api_keys: Named secrets that custom HTTP nodes can reference
        custom_nodes_path: JSON file holding user-defined custom nodes
        plugin_dir: Directory scanned for external node definition files
        cycle_policy: What a run does with cyclic graphs
        threading_mode: How upstream outputs reach connected inputs
        webhook_base_url: Public base URL reported by webhook nodes
    """
    api_keys: dict[str, str] = field(default_factory=dict)
    custom_nodes_path: Path = CUSTOM_NODES_PATH
    plugin_dir: Path = PLUGIN_DIR
    cycle_policy: CyclePolicy = CyclePolicy.SKIP
    threading_mode: ThreadingMode = ThreadingMode.POSITIONAL
    webhook_base_url: str = "http://localhost:8000"

    def to_dict(self) -> dict:
        return {
            "api_keys": dict(self.api_keys),
            "custom_nodes_path": str(self.custom_nodes_path),
            "plugin_dir": str(self.plugin_dir),
            "cycle_policy": self.cycle_policy.value,
            "threading_mode": self.threading_mode.value,
            "webhook_base_url": self.webhook_base_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> EngineSettings:
        defaults = cls()
        return cls(
            api_keys=dict(data.get("api_keys") or {}),
            custom_nodes_path=Path(data.get("custom_nodes_path") or defaults.custom_nodes_path),
            plugin_dir=Path(data.get("plugin_dir") or defaults.plugin_dir),
            cycle_policy=CyclePolicy(data.get("cycle_policy", defaults.cycle_policy.value)),
            threading_mode=ThreadingMode(data.get("threading_mode", defaults.threading_mode.value)),
            webhook_base_url=data.get("webhook_base_url") or defaults.webhook_base_url,
        )


def load_settings(path: Path | None = None) -> EngineSettings:
    """Load settings from file, falling back to defaults."""
    if path is None:
        path = SETTINGS_PATH

    if not path.exists():
        return EngineSettings()

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("settings file must hold a JSON object")
        return EngineSettings.from_dict(data)
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to load settings from {path}: {e}")
        return EngineSettings()


def save_settings(settings: EngineSettings, path: Path | None = None) -> None:
    """Save settings to file."""
    if path is None:
        path = SETTINGS_PATH

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(settings.to_dict(), f, indent=2)
