"""Configuration loader for developer convenience commands."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from devconvenience.errors import ConfigError


class ConfigLoader:
    """Loads the optional YAML project configuration file."""

    DEFAULT_FILE_NAME = ".devconvenience.yml"

    SUPPORTED_KEYS = {
        "project_dir",
        "manifest_file",
        "console",
        "web_dir",
        "files_dir",
        "timeout",
        "node_binary",
        "compressor_script",
        "imageoptim",
        "update_units",
        "schema_installer",
        "verbose",
        "log_file",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ConfigError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ConfigError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise ConfigError(f"Unknown configuration keys: {unknown_list}")

        imageoptim = parsed.get("imageoptim")
        if imageoptim is not None and not isinstance(imageoptim, dict):
            raise ConfigError("`imageoptim` must be a mapping with `jpeg` and `png` sections.")

        update_units = parsed.get("update_units")
        if update_units is not None and not isinstance(update_units, list):
            raise ConfigError("`update_units` must be a list of `module:attribute` references.")

        return parsed

    @staticmethod
    def image_options(config: Dict[str, Any]) -> Dict[str, Any]:
        """Flattens the nested `imageoptim` section into Settings keyword names."""
        section = config.get("imageoptim") or {}
        jpeg = section.get("jpeg") or {}
        png = section.get("png") or {}

        options: Dict[str, Any] = {}
        if "quality" in jpeg:
            options["jpeg_quality"] = int(jpeg["quality"])
        if "quality" in png:
            options["png_quality"] = str(png["quality"])
        if "speed" in png:
            options["png_speed"] = int(png["speed"])
        return options
