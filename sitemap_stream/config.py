"""
Configuration loader for the sitemap crawler.
Handles environment variables and an optional YAML defaults file.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional
from dataclasses import dataclass, asdict
import yaml
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

DEFAULT_USER_AGENT = "sitemap-stream-crawler"
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "defaults.yaml"


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class CrawlerConfig:
    """Main crawler configuration."""
    # HTTP settings
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = 30.0  # Per-read socket timeout, seconds
    max_retries: int = 3
    chunk_size: int = 64 * 1024

    # Traversal settings
    max_parallel: int = 4

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "CrawlerConfig":
        """Load configuration from YAML defaults, then environment overrides."""
        values: Dict[str, Any] = {}

        if config_path is None:
            config_path = os.getenv("SITEMAP_CONFIG")
        path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

        if path.exists():
            with open(path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f) or {}

            defaults = yaml_config.get("defaults", {}) or {}
            for key in ("user_agent", "request_timeout", "max_retries",
                        "chunk_size", "max_parallel", "log_level", "log_json"):
                if key in defaults:
                    values[key] = defaults[key]

        # Environment variables win over the YAML file
        env_map = {
            "SITEMAP_PARSER_USER_AGENT": ("user_agent", str),
            "SITEMAP_REQUEST_TIMEOUT": ("request_timeout", float),
            "SITEMAP_MAX_RETRIES": ("max_retries", int),
            "SITEMAP_CHUNK_SIZE": ("chunk_size", int),
            "SITEMAP_MAX_PARALLEL": ("max_parallel", int),
            "LOG_LEVEL": ("log_level", str),
            "LOG_JSON": ("log_json", _env_bool),
        }
        for env_name, (key, convert) in env_map.items():
            raw = os.getenv(env_name)
            if raw:
                values[key] = convert(raw)

        config = cls(**values)
        if config.max_parallel < 1:
            raise ValueError("max_parallel must be at least 1")
        return config

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Global config instance
_config: Optional[CrawlerConfig] = None


def get_config(config_path: Optional[str] = None) -> CrawlerConfig:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = CrawlerConfig.load(config_path)
    return _config


def reload_config(config_path: Optional[str] = None) -> CrawlerConfig:
    """Force reload the configuration."""
    global _config
    _config = CrawlerConfig.load(config_path)
    return _config
