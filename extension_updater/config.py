# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 Andrew Wyatt (Fewtarius)

"""
Extension Updater Configuration Module

Handles loading and managing updater configuration from YAML files.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ExtensionConfig(BaseModel):
    """The extension being kept up to date."""
    name: str = Field(default="my-update-checker", description="Stable extension identifier known to the host")
    local_version: Optional[str] = Field(default=None, description="Version embedded at build time (null = ask the host registry)")
    global_scope: bool = Field(default=False, description="Update the extension for all users instead of the current one")


class RemoteConfig(BaseModel):
    """Remote source holding the manifest and changelog."""
    repo: str = Field(default="YourUsername/st-plugin-example", description="Repository identifier (owner/name)")
    branch: str = Field(default="main", description="Branch used when no content reference is pinned")
    cdn_base: str = Field(default="https://cdn.jsdelivr.net/gh", description="Base URL for file fetches")
    api_base: str = Field(default="https://api.github.com", description="Base URL for resolving the latest commit")
    manifest_path: str = Field(default="manifest.json", description="Manifest path inside the repository")
    changelog_path: str = Field(default="CHANGELOG.md", description="Changelog path inside the repository")
    pin_reference: bool = Field(default=True, description="Pin manifest and changelog fetches to one commit")
    github_token: Optional[str] = Field(default=None, description="Optional GitHub token for API rate limits")
    request_timeout: Optional[float] = Field(default=None, gt=0, description="Total request timeout in seconds (null = no timeout)")


class HostConfig(BaseModel):
    """Host application that owns the update executor."""
    base_url: str = Field(default="http://127.0.0.1:8000", description="Host application base URL")
    update_path: str = Field(default="/api/extensions/update", description="Update executor endpoint")
    registry_path: str = Field(default="/api/extensions/versions", description="Installed extension registry endpoint")
    headers: Dict[str, str] = Field(default_factory=dict, description="Extra headers sent to the host (e.g. CSRF token)")
    reload_delay: float = Field(default=2.0, ge=0, description="Seconds to wait before reloading after a successful update")
    ready_attempts: int = Field(default=30, ge=1, description="Readiness probes before giving up")
    ready_interval: float = Field(default=1.0, ge=0, description="Seconds between readiness probes")


class CheckConfig(BaseModel):
    """Update check behaviour."""
    on_remote_error: Literal["degrade", "surface"] = Field(
        default="degrade",
        description="degrade: treat an unreadable manifest as 0.0.0; surface: report the check as failed",
    )
    run_on_startup: bool = Field(default=True, description="Run one update check when the service starts")


class ServerConfig(BaseModel):
    """Control surface settings."""
    host: str = Field(default="127.0.0.1", description="Server bind address")
    port: int = Field(default=8085, description="Server port")


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO", description="Log level (WARNING, INFO, DEBUG)")
    file: Optional[Path] = Field(default=None, description="Log file path (null = console only)")


class Config(BaseModel):
    """Main configuration container."""
    extension: ExtensionConfig = Field(default_factory=ExtensionConfig)
    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    host: HostConfig = Field(default_factory=HostConfig)
    check: CheckConfig = Field(default_factory=CheckConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(path: Optional[str] = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses EXTENSION_UPDATER_CONFIG env var
              or defaults to ./config.yaml

    Returns:
        Config object with loaded settings
    """
    if path is None:
        path = os.environ.get("EXTENSION_UPDATER_CONFIG", "./config.yaml")

    config_path = Path(path)

    if config_path.exists():
        logger.info("Loading configuration from: %s", config_path)
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}

            return Config(
                extension=ExtensionConfig(**data.get("extension", {})),
                remote=RemoteConfig(**data.get("remote", {})),
                host=HostConfig(**data.get("host", {})),
                check=CheckConfig(**data.get("check", {})),
                server=ServerConfig(**data.get("server", {})),
                logging=LoggingConfig(**data.get("logging", {})),
            )
        except Exception as e:
            logger.warning("Failed to load config file: %s. Using defaults.", e)
            return Config()
    else:
        logger.info("Config file not found at %s. Using defaults.", config_path)
        return Config()


def setup_logging(config: LoggingConfig) -> None:
    """
    Configure logging based on configuration.

    Args:
        config: Logging configuration settings
    """
    level = getattr(logging, config.level.upper(), logging.INFO)

    handlers = [logging.StreamHandler()]

    if config.file:
        try:
            config.file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(config.file))
        except Exception as e:
            # Continue with console-only logging
            print(f"Warning: Could not setup file logging: {e}", file=sys.stderr)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers
    )

    logging.getLogger("uvicorn").setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(level)

    if config.file:
        logger.info("Logging configured: level=%s, file=%s", config.level, config.file)
    else:
        logger.info("Logging configured: level=%s (console only)", config.level)
