"""
Configuration management for rangesat runs.
Uses OmegaConf for flexible configuration handling.
"""

import logging
import os
from typing import Any

import omegaconf
from omegaconf import DictConfig, OmegaConf

logger = logging.getLogger(__name__)


class SolverConfig:
    """
    Configuration manager for the solver.
    Handles loading, merging, and accessing configuration parameters.
    """

    DEFAULT_CONFIG = {
        "solver": {
            "noise_level": 10,
            "adaptive_noise": True,
            "max_steps": 100000,
            "max_tries": 1,
            "timeout": 30.0,
            "seed": None,
            "check_consistency": False,
        },
        "logging": {
            "level": "WARNING",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "trace_dir": None,
        },
    }

    def __init__(self, config_path: str | None = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to configuration file (YAML or JSON)
        """
        self.config: DictConfig = OmegaConf.create(self.DEFAULT_CONFIG)

        if config_path:
            self._load_config_file(config_path)

    def _load_config_file(self, config_path: str) -> None:
        """
        Merge a configuration file over the current configuration.

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        # JSON is a subset of YAML, so OmegaConf reads both
        file_config = OmegaConf.load(config_path)
        self.config = OmegaConf.merge(self.config, file_config)
        logger.debug(f"Loaded configuration from {config_path}")

    def update(self, config_dict: dict[str, Any]) -> None:
        """
        Update the configuration with the given dictionary.

        Args:
            config_dict: Dictionary to update the configuration with
        """
        self.config = OmegaConf.merge(self.config, config_dict)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by key.
        Supports dot notation for nested keys (e.g., "solver.timeout").

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value
        """
        try:
            value = OmegaConf.select(self.config, key)
        except (omegaconf.errors.OmegaConfBaseException, KeyError):
            return default
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value by key.
        Supports dot notation for nested keys (e.g., "solver.timeout").
        """
        OmegaConf.update(self.config, key, value)

    def to_dict(self) -> dict[str, Any]:
        return OmegaConf.to_container(self.config, resolve=True)

    def save(self, file_path: str) -> None:
        """
        Save the configuration to a YAML file.

        Args:
            file_path: Path to save the configuration to
        """
        os.makedirs(os.path.dirname(os.path.abspath(file_path)), exist_ok=True)
        OmegaConf.save(self.config, file_path)

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


# Create a global configuration instance
config = SolverConfig()


def load_config(config_path: str | None = None) -> SolverConfig:
    """
    Load configuration from a file and make it the global configuration.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration instance
    """
    global config
    if config_path:
        config = SolverConfig(config_path)
    return config


def get_config() -> SolverConfig:
    """
    Get the global configuration instance.

    Returns:
        Configuration instance
    """
    return config
