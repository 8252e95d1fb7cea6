import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from omegaconf import OmegaConf
from omegaconf.errors import InterpolationResolutionError

from interrupter.constants import (
    CONFIG_ENV_VAR,
    DEFAULT_CLEAN_UP,
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_FORCE,
    DEFAULT_INTERRUPT_TIMEOUT_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_PROVIDER,
)
from interrupter.providers import get_default_region, list_providers
from interrupter.providers.aws.constants import (
    DEFAULT_DURATION_BEFORE_INTERRUPTION,
    DEFAULT_FIS_ROLE_NAME,
)
from interrupter.utils import parse_duration

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Load and merge YAML configuration with defaults."""

    def __init__(self) -> None:
        """Initialize ConfigLoader with provider-specific defaults.

        The default region honours ``AWS_DEFAULT_REGION`` so the tool follows
        the operator's AWS CLI setup.
        """
        self.BUILT_IN_DEFAULTS = {
            "provider": DEFAULT_PROVIDER,
            "region": os.environ.get("AWS_DEFAULT_REGION")
            or get_default_region(DEFAULT_PROVIDER),
            "timeout": DEFAULT_INTERRUPT_TIMEOUT_SECONDS,
            "force": DEFAULT_FORCE,
            "clean_up": DEFAULT_CLEAN_UP,
            "duration_before_interruption": DEFAULT_DURATION_BEFORE_INTERRUPTION,
            "role_name": DEFAULT_FIS_ROLE_NAME,
            "max_attempts": DEFAULT_MAX_ATTEMPTS,
        }

    def load_config(self, config_path: str | None = None) -> dict[str, Any]:
        """Load configuration from YAML file.

        Parameters
        ----------
        config_path : str | None
            Path to YAML config file. If None, checks INTERRUPTER_CONFIG env var,
            then falls back to interrupter.yaml

        Returns
        -------
        dict[str, Any]
            Parsed configuration with a defaults section, with all variable
            interpolations resolved

        Raises
        ------
        ValueError
            If the file is not valid YAML or variables cannot be resolved
        RuntimeError
            If the file cannot be read
        """
        if config_path is None:
            config_path = os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_FILENAME)

        config_file = Path(config_path)

        if not config_file.exists():
            return {"defaults": {}}

        try:
            cfg = OmegaConf.load(config_file)
        except yaml.YAMLError as e:
            logger.error("Failed to parse YAML config file %s: %s", config_file, e)
            raise ValueError(f"Invalid YAML in {config_file}: {e}") from e
        except OSError as e:
            logger.error("Failed to read config file %s: %s", config_file, e)
            raise RuntimeError(f"Failed to read config file {config_file}: {e}") from e

        if cfg is None:
            return {"defaults": {}}

        if "vars" in cfg:
            vars_dict = OmegaConf.to_container(cfg.vars, resolve=False)
            for key, value in vars_dict.items():
                if key not in cfg:
                    cfg[key] = value

        try:
            config = OmegaConf.to_container(cfg, resolve=True, throw_on_missing=True)
        except InterpolationResolutionError as e:
            logger.error("Failed to resolve configuration variables: %s", e)
            raise ValueError(f"Configuration variable resolution error: {e}") from e
        except (ValueError, KeyError, AttributeError) as e:
            logger.error("Failed to resolve configuration variables: %s", e)
            raise ValueError(f"Configuration variable resolution error: {e}") from e

        if not isinstance(config, dict):
            raise ValueError(f"Configuration in {config_file} must be a mapping")

        config.setdefault("defaults", {})
        return config

    def get_effective_config(
        self, config: dict[str, Any], overrides: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Merge built-in defaults, YAML defaults and CLI overrides.

        Parameters
        ----------
        config : dict[str, Any]
            Full configuration from YAML
        overrides : dict[str, Any] | None
            Values given on the command line; None values are ignored

        Returns
        -------
        dict[str, Any]
            Merged configuration with ``timeout`` normalized to seconds
        """
        merged = copy.deepcopy(self.BUILT_IN_DEFAULTS)

        yaml_defaults = config.get("defaults") or {}
        for key, value in yaml_defaults.items():
            merged[key] = value

        for key, value in (overrides or {}).items():
            if value is not None:
                merged[key] = value

        self.validate_config(merged)
        merged["timeout"] = parse_duration(merged["timeout"])

        return merged

    def validate_config(self, config: dict[str, Any]) -> None:
        """Validate configuration has required fields and correct types.

        Parameters
        ----------
        config : dict[str, Any]
            Configuration to validate

        Raises
        ------
        ValueError
            If configuration is invalid
        """
        provider = config.get("provider", DEFAULT_PROVIDER)
        available_providers = list_providers()
        if provider not in available_providers:
            raise ValueError(
                f"Unknown provider: {provider}. Available providers: {available_providers}"
            )

        region = config.get("region")
        if not region:
            raise ValueError("region is required")
        if not isinstance(region, str):
            raise ValueError("region must be a string")

        try:
            parse_duration(config.get("timeout"))
        except (TypeError, ValueError) as e:
            raise ValueError(f"timeout is invalid: {e}") from e

        for field in ("force", "clean_up"):
            if not isinstance(config.get(field), bool):
                raise ValueError(f"{field} must be a boolean")

        for field in ("duration_before_interruption", "role_name"):
            if not isinstance(config.get(field), str) or not config[field]:
                raise ValueError(f"{field} must be a non-empty string")

        max_attempts = config.get("max_attempts")
        if isinstance(max_attempts, bool) or not isinstance(max_attempts, int):
            raise ValueError("max_attempts must be an integer")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
