"""
Configuration System - Environment-driven logging configuration

Provides centralized configuration loading from multiple sources
with precedence handling and environment variable substitution, and turns
the result into the sink set of a LoggingContext.
"""

import os
import re
import sys
from pathlib import Path

import yaml
from beartype.typing import Any, Dict, List, Optional, TextIO
from humanfriendly import InvalidSize, parse_size

from svclog.constants import FAULT_MAPPING
from svclog.logging.levels import LogLevel, level_names
from svclog.logging.record import ServiceIdentity
from svclog.logging.sinks import FILE, STREAM, SinkConfig, build_sink

TRUE_VALUES = ("true", "yes", "1", "on")


class LoggingConfig:
    """
    Centralized logging configuration.

    Reads from file, environment variables, or explicit overrides with
    proper precedence handling.

    Example configuration file (svclog.yml):
        logging:
          environment: production
          level: info
          log_dir: /var/log/${SERVICE_NAME}
          service_name: billing
          version: 2.1.0
          console: true       # force console output in production (false: never)
          http: true          # add http.log
          max_size: 10MB
          redact_nested: false
    """

    DEFAULT_CONFIG = {
        "environment": "development",
        "level": None,  # info in production, debug otherwise
        "log_dir": "logs",
        "service_name": "svclog-app",
        "version": "1.0.0",
        "console": None,  # None: on outside production
        "http": False,
        "max_size": "10MB",
        "redact_nested": False,
        "color": True,
    }

    ENV_MAPPINGS = {
        "LOG_LEVEL": "level",
        "LOG_DIR": "log_dir",
        "SERVICE_NAME": "service_name",
        "APP_VERSION": "version",
        "LOG_MAX_SIZE": "max_size",
    }

    BOOL_ENV_MAPPINGS = {
        "ENABLE_HTTP_LOG": "http",
        "LOG_REDACT_NESTED": "redact_nested",
        "LOG_COLOR": "color",
    }

    @classmethod
    def load(cls, config_path: Optional[str] = None, **overrides) -> Dict[str, Any]:
        """
        Load configuration from multiple sources.

        Precedence: overrides > Environment > File > Default

        Args:
            config_path: Path to YAML configuration file
            **overrides: Explicit values (None values are ignored)

        Returns:
            Configuration dictionary with level resolved

        Example:
            config = LoggingConfig.load("svclog.yml", level="debug")
        """
        config = cls.DEFAULT_CONFIG.copy()

        # 1. Load from file
        if config_path and Path(config_path).exists():
            file_config = cls._load_from_file(config_path)
            if file_config and isinstance(file_config.get("logging"), dict):
                config.update(file_config["logging"])

        # 2. Override with environment variables
        config = cls._apply_env_overrides(config)

        # 3. Explicit overrides
        config.update({k: v for k, v in overrides.items() if v is not None})

        # 4. Substitute environment variables in values
        config = cls._substitute_env_vars(config)

        if not config.get("level"):
            config["level"] = "info" if cls.is_production(config) else "debug"
        return config

    @classmethod
    def _load_from_file(cls, config_path: str) -> Optional[Dict[str, Any]]:
        """
        Load configuration from YAML file.

        Returns:
            Configuration dictionary or None if the file cannot be read
        """
        try:
            with open(config_path) as f:
                return yaml.safe_load(f)
        except yaml.YAMLError as e:
            sys.stderr.write(FAULT_MAPPING["yaml_file_parse_issue"].format(file_path=config_path) + f"\n{e}\n")
            return None
        except IOError:
            sys.stderr.write(FAULT_MAPPING["file_open_issue"].format(file_path=config_path) + "\n")
            return None

    @classmethod
    def _apply_env_overrides(cls, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply environment variable overrides.

        Environment variables:
            APP_ENV / NODE_ENV: Environment designation (production disables console)
            LOG_LEVEL: Minimum level (error, warn, info, http, verbose, debug, silly)
            LOG_DIR: Directory for log files
            SERVICE_NAME: Service name attached to every record
            APP_VERSION: Service version attached to every record
            ENABLE_CONSOLE_LOG: Force console output on (true, yes, 1, on)
            ENABLE_HTTP_LOG: Add the http.log file sink
            LOG_MAX_SIZE: Max log file size before rotation (e.g. 10MB, 512KiB, 1048576)
            LOG_REDACT_NESTED: Redact sensitive keys in nested metadata too
            LOG_COLOR: Colorize console output
        """
        environment = os.environ.get("APP_ENV") or os.environ.get("NODE_ENV")
        if environment:
            config["environment"] = environment

        # Opt-in only: a false value keeps the environment default
        if os.environ.get("ENABLE_CONSOLE_LOG", "").lower() in TRUE_VALUES:
            config["console"] = True

        for env_var, config_key in cls.ENV_MAPPINGS.items():
            if env_var in os.environ:
                config[config_key] = os.environ[env_var]

        for env_var, config_key in cls.BOOL_ENV_MAPPINGS.items():
            if env_var in os.environ:
                config[config_key] = os.environ[env_var].lower() in TRUE_VALUES

        return config

    @classmethod
    def _substitute_env_vars(cls, config: Any) -> Any:
        """
        Recursively substitute environment variables in configuration.

        Supports ${VAR_NAME} syntax.

        Example:
            log_dir: /var/log/${ENVIRONMENT}/billing
            With ENVIRONMENT=production, becomes:
            log_dir: /var/log/production/billing
        """
        if isinstance(config, str):

            def replace_env(match):
                var_name = match.group(1)
                return os.environ.get(var_name, match.group(0))

            return re.sub(r"\$\{([^}]+)\}", replace_env, config)

        elif isinstance(config, dict):
            return {k: cls._substitute_env_vars(v) for k, v in config.items()}

        elif isinstance(config, list):
            return [cls._substitute_env_vars(item) for item in config]

        else:
            return config

    @staticmethod
    def is_production(config: Dict[str, Any]) -> bool:
        return str(config.get("environment", "")).lower() == "production"

    @staticmethod
    def _as_bool(value: Any) -> bool:
        if isinstance(value, str):
            return value.lower() in TRUE_VALUES
        return bool(value)

    @staticmethod
    def max_bytes(config: Dict[str, Any]) -> int:
        """
        Resolve max_size to bytes.

        Raises:
            ValueError: If the size cannot be parsed
        """
        value = config.get("max_size", "10MB")
        if isinstance(value, int):
            return value
        try:
            return parse_size(str(value), binary=True)
        except InvalidSize as e:
            raise ValueError(f"Invalid max_size '{value}': {e}")

    @classmethod
    def identity(cls, config: Dict[str, Any]) -> ServiceIdentity:
        return ServiceIdentity(
            service=str(config["service_name"]),
            version=str(config["version"]),
            environment=str(config["environment"]),
        )

    @classmethod
    def sink_configs(cls, config: Dict[str, Any]) -> List[SinkConfig]:
        """
        Derive the sink set from a configuration.

        Always: error.log (error only) and combined.log (configured level).
        Optional: console (non-production unless console=false, or console=true),
        http.log (http=true).
        """
        level = LogLevel.parse(config["level"]).label
        max_bytes = cls.max_bytes(config)
        sinks = []

        console = config.get("console")
        if console is None:
            console = not cls.is_production(config)
        if cls._as_bool(console):
            sinks.append(SinkConfig(name="console", kind=STREAM, level=level, format="console"))

        sinks.append(
            SinkConfig(
                name="error", kind=FILE, level="error", format="json",
                filename="error.log", max_bytes=max_bytes, max_files=5,
            )
        )
        sinks.append(
            SinkConfig(
                name="combined", kind=FILE, level=level, format="json",
                filename="combined.log", max_bytes=max_bytes, max_files=10,
            )
        )
        if cls._as_bool(config.get("http")):
            sinks.append(
                SinkConfig(
                    name="http", kind=FILE, level="http", format="json",
                    filename="http.log", max_bytes=max_bytes, max_files=5,
                )
            )
        return sinks

    @classmethod
    def ensure_log_dir(cls, log_dir: str) -> bool:
        """
        Create the log directory if needed.

        Returns:
            False if the directory cannot be created (file sinks are then skipped)
        """
        try:
            Path(log_dir).mkdir(parents=True, exist_ok=True)
            return True
        except OSError as e:
            sys.stderr.write(FAULT_MAPPING["log_dir_issue"].format(log_dir=log_dir, error=e) + "\n")
            return False

    @classmethod
    def build_context(cls, config: Dict[str, Any], stream: TextIO = None):
        """
        Build a LoggingContext from a loaded configuration.

        Args:
            config: Result of LoggingConfig.load()
            stream: Stream for the console sink (default: sys.stdout)
        """
        from svclog.logging.structured_logger import LoggingContext

        color = cls._as_bool(config.get("color", True))
        log_dir = str(config["log_dir"])
        files_enabled = cls.ensure_log_dir(log_dir)

        sinks = []
        for sink_config in cls.sink_configs(config):
            if sink_config.kind == FILE and not files_enabled:
                continue
            try:
                sinks.append(build_sink(sink_config, log_dir=log_dir, color=color, stream=stream))
            except OSError as e:
                sys.stderr.write(FAULT_MAPPING["log_dir_issue"].format(log_dir=log_dir, error=e) + "\n")

        return LoggingContext(
            identity=cls.identity(config),
            sinks=sinks,
            redact_nested=cls._as_bool(config.get("redact_nested")),
        )

    @classmethod
    def setup_logging(cls, config_path: Optional[str] = None, stream: TextIO = None, **overrides):
        """
        Setup logging based on configuration and install it as the default.

        Args:
            config_path: Path to configuration file
            stream: Stream for the console sink
            **overrides: Configuration overrides (e.g., level="debug")

        Example:
            LoggingConfig.setup_logging(config_path="svclog.yml", level="debug", http=True)
        """
        from svclog.logging.structured_logger import LoggerFactory

        config = cls.load(config_path, **overrides)
        is_valid, error = cls.validate(config)
        if not is_valid:
            raise ValueError(FAULT_MAPPING["invalid_config"].format(error=error))
        return LoggerFactory.install(cls.build_context(config, stream=stream))

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> tuple:
        """
        Validate configuration.

        Returns:
            Tuple of (is_valid, error_message)

        Example:
            is_valid, error = LoggingConfig.validate(config)
            if not is_valid:
                print(f"Invalid configuration: {error}")
        """
        level = str(config.get("level") or "info")
        try:
            LogLevel.parse(level)
        except ValueError:
            return False, FAULT_MAPPING["invalid_level"].format(level=level, levels=", ".join(level_names()))

        try:
            cls.max_bytes(config)
        except ValueError as e:
            return False, str(e)

        if not str(config.get("service_name") or "").strip():
            return False, "service_name must not be empty"

        if not str(config.get("log_dir") or "").strip():
            return False, "log_dir must not be empty"

        return True, ""

    @classmethod
    def with_fallbacks(cls, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Replace every value that validate() rejects with its default.

        Example:
            config = LoggingConfig.load()  # LOG_LEVEL=verbos
            LoggingConfig.with_fallbacks(config)["level"]  # "debug" outside production
        """
        fixed = dict(config)
        try:
            LogLevel.parse(str(fixed.get("level") or "info"))
        except ValueError:
            fixed["level"] = None
        if not fixed.get("level"):
            fixed["level"] = "info" if cls.is_production(fixed) else "debug"

        try:
            cls.max_bytes(fixed)
        except ValueError:
            fixed["max_size"] = cls.DEFAULT_CONFIG["max_size"]

        for key in ("service_name", "log_dir"):
            if not str(fixed.get(key) or "").strip():
                fixed[key] = cls.DEFAULT_CONFIG[key]
        return fixed
