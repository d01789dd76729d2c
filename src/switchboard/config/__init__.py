"""設定管理モジュール"""

from switchboard.config.loader import (
    ConfigError,
    ConfigValidationError,
    EnvironmentVariableError,
    expand_env_vars,
    load_config,
)
from switchboard.config.models import (
    ClassifierConfig,
    CleanupConfig,
    Config,
    ContextConfig,
    DatabaseConfig,
    HealthConfig,
    LLMConfig,
    LoggingConfig,
    SlackConfig,
)

__all__ = [
    "ClassifierConfig",
    "CleanupConfig",
    "Config",
    "ConfigError",
    "ConfigValidationError",
    "ContextConfig",
    "DatabaseConfig",
    "EnvironmentVariableError",
    "HealthConfig",
    "LLMConfig",
    "LoggingConfig",
    "SlackConfig",
    "expand_env_vars",
    "load_config",
]
