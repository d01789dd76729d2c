"""config.yaml の読み込みと検証"""

import math
import os
import re
from pathlib import Path
from typing import Any

import yaml

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


class ConfigError(Exception):
    """設定関連の基底例外"""


class ConfigValidationError(ConfigError):
    """必須項目の欠落や不正な値"""


class EnvironmentVariableError(ConfigError):
    """参照された環境変数が未設定"""


_ENV_REFERENCE = re.compile(r"\$\{([^}]+)\}")

_FLAG_WORDS = {
    "true": True,
    "yes": True,
    "on": True,
    "1": True,
    "false": False,
    "no": False,
    "off": False,
    "0": False,
}

# LiteLLM accepts 0.0 - 2.0 for OpenAI-compatible providers
MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0


def expand_env_vars(value: str) -> str:
    """``${NAME}`` を環境変数の値で置き換える

    Raises:
        EnvironmentVariableError: 参照された変数が未設定
    """

    def lookup(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in os.environ:
            raise EnvironmentVariableError(f"Environment variable '{name}' is not set")
        return os.environ[name]

    return _ENV_REFERENCE.sub(lookup, value)


def _expand_tree(node: Any) -> Any:
    if isinstance(node, str):
        return expand_env_vars(node)
    if isinstance(node, dict):
        return {key: _expand_tree(child) for key, child in node.items()}
    if isinstance(node, list):
        return [_expand_tree(child) for child in node]
    return node


class _Section:
    """A mapping from the YAML document that knows its dotted path.

    Validation errors name the full path (``context.history_length``)
    so a bad value can be found in the file directly.
    """

    def __init__(self, data: dict[str, Any] | None, path: str = "") -> None:
        self._data = data or {}
        self._path = path

    def _name(self, key: str) -> str:
        return f"{self._path}.{key}" if self._path else key

    def keys(self) -> list[str]:
        return list(self._data)

    def has(self, key: str) -> bool:
        return self._data.get(key) is not None

    def get(self, key: str, default: Any = None) -> Any:
        value = self._data.get(key)
        return default if value is None else value

    def require(self, key: str) -> Any:
        if not self.has(key):
            raise ConfigValidationError(f"Required field '{self._name(key)}' is missing")
        return self._data[key]

    def section(self, key: str, required: bool = False) -> "_Section":
        data = self.require(key) if required else self._data.get(key)
        if data is not None and not isinstance(data, dict):
            raise ConfigValidationError(f"'{self._name(key)}' must be a mapping")
        return _Section(data, self._name(key))

    def integer(
        self, key: str, default: int, minimum: int, maximum: int | None = None
    ) -> int:
        """Integer in [minimum, maximum]; digit strings from ``${VAR}`` are accepted."""
        value = self.get(key, default)
        if isinstance(value, str) and re.fullmatch(r"[+-]?\d+", value.strip()):
            value = int(value)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigValidationError(f"'{self._name(key)}' must be an integer")
        if value < minimum or (maximum is not None and value > maximum):
            bounds = f">= {minimum}" if maximum is None else f"{minimum}..{maximum}"
            raise ConfigValidationError(f"'{self._name(key)}' must be {bounds}")
        return value

    def positive_int(self, key: str, default: int) -> int:
        return self.integer(key, default, minimum=1)

    def number(
        self, key: str, default: float, minimum: float, maximum: float
    ) -> float:
        """Finite number in [minimum, maximum]; numeric strings are accepted."""
        value = self.get(key, default)
        if isinstance(value, str):
            try:
                value = float(value)
            except ValueError:
                pass
        if (
            isinstance(value, bool)
            or not isinstance(value, (int, float))
            or not math.isfinite(value)
        ):
            raise ConfigValidationError(f"'{self._name(key)}' must be a number")
        if not minimum <= value <= maximum:
            raise ConfigValidationError(
                f"'{self._name(key)}' must be between {minimum} and {maximum}"
            )
        return float(value)

    def probability(self, key: str, default: float) -> float:
        return self.number(key, default, 0.0, 1.0)

    def flag(self, key: str, default: bool) -> bool:
        """true/false, also as the strings "true"/"false"/"1"/"0"/"yes"/"no"."""
        value = self.get(key, default)
        if isinstance(value, str):
            value = _FLAG_WORDS.get(value.strip().lower(), value)
        if not isinstance(value, bool):
            raise ConfigValidationError(f"'{self._name(key)}' must be true or false")
        return value


def _read_llm(section: _Section) -> dict[str, LLMConfig]:
    section.require("default")
    defaults = LLMConfig(model="")
    models: dict[str, LLMConfig] = {}
    for name in section.keys():
        entry = section.section(name, required=True)
        models[name] = LLMConfig(
            model=entry.require("model"),
            temperature=entry.number(
                "temperature", defaults.temperature, MIN_TEMPERATURE, MAX_TEMPERATURE
            ),
            max_tokens=entry.positive_int("max_tokens", defaults.max_tokens),
        )
    return models


def _read_context(section: _Section) -> ContextConfig:
    defaults = ContextConfig()
    return ContextConfig(
        history_length=section.positive_int("history_length", defaults.history_length),
        expiration_minutes=section.positive_int(
            "expiration_minutes", defaults.expiration_minutes
        ),
        max_entities_per_kind=section.positive_int(
            "max_entities_per_kind", defaults.max_entities_per_kind
        ),
    )


def _read_classifier(section: _Section) -> ClassifierConfig:
    """clarification_threshold <= direct_route_threshold でなければならない"""
    defaults = ClassifierConfig()
    clarification = section.probability(
        "clarification_threshold", defaults.clarification_threshold
    )
    direct_route = section.probability(
        "direct_route_threshold", defaults.direct_route_threshold
    )
    if clarification > direct_route:
        raise ConfigValidationError(
            "'classifier.clarification_threshold' must not exceed "
            "'classifier.direct_route_threshold'"
        )
    return ClassifierConfig(
        clarification_threshold=clarification,
        direct_route_threshold=direct_route,
        follow_up_max_length=section.positive_int(
            "follow_up_max_length", defaults.follow_up_max_length
        ),
    )


def _read_logging(section: _Section) -> LoggingConfig:
    defaults = LoggingConfig()
    return LoggingConfig(
        level=section.get("level", defaults.level),
        format=section.get("format", defaults.format),
        loggers=section.get("loggers"),
        debug_llm_messages=section.flag(
            "debug_llm_messages", defaults.debug_llm_messages
        ),
    )


def load_config(path: str | Path) -> Config:
    """設定ファイルを読み込む

    ``${VAR}`` は読み込み時に環境変数で展開される。
    slack, llm (default を含む), database は必須で、
    それ以外のセクションは省略時にデフォルト値を使う。

    Raises:
        FileNotFoundError: ファイルが存在しない
        ConfigValidationError: 必須項目が欠落、または値が不正
        EnvironmentVariableError: 環境変数が未設定
        yaml.YAMLError: YAML 構文エラー
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        document = _Section(_expand_tree(yaml.safe_load(f) or {}))

    slack = document.section("slack", required=True)
    llm = document.section("llm", required=True)
    database = document.section("database", required=True)
    health = document.section("health")

    return Config(
        slack=SlackConfig(
            bot_token=slack.require("bot_token"),
            app_token=slack.require("app_token"),
        ),
        llm=_read_llm(llm),
        database=DatabaseConfig(database_path=database.require("database_path")),
        context=_read_context(document.section("context")),
        classifier=_read_classifier(document.section("classifier")),
        cleanup=CleanupConfig(
            interval_seconds=document.section("cleanup").positive_int(
                "interval_seconds", CleanupConfig().interval_seconds
            )
        ),
        health=HealthConfig(
            enabled=health.flag("enabled", HealthConfig().enabled),
            port=health.integer(
                "port", HealthConfig().port, minimum=0, maximum=65535
            ),
        ),
        logging=(
            _read_logging(document.section("logging"))
            if document.has("logging")
            else None
        ),
    )
