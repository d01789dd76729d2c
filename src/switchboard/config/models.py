"""設定値を保持する dataclass 群"""

from dataclasses import dataclass, field


@dataclass
class SlackConfig:
    """Slack Socket Mode 接続に使うトークン"""

    bot_token: str
    app_token: str


@dataclass
class LLMConfig:
    """1 モデル分の LiteLLM 呼び出しパラメータ"""

    model: str
    temperature: float = 0.7
    max_tokens: int = 1000


@dataclass
class DatabaseConfig:
    """データベース設定"""

    database_path: str


@dataclass
class ContextConfig:
    """会話コンテキスト設定

    Attributes:
        history_length: 保持する最大ターン数
        expiration_minutes: スレッド外コンテキストの有効期限（分）
        max_entities_per_kind: 種類ごとに保持する最大エンティティ数
    """

    history_length: int = 10
    expiration_minutes: int = 30
    max_entities_per_kind: int = 5


@dataclass
class ClassifierConfig:
    """意図分類設定

    Attributes:
        clarification_threshold: この値未満の confidence では聞き返す
        direct_route_threshold: この値以上の confidence では即座にルーティング
        follow_up_max_length: この文字数未満のメッセージは継続とみなす
    """

    clarification_threshold: float = 0.5
    direct_route_threshold: float = 0.8
    follow_up_max_length: int = 50


@dataclass
class CleanupConfig:
    """期限切れコンテキスト掃除設定"""

    interval_seconds: int = 300


@dataclass
class HealthConfig:
    """ヘルスチェックサーバー設定"""

    enabled: bool = False
    port: int = 8080


@dataclass
class LoggingConfig:
    """ルートロガーと個別ロガーのレベル設定"""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    loggers: dict[str, str] | None = None
    debug_llm_messages: bool = False


@dataclass
class Config:
    """config.yaml 全体"""

    slack: SlackConfig
    llm: dict[str, LLMConfig]
    database: DatabaseConfig
    context: ContextConfig = field(default_factory=ContextConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    cleanup: CleanupConfig = field(default_factory=CleanupConfig)
    health: HealthConfig = field(default_factory=HealthConfig)
    logging: LoggingConfig | None = None
