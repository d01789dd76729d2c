"""Async chat completion over LiteLLM."""

import logging
from typing import Any

import litellm
from litellm.exceptions import AuthenticationError, RateLimitError

from switchboard.config import LLMConfig
from switchboard.infrastructure.llm.exceptions import (
    LLMAuthenticationError,
    LLMError,
    LLMRateLimitError,
)

logger = logging.getLogger(__name__)


def _translate_error(error: Exception) -> LLMError:
    """LiteLLM の例外を LLMError 系に変換する"""
    if isinstance(error, AuthenticationError):
        logger.error("LLM authentication error: %s", error)
        return LLMAuthenticationError(str(error))
    if isinstance(error, RateLimitError):
        logger.warning("LLM rate limit exceeded: %s", error)
        return LLMRateLimitError(str(error))
    logger.error("LLM error: %s", error)
    return LLMError(str(error))


class LLMClient:
    """Sends chat messages to one configured model.

    Every failure surfaces as an ``LLMError`` subclass, so callers only
    need to handle a single exception family.
    """

    def __init__(self, config: LLMConfig) -> None:
        self._config = config

    @property
    def model(self) -> str:
        return self._config.model

    def _request_params(
        self, messages: list[dict[str, str]], overrides: dict[str, Any]
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "model": self._config.model,
            "temperature": self._config.temperature,
            "max_tokens": self._config.max_tokens,
        }
        params.update(overrides)
        params["messages"] = messages
        return params

    async def complete(
        self,
        messages: list[dict[str, str]],
        **kwargs: Any,
    ) -> str:
        """Run a chat completion and return the reply text.

        Args:
            messages: OpenAI 形式のメッセージ列
            **kwargs: 設定値を上書きするパラメータ (temperature など)

        Returns:
            生成されたテキスト

        Raises:
            LLMAuthenticationError: API キーが無効
            LLMRateLimitError: レート制限超過
            LLMError: その他の失敗、または空の応答
        """
        params = self._request_params(messages, kwargs)
        logger.debug(
            "LLM request: model=%s, messages=%d", params["model"], len(messages)
        )

        try:
            response = await litellm.acompletion(**params)
            content = response.choices[0].message.content
        except Exception as e:
            raise _translate_error(e) from e

        if not content:
            raise LLMError(f"Empty response from {params['model']}")
        return content
