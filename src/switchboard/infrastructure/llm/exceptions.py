"""Errors raised by LLMClient."""


class LLMError(Exception):
    """Any failed or empty chat completion."""

    retryable = False


class LLMRateLimitError(LLMError):
    """プロバイダのレート制限に達した"""

    retryable = True


class LLMAuthenticationError(LLMError):
    """API キーが無効、または権限がない"""
