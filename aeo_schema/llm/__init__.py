"""LLMクライアントモジュール

各プロバイダー（Anthropic, OpenAI, オフライン）のクライアントを提供。

使用例:
    from aeo_schema.llm import get_llm_client

    client = get_llm_client("anthropic")
    response = await client.generate(system_prompt, user_prompt)
"""

from .anthropic import AnthropicClient
from .base import ProviderClient, classify_status, get_llm_client
from .mock import MockProviderClient
from .openai import OpenAIClient
from .retry import DEFAULT_OVERLOAD_DELAYS, RetryPolicies, RetryPolicy
from .schemas import LLMRequestConfig, LLMResponse, SchemaRefinement, TokenUsage

__all__ = [
    "AnthropicClient",
    "DEFAULT_OVERLOAD_DELAYS",
    "LLMRequestConfig",
    "LLMResponse",
    "MockProviderClient",
    "OpenAIClient",
    "ProviderClient",
    "RetryPolicies",
    "RetryPolicy",
    "SchemaRefinement",
    "TokenUsage",
    "classify_status",
    "get_llm_client",
]
