"""Model provider layer — one ``complete`` contract over heterogeneous backends."""

from toolwire.providers.base import (
    BaseProvider,
    CompletionResponse,
    ModelProvider,
    ProviderConfig,
    mask_secret,
)
from toolwire.providers.ernie import ErnieProvider
from toolwire.providers.factory import PROVIDERS, ModelProviderFactory
from toolwire.providers.litellm_provider import LiteLLMProvider

__all__ = [
    "PROVIDERS",
    "BaseProvider",
    "CompletionResponse",
    "ErnieProvider",
    "LiteLLMProvider",
    "ModelProvider",
    "ModelProviderFactory",
    "ProviderConfig",
    "mask_secret",
]
