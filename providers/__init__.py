"""Provider abstraction layer for text-to-image generation.

One adapter per vendor wire protocol (CogView, OpenAI, Wanx, Qianfan,
Volcengine Doubao, MiniMax) behind the ImageProvider contract, resolved by
model id through the ProviderRegistry.
"""

from providers.image.base import GenerateImageParams, ImageProvider
from providers.image.sizes import ImageSize
from providers.factory import ProviderRegistry, provider_id_for

__all__ = [
    "GenerateImageParams",
    "ImageProvider",
    "ImageSize",
    "ProviderRegistry",
    "provider_id_for",
]
