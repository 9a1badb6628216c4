"""Image providers: CogView, OpenAI, Wanx, Qianfan, Volcengine Doubao, MiniMax."""

from providers.image.base import GenerateImageParams, ImageProvider

__all__ = ["GenerateImageParams", "ImageProvider"]
