"""Provider registry: maps model ids to memoized provider instances."""

import logging
from typing import Callable

import httpx

from config import Settings, settings as default_settings
from credentials import CredentialResolver
from providers.catalog import MODELS, ModelProviderConfig
from providers.errors import UnsupportedModel
from providers.image.base import ImageProvider, Sleep
from providers.image.cogview import CogviewProvider
from providers.image.minimax import MinimaxProvider
from providers.image.openai import OpenAIProvider
from providers.image.qianfan import QianfanProvider
from providers.image.sizes import DEFAULT_SIZE, ImageSize
from providers.image.volcengine import VolcengineProvider
from providers.image.wanx import WanxProvider

logger = logging.getLogger(__name__)

# Ordered: the first matching rule wins
DISPATCH_RULES: list[tuple[Callable[[str], bool], str]] = [
    (lambda m: m.startswith("cogview-"), "cogview"),
    (lambda m: m.startswith("gpt-image-1") or m.startswith("dall-e-"), "openai"),
    (lambda m: m.startswith("wanx2"), "wanx2"),
    (lambda m: m in ("irag-1.0", "flux.1-schnell"), "qianfan"),
    (lambda m: m.startswith("doubaoimg-"), "doubaoimg"),
    (lambda m: m == "image-01", "minimax"),
]

PROVIDER_CLASSES: dict[str, type[ImageProvider]] = {
    "cogview": CogviewProvider,
    "openai": OpenAIProvider,
    "wanx2": WanxProvider,
    "qianfan": QianfanProvider,
    "doubaoimg": VolcengineProvider,
    "minimax": MinimaxProvider,
}


def provider_id_for(model_id: str) -> str:
    """Return the provider id for a model id, or raise UnsupportedModel."""
    if isinstance(model_id, str) and model_id:
        for matches, provider_id in DISPATCH_RULES:
            if matches(model_id):
                return provider_id
    raise UnsupportedModel(model_id)


class ProviderRegistry:
    """Creates providers lazily and caches them by provider id.

    Two sub-models of the same provider share one instance. Construct one
    registry at startup and pass it to whatever needs provider resolution.

    Usage:
        registry = ProviderRegistry(credentials)
        provider = registry.resolve_provider("cogview-3-flash")
    """

    def __init__(
        self,
        credentials: CredentialResolver,
        app_settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep | None = None,
        catalog: tuple[ModelProviderConfig, ...] = MODELS,
    ):
        self.credentials = credentials
        self.settings = app_settings or default_settings
        self.transport = transport
        self.sleep = sleep
        self._configs = {config.value: config for config in catalog}
        self._instances: dict[str, ImageProvider] = {}

    def get_provider(self, provider_id: str) -> ImageProvider:
        if provider_id in self._instances:
            return self._instances[provider_id]

        config = self._configs.get(provider_id)
        provider_cls = PROVIDER_CLASSES.get(provider_id)
        if config is None or provider_cls is None:
            raise UnsupportedModel(provider_id)

        provider = provider_cls(
            config,
            self.credentials,
            app_settings=self.settings,
            transport=self.transport,
            sleep=self.sleep,
        )
        self._instances[provider_id] = provider
        logger.info("Created %s provider", provider_id)
        return provider

    def resolve_provider(self, model_id: str) -> ImageProvider:
        return self.get_provider(provider_id_for(model_id))

    def all_providers(self) -> list[ImageProvider]:
        return [self.get_provider(provider_id) for provider_id in self._configs if provider_id in PROVIDER_CLASSES]

    # ===== Size helpers tolerant of unknown models =====

    def model_supported_sizes(self, model_id: str) -> list[ImageSize]:
        try:
            return self.resolve_provider(model_id).get_supported_sizes(model_id)
        except UnsupportedModel:
            return [DEFAULT_SIZE]

    def model_supports_size(self, model_id: str, width: int, height: int) -> bool:
        try:
            return self.resolve_provider(model_id).is_image_size_supported(model_id, width, height)
        except UnsupportedModel:
            return True

    def model_recommended_size(self, model_id: str, aspect_ratio: float) -> ImageSize:
        try:
            return self.resolve_provider(model_id).get_recommended_size(model_id, aspect_ratio)
        except UnsupportedModel:
            return DEFAULT_SIZE

    def reset(self) -> None:
        """Drop cached instances."""
        self._instances.clear()
