"""Generation orchestrator: validates a request, fans out N calls and records history."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime

from config import Settings, settings as default_settings
from logsink import AddLog
from providers.catalog import (
    effective_negative_prompt_max_length,
    effective_prompt_max_length,
    supports_negative_prompt,
)
from providers.errors import (
    EmptyPrompt,
    MissingApiKey,
    NegativePromptTooLong,
    PromptTooLong,
    UnsupportedImageSize,
)
from providers.factory import ProviderRegistry
from providers.image.base import GenerateImageParams, ImageProvider
from providers.image.sizes import is_valid_generic_size, parse_image_size
from storage import HistoryStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryEntry:
    """One successful batch, never changed once recorded. The first image is the primary one."""

    prompt: str
    img_url: str
    model: str
    time: str
    size: str
    image_count: int | None = None
    all_images: tuple[str, ...] | None = None

    def to_dict(self) -> dict:
        return {
            "prompt": self.prompt,
            "imgUrl": self.img_url,
            "model": self.model,
            "time": self.time,
            "size": self.size,
            "imageCount": self.image_count,
            "allImages": list(self.all_images) if self.all_images is not None else None,
        }


@dataclass
class GenerationBatch:
    model: str
    provider: str
    size: str
    images: list[str] = field(default_factory=list)
    history_entry: HistoryEntry | None = None
    duration_seconds: float = 0.0


class GenerationOrchestrator:
    """Coordinates one user request across the registry, the log sink and the history store.

    Usage:
        orchestrator = GenerationOrchestrator(registry, log_sink, history_store)
        batch = await orchestrator.generate("a red fox", "cogview-3-flash", None, "1024x1024", count=2)
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        add_log: AddLog,
        history_store: HistoryStore | None = None,
        app_settings: Settings | None = None,
    ):
        self.registry = registry
        self.add_log = add_log
        self.history_store = history_store
        self.settings = app_settings or default_settings

    def validate(
        self,
        prompt: str,
        model: str,
        api_key: str | None,
        size: str,
        negative_prompt: str | None = None,
    ) -> tuple[ImageProvider, str, str | None]:
        """Check a request before any network call.

        Returns the provider, the API key to use and the negative prompt to
        send (None when the model does not take one).
        """
        if not prompt or not prompt.strip():
            raise EmptyPrompt()

        provider = self.registry.resolve_provider(model)

        prompt_limit = effective_prompt_max_length(model, self.settings.default_prompt_max_length)
        if len(prompt) > prompt_limit:
            raise PromptTooLong(len(prompt), prompt_limit)

        if supports_negative_prompt(model):
            negative_limit = effective_negative_prompt_max_length(model)
            if negative_prompt and len(negative_prompt) > negative_limit:
                raise NegativePromptTooLong(len(negative_prompt), negative_limit)
        else:
            negative_prompt = None

        try:
            dimensions = parse_image_size(size)
        except ValueError:
            raise UnsupportedImageSize(model, size) from None
        if provider.strict_sizes:
            supported = provider.is_image_size_supported(model, dimensions.width, dimensions.height)
        else:
            supported = is_valid_generic_size(dimensions.width, dimensions.height)
        if not supported:
            raise UnsupportedImageSize(model, size)

        key = api_key or provider.get_api_key()
        if not key:
            raise MissingApiKey(provider.config.name, provider.config.api_key_name)

        return provider, key, negative_prompt

    async def generate(
        self,
        prompt: str,
        model: str,
        api_key: str | None,
        size: str,
        count: int = 1,
        negative_prompt: str | None = None,
    ) -> GenerationBatch:
        """Generate ``count`` images concurrently. Any single failure fails the batch."""
        if count < 1:
            raise ValueError(f"count must be at least 1, got {count}")

        provider, key, negative_prompt = self.validate(prompt, model, api_key, size, negative_prompt)

        started = time.monotonic()
        start_time = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        logger.info("Generating %d image(s) with %s (%s, %s)", count, model, provider.provider_name, size)

        params = GenerateImageParams(
            prompt=prompt,
            model=model,
            image_size=size,
            add_log=self.add_log,
            negative_prompt=negative_prompt,
            api_key=key,
        )

        try:
            images = await asyncio.gather(*(provider.generate_image(params) for _ in range(count)))
        except Exception as e:
            logger.error("Generation with %s failed: %s", model, e)
            raise

        entry = HistoryEntry(
            prompt=prompt,
            img_url=images[0],
            model=model,
            time=start_time,
            size=size,
            image_count=len(images),
            all_images=tuple(images),
        )
        if self.history_store:
            self.history_store.add(entry)

        duration = time.monotonic() - started
        logger.info("Generated %d image(s) with %s in %.1fs", len(images), model, duration)

        return GenerationBatch(
            model=model,
            provider=provider.provider_name,
            size=size,
            images=list(images),
            history_entry=entry,
            duration_seconds=duration,
        )

    def history(self) -> list[HistoryEntry]:
        return self.history_store.load() if self.history_store else []

    def clear_history(self) -> None:
        if self.history_store:
            self.history_store.clear()
