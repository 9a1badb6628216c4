"""Abstract base class for image generation providers."""

import asyncio
import traceback
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from config import Settings, settings as default_settings
from credentials import CredentialResolver
from logsink import AddLog, LogEntry, mask_api_key
from providers.catalog import ModelProviderConfig
from providers.errors import ApiCallFailed, ImageGenerationError, InvalidModel
from providers.image.sizes import DEFAULT_SIZE, ImageSize, pick_by_orientation

Sleep = Callable[[float], Awaitable[Any]]
SchemaT = TypeVar("SchemaT", bound=BaseModel)


@dataclass
class GenerateImageParams:
    """One generation call. Owned by the caller, never retained by the provider."""

    prompt: str
    model: str
    image_size: str  # "WIDTHxHEIGHT"
    add_log: AddLog
    negative_prompt: str | None = None
    api_key: str | None = None  # overrides the resolved key for this call only


def is_valid_model(model: Any) -> bool:
    return isinstance(model, str) and bool(model)


class ImageProvider(ABC):
    """Abstract base class for image generation providers.

    Implementations: CogviewProvider, OpenAIProvider, WanxProvider,
    QianfanProvider, VolcengineProvider, MinimaxProvider

    Subclasses implement ``_generate`` and ``_sizes_for``. The public
    ``generate_image`` validates the model id and makes sure any failure
    that was not already written to the log sink gets an ``error`` entry
    before it propagates.
    """

    # True when only the enumerated sizes are accepted by the vendor
    strict_sizes: bool = False

    def __init__(
        self,
        config: ModelProviderConfig,
        credentials: CredentialResolver,
        app_settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep | None = None,
    ):
        self.config = config
        self.credentials = credentials
        self.settings = app_settings or default_settings
        self.transport = transport
        self.sleep = sleep or asyncio.sleep

    @property
    def provider_name(self) -> str:
        return self.config.value

    # ===== API keys =====

    def get_api_key(self) -> str:
        return self.credentials.get_api_key(self.config.api_key_name)

    def set_api_key(self, key: str) -> None:
        self.credentials.set_api_key(self.config.api_key_name, key)

    # ===== Generation =====

    async def generate_image(self, params: GenerateImageParams) -> str:
        """Generate one image and return a displayable URL (http(s), data: or file:)."""
        if not is_valid_model(params.model):
            raise InvalidModel(params.model)

        api_key = params.api_key or self.get_api_key()
        try:
            return await self._generate(params, api_key)
        except Exception as e:
            self._log_failure(e, params.add_log)
            raise

    @abstractmethod
    async def _generate(self, params: GenerateImageParams, api_key: str) -> str:
        ...

    # ===== Sizes =====

    def get_supported_sizes(self, model: str) -> list[ImageSize]:
        if not is_valid_model(model):
            return [DEFAULT_SIZE]
        return list(self._sizes_for(model))

    def _sizes_for(self, model: str) -> list[ImageSize]:
        return [DEFAULT_SIZE]

    def is_image_size_supported(self, model: str, width: int, height: int) -> bool:
        return ImageSize(width, height) in self.get_supported_sizes(model)

    def get_recommended_size(self, model: str, aspect_ratio: float) -> ImageSize:
        return pick_by_orientation(self.get_supported_sizes(model), aspect_ratio)

    # ===== HTTP helpers =====

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.http_timeout, transport=self.transport)

    def _bearer_headers(self, api_key: str) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }

    def _log_request(
        self,
        add_log: AddLog,
        url: str,
        headers: dict,
        body: Any = None,
        method: str = "POST",
        **extra: Any,
    ) -> None:
        data = {"url": url, "method": method, "headers": headers}
        if body is not None:
            data["body"] = body
        data.update({k: v for k, v in extra.items() if v is not None})
        add_log(LogEntry(type="request", data=data))

    def _masked_bearer(self, api_key: str) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {mask_api_key(api_key)}",
        }

    def _raise_for_status(self, response: httpx.Response, add_log: AddLog, **extra: Any) -> None:
        """Log and raise ApiCallFailed for any non-2xx response."""
        if response.is_success:
            return
        data = {
            "status": response.status_code,
            "statusText": response.reason_phrase,
            "error": response.text,
        }
        data.update(extra)
        add_log(LogEntry(type="error", data=data))
        error = ApiCallFailed(response.status_code, response.reason_phrase, response.text)
        error.logged = True
        raise error

    def _read_json(self, response: httpx.Response, add_log: AddLog, log_type: str = "response") -> Any:
        data = response.json()
        add_log(LogEntry(type=log_type, data=data))
        return data

    @staticmethod
    def _parse(schema: type[SchemaT], data: Any, fallback: Callable[[], ImageGenerationError]) -> SchemaT:
        """Validate a vendor payload; a shape mismatch becomes the caller's fallback error."""
        try:
            return schema.model_validate(data)
        except ValidationError as e:
            raise fallback() from e

    @staticmethod
    def _log_failure(error: BaseException, add_log: AddLog) -> None:
        if getattr(error, "logged", False):
            return
        add_log(
            LogEntry(
                type="error",
                data={
                    "message": str(error),
                    "stack": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
                },
            )
        )
        if isinstance(error, ImageGenerationError):
            error.logged = True
