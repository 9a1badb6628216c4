"""Error taxonomy shared by providers, the registry and the orchestrator."""

import json
from typing import Any


class ImageGenerationError(Exception):
    """Base class for every generation failure.

    ``logged`` is flipped to True once an ``error`` entry describing the
    failure has been written to the log sink, so it is never logged twice.
    """

    logged: bool = False


class InvalidModel(ImageGenerationError):
    def __init__(self, model: Any = None):
        self.model = model
        super().__init__("Invalid model parameter, please select a valid model")


class InvalidCredentialFormat(ImageGenerationError):
    def __init__(self, expected: str = "AccessKeyId:SecretAccessKey"):
        super().__init__(f"Invalid API key format, expected {expected}")


class MissingApiKey(ImageGenerationError):
    def __init__(self, provider_name: str, api_key_name: str):
        self.provider_name = provider_name
        self.api_key_name = api_key_name
        super().__init__(f"Missing API key for {provider_name} ({api_key_name})")


class MissingTaskId(ImageGenerationError):
    def __init__(self):
        super().__init__("No task id in task creation response")


class MissingImageUrl(ImageGenerationError):
    def __init__(self, detail: str = "No image URL in response"):
        super().__init__(detail)


class ApiCallFailed(ImageGenerationError):
    """Non-2xx HTTP response. Carries the raw status line and body."""

    def __init__(self, status: int, status_text: str, body: str):
        self.status = status
        self.status_text = status_text
        self.body = body
        super().__init__(f"API call failed: {status} {status_text} - {body}")


class ProviderError(ImageGenerationError):
    """Vendor envelope reported failure with an HTTP 2xx status."""

    def __init__(self, code: Any, message: str | None):
        self.code = code
        self.vendor_message = message or "Unknown error"
        super().__init__(f"API returned error: {code} - {self.vendor_message}")


class TaskFailed(ImageGenerationError):
    def __init__(self, task_id: str, output: Any):
        self.task_id = task_id
        self.output = output
        super().__init__(f"Task {task_id} failed: {json.dumps(output, ensure_ascii=False, default=str)}")


class TaskTimeout(ImageGenerationError):
    """Polling budget exhausted. The task may still finish on the vendor side."""

    def __init__(self, task_id: str, attempts: int):
        self.task_id = task_id
        self.attempts = attempts
        super().__init__(
            f"Task {task_id} did not finish after {attempts} status checks, check history later"
        )


class UnsupportedModel(ImageGenerationError):
    def __init__(self, model: str):
        self.model = model
        super().__init__(f"Unsupported model: {model}")


class EmptyPrompt(ImageGenerationError):
    def __init__(self):
        super().__init__("Prompt must not be empty")


class PromptTooLong(ImageGenerationError):
    def __init__(self, length: int, limit: int):
        self.length = length
        self.limit = limit
        super().__init__(f"Prompt is too long: {length} characters, the model allows {limit}")


class NegativePromptTooLong(ImageGenerationError):
    def __init__(self, length: int, limit: int):
        self.length = length
        self.limit = limit
        super().__init__(f"Negative prompt is too long: {length} characters, the model allows {limit}")


class UnsupportedImageSize(ImageGenerationError):
    def __init__(self, model: str, size: str):
        self.model = model
        self.size = size
        super().__init__(f"Image size {size} is not supported by {model}")
