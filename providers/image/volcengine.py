"""Volcengine Doubao text-to-image provider (visual.volcengineapi.com).

Authentication is an HMAC-SHA256 request signature built from an
``AccessKeyId:SecretAccessKey`` credential. The response envelope reports
success through ``code == 10000`` rather than the HTTP status, and the
image comes back either as URLs or as base64 payloads.
"""

import base64
import json
import logging
import os
import uuid
from pathlib import Path

import httpx

from logsink import AddLog, LogEntry, mask_api_key
from providers.errors import InvalidCredentialFormat, MissingImageUrl, ProviderError
from providers.image.base import GenerateImageParams, ImageProvider
from providers.image.schemas import VolcengineEnvelope, first
from providers.image.sizes import ImageSize, parse_image_size
from providers.signing import CONTENT_TYPE, sign_request

logger = logging.getLogger(__name__)

PATH = "/"
QUERY = {"Action": "CVProcess", "Version": "2022-08-31"}
REGION = "cn-north-1"
SERVICE = "cv"
SUCCESS_CODE = 10000

SIZES = [
    ImageSize(512, 512),
    ImageSize(768, 768),
    ImageSize(512, 768),
    ImageSize(768, 512),
]

# Per-model request parameters
MODEL_PARAMS = {
    "doubaoimg-text2img-v2.1": {
        "req_key": "high_aes_general_v21_L",
        "req_schedule_conf": "general_v20_9B_pe",
        "seed": -1,
        "scale": 3.5,
        "ddim_steps": 25,
        "use_pre_llm": True,
    },
    "doubaoimg-text2img-v2.0pro": {
        "req_key": "high_aes_general_v20_L",
        "req_schedule_conf": "general_v20_9B_pe",
        "seed": -1,
        "scale": 3.5,
        "ddim_steps": 16,
        "use_pre_llm": True,
    },
}
DEFAULT_MODEL_PARAMS = {
    "req_key": "high_aes_general_v20",
    "seed": -1,
    "scale": 3.5,
    "ddim_steps": 16,
    "use_rephraser": True,
}


def split_credentials(api_key: str) -> tuple[str, str]:
    """Split ``AccessKeyId:SecretAccessKey``; anything but two non-empty parts is rejected."""
    parts = (api_key or "").split(":")
    if len(parts) != 2 or not all(parts):
        raise InvalidCredentialFormat()
    return parts[0], parts[1]


def build_request_body(model: str, prompt: str, width: int, height: int, negative_prompt: str | None) -> dict:
    body = {
        "width": width or 512,
        "height": height or 512,
        "prompt": prompt,
        "return_url": True,
        "use_sr": True,
    }
    if negative_prompt:
        body["negative_prompt"] = negative_prompt
    body.update(MODEL_PARAMS.get(model, DEFAULT_MODEL_PARAMS))
    body["logo_info"] = {"add_logo": False, "position": 0, "language": 0, "opacity": 0.3}
    return body


class VolcengineProvider(ImageProvider):
    """Doubao general text-to-image models.

    HTTP 401 and transport failures are retried ``settings.volcengine_max_retries``
    times, sleeping ``volcengine_backoff_seconds * attempt`` between tries.
    Every try is signed again since the signature embeds the timestamp.
    """

    @property
    def output_dir(self) -> str:
        return self.settings.image_output_dir or os.path.join(os.getcwd(), "generated_images")

    async def _generate(self, params: GenerateImageParams, api_key: str) -> str:
        access_key_id, secret_access_key = split_credentials(api_key)
        size = parse_image_size(params.image_size)
        body = build_request_body(params.model, params.prompt, size.width, size.height, params.negative_prompt)
        body_string = json.dumps(body, ensure_ascii=False, separators=(",", ":"))

        host = self.settings.volcengine_host
        max_retries = self.settings.volcengine_max_retries
        attempt = 0

        while True:
            signed = sign_request(
                access_key_id,
                secret_access_key,
                host,
                PATH,
                QUERY,
                body_string,
                region=REGION,
                service=SERVICE,
            )
            url = f"https://{host}{PATH}?{signed.query_string}"
            headers = {"Content-Type": CONTENT_TYPE, **signed.headers}
            masked = {
                **headers,
                "Authorization": signed.headers["Authorization"].replace(
                    access_key_id, mask_api_key(access_key_id)
                ),
            }
            self._log_request(params.add_log, url, masked, body, retryAttempt=attempt or None)

            try:
                async with self._client() as client:
                    response = await client.post(url, headers=headers, content=body_string.encode("utf-8"))
            except httpx.TransportError as e:
                if attempt < max_retries:
                    attempt += 1
                    await self._backoff(params.add_log, attempt, f"Network request failed, retry {attempt}", str(e))
                    continue
                raise

            if response.status_code == 401 and attempt < max_retries:
                params.add_log(
                    LogEntry(
                        type="error",
                        data={
                            "status": response.status_code,
                            "statusText": response.reason_phrase,
                            "error": response.text,
                            "requestDetails": {"url": url, "headers": masked},
                        },
                    )
                )
                attempt += 1
                await self._backoff(params.add_log, attempt, f"Authentication failed, retry {attempt}")
                continue

            self._raise_for_status(response, params.add_log)
            data = self._read_json(response, params.add_log)
            return self._extract_image(data, params.add_log)

    async def _backoff(self, add_log: AddLog, attempt: int, message: str, original_error: str | None = None) -> None:
        data = {"message": message}
        if original_error:
            data["originalError"] = original_error
        add_log(LogEntry(type="info", data=data))
        logger.warning("Volcengine: %s", message)
        await self.sleep(self.settings.volcengine_backoff_seconds * attempt)

    def _extract_image(self, data: dict, add_log: AddLog) -> str:
        envelope = self._parse(VolcengineEnvelope, data, MissingImageUrl)
        if envelope.code != SUCCESS_CODE:
            add_log(LogEntry(type="error", data={"code": envelope.code, "message": envelope.message}))
            error = ProviderError(envelope.code, envelope.message)
            error.logged = True
            raise error

        payload = envelope.data
        image_url = first(payload.image_urls) if payload else None
        if image_url:
            return image_url

        encoded = first(payload.binary_data_base64) if payload else None
        if not encoded:
            raise MissingImageUrl("No image data in response")
        return self._save_image(base64.b64decode(encoded))

    def _save_image(self, image_data: bytes) -> str:
        """Write decoded image bytes locally and return a file:// URL."""
        Path(self.output_dir).mkdir(parents=True, exist_ok=True)
        local_path = Path(self.output_dir, f"{uuid.uuid4().hex}.jpg").resolve()
        local_path.write_bytes(image_data)
        return local_path.as_uri()

    def _sizes_for(self, model: str) -> list[ImageSize]:
        return SIZES
