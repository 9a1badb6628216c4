"""MiniMax image-01 provider. The size is sent as an aspect ratio label."""

import logging

from logsink import LogEntry
from providers.errors import MissingImageUrl, ProviderError
from providers.image.base import GenerateImageParams, ImageProvider
from providers.image.schemas import MinimaxResponse, first
from providers.image.sizes import ImageSize, parse_image_size

logger = logging.getLogger(__name__)

SIZES = [
    ImageSize(1024, 1024),  # 1:1
    ImageSize(1024, 768),  # 4:3
    ImageSize(768, 1024),  # 3:4
    ImageSize(1280, 720),  # 16:9
    ImageSize(720, 1280),  # 9:16
    ImageSize(1152, 896),  # 9:7
    ImageSize(896, 1152),  # 7:9
]

ASPECT_RATIOS = [
    ("1:1", 1.0),
    ("4:3", 4 / 3),
    ("3:4", 3 / 4),
    ("16:9", 16 / 9),
    ("9:16", 9 / 16),
    ("9:7", 9 / 7),
    ("7:9", 7 / 9),
]


def aspect_ratio_label(width: int, height: int) -> str:
    ratio = width / height
    for label, value in ASPECT_RATIOS:
        if abs(ratio - value) < 0.1:
            return label
    return "1:1"


class MinimaxProvider(ImageProvider):
    async def _generate(self, params: GenerateImageParams, api_key: str) -> str:
        url = self.settings.minimax_url
        size = parse_image_size(params.image_size)
        body = {
            "model": params.model,
            "prompt": params.prompt,
            "aspect_ratio": aspect_ratio_label(size.width, size.height),
            "response_format": "url",
            "n": 1,
            "prompt_optimizer": True,
        }

        self._log_request(params.add_log, url, self._masked_bearer(api_key), body)
        logger.info("Generating with MiniMax model %s (%s)", params.model, body["aspect_ratio"])

        async with self._client() as client:
            response = await client.post(url, headers=self._bearer_headers(api_key), json=body)
        self._raise_for_status(response, params.add_log)
        data = self._read_json(response, params.add_log)

        parsed = self._parse(MinimaxResponse, data, MissingImageUrl)
        if parsed.base_resp and parsed.base_resp.status_code:
            params.add_log(
                LogEntry(
                    type="error",
                    data={"code": parsed.base_resp.status_code, "message": parsed.base_resp.status_msg},
                )
            )
            error = ProviderError(parsed.base_resp.status_code, parsed.base_resp.status_msg)
            error.logged = True
            raise error

        image_url = first(parsed.data.image_urls) if parsed.data else None
        if not image_url:
            raise MissingImageUrl()
        return image_url

    def _sizes_for(self, model: str) -> list[ImageSize]:
        return SIZES
