"""OpenAI Images provider (gpt-image-1, DALL·E 3, DALL·E 2).

Each model family accepts a fixed size menu, so the requested size is
mapped onto the closest entry before the call. gpt-image-1 always answers
with base64, which is turned into a ``data:`` URL.
"""

import logging

from providers.errors import MissingImageUrl
from providers.image.base import GenerateImageParams, ImageProvider
from providers.image.schemas import ImagesResponse, first
from providers.image.sizes import ImageSize, is_near_square, parse_image_size

logger = logging.getLogger(__name__)

GPT_IMAGE_SIZES = [ImageSize(1024, 1024), ImageSize(1536, 1024), ImageSize(1024, 1536)]
DALLE3_SIZES = [ImageSize(1024, 1024), ImageSize(1792, 1024), ImageSize(1024, 1792)]
DALLE2_SIZES = [ImageSize(256, 256), ImageSize(512, 512), ImageSize(1024, 1024)]


def model_family(model: str) -> str | None:
    if model.startswith("gpt-image-1"):
        return "gpt-image-1"
    if model.startswith("dall-e-3"):
        return "dall-e-3"
    if model == "dall-e-2":
        return "dall-e-2"
    return None


def gpt_image_quality(model: str) -> str:
    for quality in ("high", "medium", "low"):
        if model == f"gpt-image-1-{quality}":
            return quality
    return "medium"


def dalle3_quality(model: str) -> str:
    return "hd" if model == "dall-e-3-hd" else "standard"


def _by_ratio(sizes: list[ImageSize], width: int, height: int) -> ImageSize:
    """sizes is [square, landscape, portrait]."""
    ratio = width / height
    if is_near_square(ratio):
        return sizes[0]
    return sizes[1] if ratio > 1 else sizes[2]


def resolve_request_size(model: str, width: int, height: int) -> ImageSize:
    """Map a requested size onto the menu of the model's family."""
    family = model_family(model)
    if family == "gpt-image-1":
        return _by_ratio(GPT_IMAGE_SIZES, width, height)
    if family == "dall-e-3":
        return _by_ratio(DALLE3_SIZES, width, height)
    if family == "dall-e-2":
        longest = max(width, height)
        if longest <= 256:
            return DALLE2_SIZES[0]
        if longest <= 512:
            return DALLE2_SIZES[1]
        return DALLE2_SIZES[2]
    return ImageSize(1024, 1024)


def build_request_body(model: str, prompt: str, width: int, height: int) -> dict:
    size = str(resolve_request_size(model, width, height))
    family = model_family(model)
    if family == "gpt-image-1":
        # gpt-image-1 rejects response_format
        return {
            "model": "gpt-image-1",
            "prompt": prompt,
            "n": 1,
            "size": size,
            "quality": gpt_image_quality(model),
        }
    if family == "dall-e-2":
        return {
            "model": "dall-e-2",
            "prompt": prompt,
            "n": 1,
            "size": size,
            "response_format": "url",
        }
    return {
        "model": "dall-e-3",
        "prompt": prompt,
        "n": 1,
        "size": size,
        "quality": dalle3_quality(model),
        "style": "vivid",
        "response_format": "url",
    }


def extract_image_url(data: dict) -> str:
    """``data[0].url`` as is, ``data[0].b64_json`` as a PNG data URL."""
    image = first(ImageProvider._parse(ImagesResponse, data, MissingImageUrl).data)
    if image and image.url:
        return image.url
    if image and image.b64_json:
        return f"data:image/png;base64,{image.b64_json}"
    raise MissingImageUrl()


class OpenAIProvider(ImageProvider):
    strict_sizes = True

    async def _generate(self, params: GenerateImageParams, api_key: str) -> str:
        url = f"{self.settings.openai_base_url.rstrip('/')}/v1/images/generations"
        size = parse_image_size(params.image_size)
        body = build_request_body(params.model, params.prompt, size.width, size.height)

        self._log_request(params.add_log, url, self._masked_bearer(api_key), body)
        logger.info("Generating with OpenAI model %s at %s", body["model"], body["size"])

        async with self._client() as client:
            response = await client.post(url, headers=self._bearer_headers(api_key), json=body)
        self._raise_for_status(response, params.add_log)
        data = self._read_json(response, params.add_log)
        return extract_image_url(data)

    def _sizes_for(self, model: str) -> list[ImageSize]:
        family = model_family(model)
        if family == "gpt-image-1":
            return GPT_IMAGE_SIZES
        if family == "dall-e-3":
            return DALLE3_SIZES
        if family == "dall-e-2":
            return DALLE2_SIZES
        return super()._sizes_for(model)
