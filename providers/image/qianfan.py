"""Baidu Qianfan provider."""

import logging

from providers.errors import MissingImageUrl
from providers.image.base import GenerateImageParams, ImageProvider
from providers.image.schemas import ImagesResponse, first
from providers.image.sizes import ImageSize

logger = logging.getLogger(__name__)

SIZES = {
    "irag-1.0": [ImageSize(512, 512), ImageSize(768, 768), ImageSize(1024, 1024)],
    "flux.1-schnell": [
        ImageSize(512, 512),
        ImageSize(768, 768),
        ImageSize(1024, 1024),
        ImageSize(512, 768),
        ImageSize(768, 512),
    ],
}


class QianfanProvider(ImageProvider):
    async def _generate(self, params: GenerateImageParams, api_key: str) -> str:
        url = self.settings.qianfan_url
        body = {
            "model": params.model,
            "prompt": params.prompt,
            "size": params.image_size,
        }

        self._log_request(params.add_log, url, self._masked_bearer(api_key), body)
        logger.info("Generating with Qianfan model %s", params.model)

        async with self._client() as client:
            response = await client.post(url, headers=self._bearer_headers(api_key), json=body)
        self._raise_for_status(response, params.add_log)
        data = self._read_json(response, params.add_log)

        image = first(self._parse(ImagesResponse, data, MissingImageUrl).data)
        if not image or not image.url:
            raise MissingImageUrl()
        return image.url

    def _sizes_for(self, model: str) -> list[ImageSize]:
        return SIZES.get(model, super()._sizes_for(model))
