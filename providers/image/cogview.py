"""Zhipu AI CogView provider: one POST, image URL in the response."""

import logging

from providers.errors import MissingImageUrl
from providers.image.base import GenerateImageParams, ImageProvider
from providers.image.schemas import ImagesResponse, first

logger = logging.getLogger(__name__)


class CogviewProvider(ImageProvider):
    """CogView via the OpenAI-style ``images/generations`` endpoint.

    Usage:
        provider = CogviewProvider(COGVIEW, credentials)
        url = await provider.generate_image(params)
    """

    async def _generate(self, params: GenerateImageParams, api_key: str) -> str:
        url = self.settings.cogview_url
        body = {
            "model": params.model,
            "prompt": params.prompt,
            "n": 1,
            "size": params.image_size,
            "response_format": "url",
            "style": "vivid",
        }

        self._log_request(params.add_log, url, self._masked_bearer(api_key), body)
        logger.info("Generating with CogView model %s", params.model)

        async with self._client() as client:
            response = await client.post(url, headers=self._bearer_headers(api_key), json=body)
        self._raise_for_status(response, params.add_log)
        data = self._read_json(response, params.add_log)

        parsed = self._parse(ImagesResponse, data, MissingImageUrl)
        image = first(parsed.data)
        if not image or not image.url:
            raise MissingImageUrl()
        return image.url
