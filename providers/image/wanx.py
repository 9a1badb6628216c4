"""Alibaba Cloud Wanx V2 provider (DashScope asynchronous task API).

Creating a task returns only a task id; the image URL is fetched by
polling the task endpoint until it reports SUCCEEDED or FAILED.
"""

import logging

import httpx

from logsink import LogEntry
from providers.errors import MissingImageUrl, MissingTaskId, TaskFailed, TaskTimeout
from providers.image.base import GenerateImageParams, ImageProvider
from providers.image.schemas import TaskResponse, first
from providers.image.sizes import ImageSize

logger = logging.getLogger(__name__)

SIZES = [
    ImageSize(512, 512),
    ImageSize(768, 768),
    ImageSize(1024, 1024),
    ImageSize(720, 1280),
    ImageSize(1280, 720),
]

SUCCEEDED = "SUCCEEDED"
FAILED = "FAILED"


class WanxProvider(ImageProvider):
    """Wanx text-to-image via ``X-DashScope-Async``.

    Polls every ``settings.wanx_poll_interval`` seconds, at most
    ``settings.wanx_max_polls`` times, then gives up with TaskTimeout.
    """

    @property
    def create_url(self) -> str:
        return f"{self.settings.wanx_base_url.rstrip('/')}/services/aigc/text2image/image-synthesis"

    def task_url(self, task_id: str) -> str:
        return f"{self.settings.wanx_base_url.rstrip('/')}/tasks/{task_id}"

    async def _generate(self, params: GenerateImageParams, api_key: str) -> str:
        body: dict = {
            "model": params.model,
            "input": {"prompt": params.prompt},
            "parameters": {"size": params.image_size, "n": 1},
        }
        if params.negative_prompt:
            body["input"]["negative_prompt"] = params.negative_prompt

        headers = {**self._bearer_headers(api_key), "X-DashScope-Async": "enable"}
        masked = {**self._masked_bearer(api_key), "X-DashScope-Async": "enable"}
        self._log_request(params.add_log, self.create_url, masked, body)
        logger.info("Creating Wanx task for model %s", params.model)

        async with self._client() as client:
            response = await client.post(self.create_url, headers=headers, json=body)
            self._raise_for_status(response, params.add_log)
            created = self._parse(TaskResponse, self._read_json(response, params.add_log), MissingTaskId)
            if not created.output or not created.output.task_id:
                raise MissingTaskId()

            task = await self._poll(client, created.output.task_id, api_key, params)

        image = first(task.output.results)
        if not image or not image.url:
            raise MissingImageUrl()
        return image.url

    async def _poll(
        self, client: httpx.AsyncClient, task_id: str, api_key: str, params: GenerateImageParams
    ) -> TaskResponse:
        """Wait for the task to reach a terminal state."""
        url = self.task_url(task_id)
        max_polls = self.settings.wanx_max_polls

        for attempt in range(1, max_polls + 1):
            await self.sleep(self.settings.wanx_poll_interval)

            response = await client.get(url, headers={"Authorization": f"Bearer {api_key}"})
            self._raise_for_status(response, params.add_log, taskId=task_id)
            data = response.json()
            task = self._parse(TaskResponse, data, MissingImageUrl)
            status = task.output.task_status if task.output else None

            params.add_log(
                LogEntry(
                    type="info",
                    data={"taskId": task_id, "attempt": attempt, "status": status, "result": data},
                )
            )

            if status == SUCCEEDED:
                return task
            if status == FAILED:
                raise TaskFailed(task_id, data.get("output"))

        logger.warning("Wanx task %s still running after %d checks", task_id, max_polls)
        raise TaskTimeout(task_id, max_polls)

    def _sizes_for(self, model: str) -> list[ImageSize]:
        return SIZES
