"""Response shapes for each vendor, validated at the HTTP boundary.

Unknown fields are kept (``extra="allow"``) so the full body can still be
logged; only the fields the providers read are declared.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="allow")


# ===== OpenAI-compatible (OpenAI, CogView, Qianfan) =====


class ImageDatum(_Lenient):
    url: str | None = None
    b64_json: str | None = None


class ImagesResponse(_Lenient):
    data: list[ImageDatum] = Field(default_factory=list)


# ===== DashScope (Wanx) =====


class TaskResultItem(_Lenient):
    url: str | None = None


class TaskOutput(_Lenient):
    task_id: str | None = None
    task_status: str | None = None
    results: list[TaskResultItem] = Field(default_factory=list)


class TaskResponse(_Lenient):
    output: TaskOutput | None = None


# ===== Volcengine visual API =====


class VolcengineData(_Lenient):
    image_urls: list[str] | None = None
    binary_data_base64: list[str] | None = None


class VolcengineEnvelope(_Lenient):
    code: int | None = None
    message: str | None = None
    data: VolcengineData | None = None


# ===== MiniMax =====


class MinimaxData(_Lenient):
    image_urls: list[str] | None = None


class MinimaxBaseResp(_Lenient):
    status_code: int | None = None
    status_msg: str | None = None


class MinimaxResponse(_Lenient):
    data: MinimaxData | None = None
    base_resp: MinimaxBaseResp | None = None


def first(items: list[Any] | None) -> Any:
    return items[0] if items else None
