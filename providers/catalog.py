"""Static catalog of providers and their sub-models.

Every sub-model ``value`` is unique across the whole catalog; it is the key
the registry dispatches on.
"""

from dataclasses import dataclass, field

DEFAULT_LANGUAGES = "Chinese, English"


@dataclass(frozen=True)
class SubModelConfig:
    label: str
    value: str
    price: str
    prompt_max_length: int | None = None
    prompt_support_lang: str | None = None
    negative_prompt_support: bool | None = None
    negative_prompt_max_length: int | None = None


@dataclass(frozen=True)
class ModelProviderConfig:
    name: str
    value: str
    url: str
    api_key_name: str
    prompt_max_length: int | None = None
    prompt_support_lang: str | None = None
    negative_prompt_support: bool | None = None
    negative_prompt_max_length: int | None = None
    children: tuple[SubModelConfig, ...] = field(default_factory=tuple)


COGVIEW = ModelProviderConfig(
    name="Zhipu AI CogView",
    value="cogview",
    url="https://bigmodel.cn/dev/howuse/cogview",
    api_key_name="zhipuai_key",
    prompt_max_length=9999,
    children=(
        SubModelConfig("CogView-4-250304", "cogview-4-250304", "0.06 CNY/image", prompt_max_length=9999),
        SubModelConfig("CogView-4", "cogview-4", "0.06 CNY/call", prompt_max_length=9999),
        SubModelConfig("CogView-3-Flash", "cogview-3-flash", "free", prompt_max_length=9999),
        SubModelConfig("CogView-3", "cogview-3", "free", prompt_max_length=9999),
    ),
)

OPENAI = ModelProviderConfig(
    name="OpenAI Images",
    value="openai",
    url="https://platform.openai.com/docs/api-reference/images",
    api_key_name="openai_key",
    prompt_max_length=4000,
    prompt_support_lang=DEFAULT_LANGUAGES,
    negative_prompt_support=False,
    children=(
        SubModelConfig("GPT-Image-1 (high)", "gpt-image-1-high", "$0.167-0.25/image", 32000, DEFAULT_LANGUAGES),
        SubModelConfig("GPT-Image-1 (medium)", "gpt-image-1-medium", "$0.042-0.063/image", 32000, DEFAULT_LANGUAGES),
        SubModelConfig("GPT-Image-1 (low)", "gpt-image-1-low", "$0.011-0.016/image", 32000, DEFAULT_LANGUAGES),
        SubModelConfig("DALL·E 3 (HD)", "dall-e-3-hd", "$0.08-0.12/image", 4000, DEFAULT_LANGUAGES),
        SubModelConfig("DALL·E 3 (standard)", "dall-e-3-standard", "$0.04-0.08/image", 4000, DEFAULT_LANGUAGES),
        SubModelConfig("DALL·E 2", "dall-e-2", "$0.016-0.02/image", 1000, DEFAULT_LANGUAGES),
    ),
)

WANX = ModelProviderConfig(
    name="Alibaba Cloud Wanx V2",
    value="wanx2",
    url="https://help.aliyun.com/zh/model-studio/text-to-image-v2-api-reference",
    api_key_name="aliyun_wanx_key",
    prompt_max_length=800,
    prompt_support_lang=DEFAULT_LANGUAGES,
    negative_prompt_support=True,
    negative_prompt_max_length=500,
    children=(
        SubModelConfig("wanx2.1-t2i-turbo", "wanx2.1-t2i-turbo", "0.14 CNY/image", 800, DEFAULT_LANGUAGES, True),
        SubModelConfig("wanx2.1-t2i-plus", "wanx2.1-t2i-plus", "0.20 CNY/image", 800, DEFAULT_LANGUAGES, True),
        SubModelConfig("wanx2.0-t2i-turbo", "wanx2.0-t2i-turbo", "0.04 CNY/image", 800, DEFAULT_LANGUAGES, True),
    ),
)

QIANFAN = ModelProviderConfig(
    name="Baidu Qianfan",
    value="qianfan",
    url="https://cloud.baidu.com/doc/qianfan-api/s/8m7u6un8a",
    api_key_name="baidu_qianfan_key",
    prompt_max_length=220,
    children=(
        SubModelConfig("irag-1.0", "irag-1.0", "0.14 CNY/image", 220, DEFAULT_LANGUAGES),
        SubModelConfig("flux.1-schnell", "flux.1-schnell", "0.14 CNY/image", 512, "English"),
    ),
)

DOUBAO = ModelProviderConfig(
    name="Volcengine Doubao",
    value="doubaoimg",
    url="https://www.volcengine.com/docs/6791/1366783",
    api_key_name="volcengine_key",
    prompt_max_length=500,
    prompt_support_lang=DEFAULT_LANGUAGES,
    negative_prompt_support=True,
    negative_prompt_max_length=500,
    children=(
        SubModelConfig("General 2.1 text-to-image", "doubaoimg-text2img-v2.1", "0.2 CNY/image", 500, DEFAULT_LANGUAGES, True),
        SubModelConfig("General 2.0 Pro text-to-image", "doubaoimg-text2img-v2.0pro", "0.2 CNY/image", 500, DEFAULT_LANGUAGES, True),
        SubModelConfig("General 2.0 text-to-image", "doubaoimg-text2img-v2.0", "0.2 CNY/image", 500, DEFAULT_LANGUAGES, True),
    ),
)

MINIMAX = ModelProviderConfig(
    name="MiniMax",
    value="minimax",
    url="https://www.minimax.io/platform/document/image_generation",
    api_key_name="minimax_key",
    prompt_max_length=1500,
    prompt_support_lang=DEFAULT_LANGUAGES,
    children=(
        SubModelConfig("image-01", "image-01", "$0.0035/image", 1500, DEFAULT_LANGUAGES),
    ),
)

MODELS: tuple[ModelProviderConfig, ...] = (COGVIEW, OPENAI, WANX, QIANFAN, DOUBAO, MINIMAX)


def find_model_config(model_id: str) -> ModelProviderConfig | None:
    """Find a provider by its own id or by one of its sub-model ids."""
    for provider in MODELS:
        if provider.value == model_id or any(sm.value == model_id for sm in provider.children):
            return provider
    return None


def find_sub_model_config(model_id: str) -> tuple[ModelProviderConfig, SubModelConfig] | None:
    for provider in MODELS:
        for sub_model in provider.children:
            if sub_model.value == model_id:
                return provider, sub_model
    return None


def all_model_ids() -> list[str]:
    return [sm.value for provider in MODELS for sm in provider.children]


def supports_negative_prompt(model_id: str) -> bool:
    found = find_sub_model_config(model_id)
    if not found:
        return False
    provider, sub_model = found
    if sub_model.negative_prompt_support is not None:
        return sub_model.negative_prompt_support
    return bool(provider.negative_prompt_support)


def effective_prompt_max_length(model_id: str, fallback: int) -> int:
    """Sub-model limit, else provider limit, else ``fallback``."""
    found = find_sub_model_config(model_id)
    if found:
        provider, sub_model = found
        if sub_model.prompt_max_length:
            return sub_model.prompt_max_length
        if provider.prompt_max_length:
            return provider.prompt_max_length
        return fallback
    provider = find_model_config(model_id)
    if provider and provider.prompt_max_length:
        return provider.prompt_max_length
    return fallback


def effective_negative_prompt_max_length(model_id: str) -> int:
    found = find_sub_model_config(model_id)
    if not found:
        return 0
    provider, sub_model = found
    if sub_model.negative_prompt_max_length is not None:
        return sub_model.negative_prompt_max_length
    return provider.negative_prompt_max_length or 0
