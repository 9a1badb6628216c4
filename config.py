"""Configuration via pydantic-settings. Reads from .env or environment."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # ===== PINNED API KEYS =====
    # A non-empty value pins the key: it wins over the stored one and cannot be overwritten
    openai_api_key: str = ""
    zhipu_api_key: str = ""
    dashscope_api_key: str = ""
    qianfan_api_key: str = ""
    volcengine_api_key: str = ""  # "AccessKeyId:SecretAccessKey"
    minimax_api_key: str = ""

    # ===== ENDPOINTS =====
    openai_base_url: str = "https://api.openai.com"
    cogview_url: str = "https://open.bigmodel.cn/api/paas/v4/images/generations"
    wanx_base_url: str = "https://dashscope.aliyuncs.com/api/v1"
    qianfan_url: str = "https://qianfan.baidubce.com/v2/images/generations"
    minimax_url: str = "https://api.minimax.io/v1/image_generation"
    volcengine_host: str = "visual.volcengineapi.com"

    # ===== HTTP / POLLING / RETRY =====
    http_timeout: float = 60.0
    wanx_poll_interval: float = 1.0  # seconds between task status checks
    wanx_max_polls: int = 30
    volcengine_max_retries: int = 3
    volcengine_backoff_seconds: float = 1.0  # multiplied by the attempt number

    # ===== LIMITS =====
    max_logs: int = 100
    max_history: int = 50
    default_prompt_max_length: int = 300

    # ===== SYSTEM =====
    database_url: str = "sqlite:///./imagegen.db"
    image_output_dir: str = ""  # Default: ./generated_images
    log_level: str = "INFO"


# apiKeyName -> Settings field holding its pinned value
API_KEY_ENV_FIELDS = {
    "openai_key": "openai_api_key",
    "zhipuai_key": "zhipu_api_key",
    "aliyun_wanx_key": "dashscope_api_key",
    "baidu_qianfan_key": "qianfan_api_key",
    "volcengine_key": "volcengine_api_key",
    "minimax_key": "minimax_api_key",
}


settings = Settings()
