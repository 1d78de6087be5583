from functools import lru_cache
import json
from typing import Annotated

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

_KNOWN_AI_PROVIDERS = ("qwen", "ernie", "zhipu", "mock")

# Auto-selection order when AI_PROVIDER is left empty.
_AI_PROVIDER_PREFERENCE = ("qwen", "ernie", "zhipu")


def _parse_list_value(value) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        raw = value.strip()
        if raw == "":
            return []
        try:
            parsed = json.loads(raw)
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
        except ValueError:
            pass
        return [item.strip() for item in raw.split(",") if item.strip()]
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return []


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        validate_by_name=True,
        populate_by_name=True,
    )

    # --- Chat / completion providers ---
    ai_provider: str = ""
    ai_allowed_providers: Annotated[list[str], NoDecode] = Field(default_factory=lambda: list(_KNOWN_AI_PROVIDERS))
    ai_model: str = ""
    ai_temperature: float = 0.7
    ai_structured_temperature: float = 0.3
    ai_max_tokens: int = 2000
    ai_timeout_seconds: float = 60.0

    qwen_api_key: str = Field(default="", validation_alias=AliasChoices("QWEN_API_KEY", "VITE_QWEN_API_KEY"))
    ernie_api_key: str = Field(default="", validation_alias=AliasChoices("ERNIE_API_KEY", "VITE_ERNIE_API_KEY"))
    zhipu_api_key: str = Field(default="", validation_alias=AliasChoices("ZHIPU_API_KEY", "VITE_ZHIPU_API_KEY"))

    qwen_base_url: str = "https://dashscope.aliyuncs.com/api/v1/services/aigc/text-generation/generation"
    ernie_base_url: str = "https://aip.baidubce.com/rpc/2.0/ai_custom/v1/wenxinworkshop/chat/ernie-4.0-8k"
    zhipu_base_url: str = "https://open.bigmodel.cn/api/paas/v4/chat/completions"

    # --- Mapping provider ---
    map_provider: str = "baidu"
    baidu_map_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("BAIDU_MAP_API_KEY", "VITE_BAIDU_MAP_API_KEY"),
    )
    baidu_map_base_url: str = "https://api.map.baidu.com"

    geocode_max_concurrent: int = 2
    geocode_request_delay_ms: int = 500
    geocode_timeout_seconds: float = 10.0

    # --- HTTP surface ---
    docs_enabled: bool = True
    openapi_enabled: bool = True
    expose_error_details: bool = False

    cors_allow_origins: Annotated[list[str], NoDecode] = Field(default_factory=list)
    cors_allow_methods: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["GET", "POST", "OPTIONS"])
    cors_allow_headers: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["Authorization", "Content-Type", "Accept"])

    @field_validator(
        "ai_allowed_providers",
        "cors_allow_origins",
        "cors_allow_methods",
        "cors_allow_headers",
        mode="before",
    )
    @classmethod
    def _split_csv(cls, value):
        if value is None:
            return []
        return _parse_list_value(value)

    @field_validator("ai_provider", "map_provider", mode="before")
    @classmethod
    def _normalize_provider_name(cls, value):
        if value is None:
            return ""
        return str(value).strip().lower()

    @property
    def ai_api_keys(self) -> dict[str, str]:
        return {
            "qwen": self.qwen_api_key,
            "ernie": self.ernie_api_key,
            "zhipu": self.zhipu_api_key,
        }

    @property
    def effective_ai_provider(self) -> str:
        """Explicit AI_PROVIDER, else the first provider that has a key, else mock."""
        if self.ai_provider:
            return self.ai_provider
        for name in _AI_PROVIDER_PREFERENCE:
            if self.ai_api_keys.get(name):
                return name
        return "mock"

    @property
    def geocode_request_delay_seconds(self) -> float:
        return max(0, self.geocode_request_delay_ms) / 1000.0


@lru_cache
def get_settings() -> Settings:
    return Settings()
