"""配置管理模块。

支持从环境变量、.env 以及 config.yaml 加载配置。
核心层只依赖两个字段：get_api_key() 与 base_url。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sage_core.prompts import (
    DEFAULT_SYSTEM_PROMPT,
    DEFAULT_SYSTEM_PROMPT_INFILL,
    DEFAULT_SYSTEM_PROMPT_NO_SELECTION,
)


# OpenRouter 默认配置（接口与 OpenAI chat/completions 兼容）
DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "openai/gpt-oss-20b"
# OpenRouter 约定：模型 ID 加 ":online" 后缀即启用联网搜索
DEFAULT_SEARCH_SUFFIX = ":online"
DEFAULT_REFERER = "https://github.com/sage-llm/sage-core"
DEFAULT_APP_TITLE = "sage-core"
DEFAULT_MODELS = (
    "openai/gpt-5-nano",
    "openai/gpt-5.2-codex",
    "moonshotai/kimi-k2.5",
    "google/gemini-3-flash-preview",
    "anthropic/claude-sonnet-4.5",
    "x-ai/grok-4.1-fast",
    "anthropic/claude-opus-4.6",
    "anthropic/claude-haiku-4.5",
)


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("SAGE_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class SageSettings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- 凭证 ----
    api_key: Optional[str] = Field(default=None, description="显式配置的 API 密钥，优先于环境变量")
    openrouter_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("openrouter_api_key", "OPENROUTER_API_KEY", "SAGE_OPENROUTER_API_KEY"),
        description="$OPENROUTER_API_KEY",
    )

    # ---- 请求 ----
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Chat Completions API 基础URL")
    model: str = Field(default=DEFAULT_MODEL, description="当前使用的模型 ID")
    models: List[str] = Field(
        default_factory=lambda: list(DEFAULT_MODELS),
        description="模型选择列表",
    )
    search_suffix: str = Field(
        default=DEFAULT_SEARCH_SUFFIX,
        description="联网搜索模式下追加到模型 ID 的后缀",
    )
    http_timeout: Optional[float] = Field(
        default=None,
        ge=1.0,
        description="HTTP 超时时间（秒），为空时使用 httpx 默认值",
    )
    referer: str = Field(default=DEFAULT_REFERER, description="HTTP-Referer 头")
    app_title: str = Field(default=DEFAULT_APP_TITLE, description="X-Title 头")

    # ---- 提示词 ----
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT, description="带代码选区时的系统提示词")
    system_prompt_no_selection: str = Field(
        default=DEFAULT_SYSTEM_PROMPT_NO_SELECTION,
        description="不带代码选区时的系统提示词",
    )
    system_prompt_infill: str = Field(
        default=DEFAULT_SYSTEM_PROMPT_INFILL,
        description="改写选区（infill）时的系统提示词",
    )

    # ---- 调试与日志 ----
    debug: bool = Field(default=False, description="是否把流式调试事件写入日志")
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    # 环境变量统一使用 SAGE_ 前缀（$OPENROUTER_API_KEY 除外）
    model_config = SettingsConfigDict(
        env_prefix="SAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("api_key", "openrouter_api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) < 10:
            raise ValueError("API key seems too short")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )

    def get_api_key(self) -> Optional[str]:
        """显式配置优先，其次是 $OPENROUTER_API_KEY。"""

        return self.api_key or self.openrouter_api_key or None

    def set_model(self, model: str) -> None:
        self.model = model


settings = SageSettings()
