"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, default)


def _env_list(key: str, default: str = "", *, separator: str = ",") -> tuple[str, ...]:
    raw = _env(key, default)
    return tuple(item.strip() for item in raw.split(separator) if item.strip())


def _env_roles(key: str, default: str) -> frozenset[str]:
    return frozenset(role.lower() for role in _env_list(key, default))


def _env_bool(key: str, default: bool = False) -> bool:
    raw = _env(key)
    if not raw:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(key: str, default: float) -> float:
    raw = _env(key)
    return float(raw) if raw else default


@dataclass(frozen=True)
class AppConfig:
    env: str = field(default_factory=lambda: _env("APP_ENV", "development"))
    log_level: str = field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))
    log_file: str = field(default_factory=lambda: _env("LOG_FILE"))
    secret_key: str = field(default_factory=lambda: _env("APP_SECRET_KEY"))
    host: str = field(default_factory=lambda: _env("APP_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(_env("APP_PORT", "8000")))
    privileged_roles: frozenset[str] = field(
        default_factory=lambda: _env_roles("PRIVILEGED_ROLES", "admin,partner,manager")
    )
    senior_roles: frozenset[str] = field(
        default_factory=lambda: _env_roles("SENIOR_ROLES", "admin,partner")
    )
    trust_identity_headers: bool = field(
        default_factory=lambda: _env_bool("AUTH_TRUST_HEADERS")
    )

    @property
    def is_development(self) -> bool:
        return self.env == "development"


@dataclass(frozen=True)
class CosmosConfig:
    endpoint: str = field(default_factory=lambda: _env("COSMOS_ENDPOINT"))
    key: str = field(default_factory=lambda: _env("COSMOS_KEY"))
    database: str = field(default_factory=lambda: _env("COSMOS_DATABASE", "firm-docs"))

    @property
    def enabled(self) -> bool:
        return bool(self.endpoint)


@dataclass(frozen=True)
class DeepSeekConfig:
    api_key: str = field(default_factory=lambda: _env("DEEPSEEK_API_KEY"))
    url: str = field(
        default_factory=lambda: _env(
            "DEEPSEEK_API_URL", "https://api.deepseek.com/v1/chat/completions"
        )
    )
    model: str = field(default_factory=lambda: _env("DEEPSEEK_MODEL", "deepseek-chat"))
    secondary_model: str = field(
        default_factory=lambda: _env("DEEPSEEK_MODEL_V3", "deepseek-v3")
    )


@dataclass(frozen=True)
class OpenAIConfig:
    api_key: str = field(default_factory=lambda: _env("OPENAI_API_KEY"))
    url: str = field(
        default_factory=lambda: _env(
            "OPENAI_API_URL", "https://api.openai.com/v1/chat/completions"
        )
    )
    model: str = field(default_factory=lambda: _env("OPENAI_MODEL", "gpt-4o"))


@dataclass(frozen=True)
class ErnieConfig:
    api_key: str = field(default_factory=lambda: _env("ERNIE_API_KEY"))
    secret_key: str = field(default_factory=lambda: _env("ERNIE_SECRET_KEY"))
    token_url: str = field(
        default_factory=lambda: _env(
            "ERNIE_TOKEN_URL", "https://aip.baidubce.com/oauth/2.0/token"
        )
    )
    url: str = field(
        default_factory=lambda: _env(
            "ERNIE_API_URL",
            "https://aip.baidubce.com/rpc/2.0/ai_custom/v1/wenxinworkshop/chat/",
        )
    )
    model: str = field(default_factory=lambda: _env("ERNIE_MODEL", "ernie-bot-4"))


@dataclass(frozen=True)
class GenerationConfig:
    timeout_seconds: float = field(
        default_factory=lambda: _env_float("GENERATION_TIMEOUT_SECONDS", 120.0)
    )
    temperature: float = field(
        default_factory=lambda: _env_float("GENERATION_TEMPERATURE", 0.7)
    )


@dataclass(frozen=True)
class ComplianceConfig:
    """Regulations checked when a compliance request names none."""

    default_regulations: tuple[str, ...] = field(
        default_factory=lambda: _env_list(
            "COMPLIANCE_REGULATIONS",
            "Accounting Standards for Business Enterprises;"
            "Auditing Standards for Certified Public Accountants;"
            "Enterprise Internal Control Basic Norms",
            separator=";",
        )
    )


@dataclass(frozen=True)
class Settings:
    app: AppConfig = field(default_factory=AppConfig)
    cosmos: CosmosConfig = field(default_factory=CosmosConfig)
    deepseek: DeepSeekConfig = field(default_factory=DeepSeekConfig)
    openai: OpenAIConfig = field(default_factory=OpenAIConfig)
    ernie: ErnieConfig = field(default_factory=ErnieConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    compliance: ComplianceConfig = field(default_factory=ComplianceConfig)


def load_settings() -> Settings:
    """Load ``.env`` (if present) and build settings from the environment."""
    load_dotenv()
    return Settings()
