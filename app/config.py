from dataclasses import dataclass, field
from pathlib import Path

from dotenv import dotenv_values
from pydantic_settings import BaseSettings

_ENV_FILE = Path(".env")
_env_vars = dotenv_values(str(_ENV_FILE)) if _ENV_FILE.exists() else {}


class Settings(BaseSettings):
    app_name: str = "Product Autofill"
    log_level: str = "INFO"
    port: int = 8080
    cors_origins: str = "*"

    # external sources
    serpapi_api_key: str = ""
    upcitemdb_api_key: str = ""
    upcitemdb_base_url: str = "https://api.upcitemdb.com/prod/trial"

    # refinement backend: "openai" or "anthropic"
    refine_backend: str = "openai"
    openai_api_key: str = ""
    openai_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-haiku-4-5"

    disable_external: bool = False
    concurrent_fetch: bool = False
    lookup_timeout: float = 6.0
    search_timeout: float = 7.0
    scrape_timeout: float = 8.0
    refine_timeout: float = 20.0

    model_config = {
        "env_prefix": "AUTOFILL_",
        "env_file": ".env",
        "extra": "ignore",
    }

    def model_post_init(self, __context):
        if not self.serpapi_api_key:
            self.serpapi_api_key = _env_vars.get("SERPAPI_KEY") or ""
        if not self.upcitemdb_api_key:
            self.upcitemdb_api_key = _env_vars.get("UPCITEMDB_KEY") or ""
        if not self.openai_api_key:
            self.openai_api_key = _env_vars.get("OPENAI_API_KEY") or ""
        if not self.anthropic_api_key:
            self.anthropic_api_key = _env_vars.get("ANTHROPIC_API_KEY") or ""
        if _env_vars.get("DISABLE_EXTERNAL_FETCH") == "1":
            self.disable_external = True

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@dataclass(frozen=True)
class Timeouts:
    lookup: float = 6.0
    search: float = 7.0
    scrape: float = 8.0
    refine: float = 20.0


@dataclass(frozen=True)
class PipelineConfig:
    """Explicit knobs for one pipeline instance, resolved once from Settings."""

    disable_external: bool = False
    timeouts: Timeouts = field(default_factory=Timeouts)
    concurrent_fetch: bool = False

    @classmethod
    def from_settings(cls, s: "Settings") -> "PipelineConfig":
        return cls(
            disable_external=s.disable_external,
            timeouts=Timeouts(
                lookup=s.lookup_timeout,
                search=s.search_timeout,
                scrape=s.scrape_timeout,
                refine=s.refine_timeout,
            ),
            concurrent_fetch=s.concurrent_fetch,
        )


settings = Settings()
