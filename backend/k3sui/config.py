from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_KUBECTL_SUBCOMMANDS: tuple[str, ...] = (
    "get",
    "describe",
    "logs",
    "exec",
    "port-forward",
    "cp",
    "apply",
    "create",
    "delete",
    "edit",
    "label",
    "annotate",
    "scale",
    "rollout",
    "top",
    "api-resources",
    "api-versions",
    "cluster-info",
    "config",
    "explain",
    "version",
)


class Settings(BaseSettings):
    """Application configuration sourced from environment variables."""

    model_config = SettingsConfigDict(env_file=(".env",), env_file_encoding="utf-8", extra="ignore", populate_by_name=True)

    app_env: Literal["development", "production", "test"] = "development"
    host: str = "0.0.0.0"
    port: int = Field(default=3001, alias="APP_PORT")
    log_level: str = "INFO"
    log_json: bool = False
    log_file: str | None = None
    kube_context: str | None = None
    kube_config_path: str | None = Field(default=None, alias="KUBE_CONFIG_PATH")
    service_account_token_path: str | None = None
    allowed_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"])
    # External binaries, resolved through PATH unless absolute
    kubectl_binary: str = Field(default="kubectl", description="Path to kubectl binary")
    k3d_binary: str = Field(default="k3d", description="Path to k3d binary")
    helm_binary: str = Field(default="helm", description="Path to Helm binary")
    command_timeout_seconds: float = Field(default=120.0, description="Upper bound for a single external command")
    # Terminal gatekeeper overrides
    kubectl_allowed_subcommands: list[str] = Field(default_factory=lambda: list(DEFAULT_KUBECTL_SUBCOMMANDS))
    kubectl_strip_spaces: bool = Field(
        default=False,
        description="Strip spaces together with shell metacharacters (collapses multi-token commands)",
    )
    artifact_hub_url: str = "https://artifacthub.io/api/v1/packages/search"
    artifact_hub_timeout_seconds: float = 10.0

    @computed_field
    @property
    def is_debug(self) -> bool:
        return self.app_env == "development"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]
