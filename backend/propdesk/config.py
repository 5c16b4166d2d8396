# backend/propdesk/config.py
from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---- App ----
    app_env: str = "local"  # local|dev|prod
    database_url: str = "sqlite:///./propdesk.db"

    # ---- Logging ----
    log_level: str = "INFO"
    sql_log_level: str = "WARNING"

    # ---- CORS (used by main.py) ----
    cors_allow_origins: list[str] | str = ["*"]

    # ---- Auth ----
    auth_mode: str = "dev"  # dev|jwt
    jwt_secret: str = "dev-change-me"
    jwt_algorithm: str = "HS256"
    jwt_exp_minutes: int = 60 * 8

    # Dev header names (auth_mode=dev only)
    dev_header_user_id: str = "X-User-Id"
    dev_header_user_role: str = "X-User-Role"
    dev_header_org_id: str = "X-Org-Id"
    dev_header_entity_ids: str = "X-Entity-Ids"
    dev_header_property_ids: str = "X-Property-Ids"

    # ---- Reports ----
    report_fanout_workers: int = 4  # 1 = run aggregations sequentially on the request session
    expiring_lease_days: int = 30
    projection_monthly_growth: float = 0.02

    # ---- Spaces listing ----
    spaces_default_limit: int = 10
    spaces_max_limit: int = 100

    def model_post_init(self, __context) -> None:
        env = (self.app_env or "local").strip().lower()
        is_prod = env in ("prod", "production")

        if self.report_fanout_workers < 1:
            object.__setattr__(self, "report_fanout_workers", 1)

        if is_prod:
            if (self.auth_mode or "").strip().lower() == "dev":
                raise ValueError("SECURITY: auth_mode=dev is not allowed in prod")
            if self.jwt_secret == "dev-change-me":
                raise ValueError("SECURITY: jwt_secret must be set in prod")

            origins = self.cors_allow_origins
            if origins == "*" or origins == ["*"] or (isinstance(origins, str) and "*" in origins):
                raise ValueError("SECURITY: cors_allow_origins wildcard is not allowed in prod")


settings = Settings()
