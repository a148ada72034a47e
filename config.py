from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Investor Portal API"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 5050

    database_url: str = "sqlite+aiosqlite:///./investor_portal.db"
    cors_origins: str = "http://localhost:5173,http://127.0.0.1:5173"

    # Auth
    jwt_secret: str = "change-me"
    jwt_ttl_minutes: int = 60 * 24 * 7
    otp_ttl_seconds: int = 300
    otp_max_attempts: int = 5
    admin_api_key: str = "change-me-admin"

    # Object storage (S3-compatible)
    s3_endpoint: str = "http://localhost:9000"
    s3_access_key: str = "minioadmin"
    s3_secret_key: str = "minioadmin"
    s3_bucket: str = "investor-documents"
    s3_region: str = "us-east-1"
    s3_public_base_url: str = ""
    max_upload_bytes: int = 10 * 1024 * 1024

    # Form lifecycle
    autosave_interval_seconds: float = 30.0
    strict_conditional_fields: bool = True

    # Issuer shown on certificates and consent documents
    company_name: str = "Matajar Group"
    company_subtitle: str = "Legal Review & Settlement Processing Division"
    company_address: str = "Dubai, United Arab Emirates"
    company_email: str = "info@matajargroup.com"
    company_website: str = "www.matajargroup.com"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def public_base_url(self) -> str:
        """Base URL under which stored objects are publicly reachable."""
        if self.s3_public_base_url:
            return self.s3_public_base_url.rstrip("/")
        return f"{self.s3_endpoint.rstrip('/')}/{self.s3_bucket}"


settings = Settings()
