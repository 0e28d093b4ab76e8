from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # GitHub OAuth
    github_client_id: str = ""
    github_client_secret: str = ""

    # App
    app_base_url: str = "http://localhost:3000"
    frontend_url: str = "http://localhost:5173"

    # Database
    database_path: str = "./data/authgate.db"

    # Logging
    log_level: str = "info"

    # Sessions: "sqlite" (default) or "memory"
    session_backend: str = "sqlite"
    session_ttl_hours: int = 24
    session_cookie_name: str = "authgate_session"
    session_cleanup_interval_seconds: int = 3600

    # Password hashing work factor
    bcrypt_rounds: int = 10

    # CORS
    cors_origins: str = "http://localhost:5173"

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def secure_cookies(self) -> bool:
        return not self.app_base_url.startswith("http://localhost")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
