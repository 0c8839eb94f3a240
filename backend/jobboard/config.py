from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )
    
    # Database
    database_url: str = "sqlite+aiosqlite:///./jobboard.db"
    create_tables_on_startup: bool = False  # Development only; use `alembic upgrade head` otherwise
    
    # Auth
    secret_key: str
    session_ttl_days: int = 7
    cookie_secure: bool = False  # True in production (HTTPS only)
    
    # Admin credentials (admin is not a regular user account)
    admin_email: str = "admin@example.com"
    admin_password: str = "admin1234"
    admin_secret_key: str | None = None
    
    # Uploads
    upload_dir: str = "uploads"
    public_base_url: str = "http://localhost:8000"
    
    # App
    allowed_origins: str = ""
    debug: bool = False
    
    def get_admin_secret(self) -> str:
        """Admin tokens are signed with their own secret when one is configured."""
        return self.admin_secret_key or self.secret_key


settings = Settings()
