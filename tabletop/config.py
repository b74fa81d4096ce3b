"""
Configuration management for the Tabletop Codex service.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # Database configuration
    database_url: str = "sqlite:///./data/tabletop.db"
    echo: bool = False
    
    # Service configuration
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = True
    log_level: str = "INFO"
    
    # Listing configuration
    default_page_size: int = 10
    max_page_size: int = 100
    
    # Image constraints
    max_images_per_user: int = 100
    max_image_size: int = 5 * 1024 * 1024  # 5MB
    max_image_dimension: int = 2048
    
    model_config = SettingsConfigDict(
        env_prefix="TABLETOP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"  # Ignore extra environment variables
    )


def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
