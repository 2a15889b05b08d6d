from typing import Dict, List

from pydantic_settings import BaseSettings


PLACEHOLDER_IMAGE = (
    "https://images.pexels.com/photos/1279813/pexels-photo-1279813.jpeg"
    "?auto=compress&cs=tinysrgb&w=400"
)


class Settings(BaseSettings):
    """Runtime configuration sourced from environment variables."""

    app_name: str = "api-store"
    api_prefix: str = "/api"

    # "memory" keeps everything in-process, "mongo" talks to database_url
    database_backend: str = "memory"
    database_url: str = "mongodb://localhost:27017"
    database_name: str = "api_store"

    default_page_size: int = 12
    placeholder_image: str = PLACEHOLDER_IMAGE

    upload_dir: str = "uploads"
    public_base_url: str = "http://localhost:8085"
    allowed_image_formats: List[str] = ["jpg", "jpeg", "png"]

    # token -> "user_id:role"
    api_tokens: Dict[str, str] = {}

    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def load_settings() -> Settings:
    return Settings()


settings = load_settings()
