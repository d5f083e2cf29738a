"""Configuration management using Pydantic settings."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "MAPSTYLE-STUDIO"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Initial map - base style name and camera
    initial_base_style: str = "standard"
    map_center_lng: float = -74.5
    map_center_lat: float = 40.0
    map_zoom: float = 9.0
    map_pitch: float = 0.0
    map_bearing: float = 0.0

    # Directory of <name>.json base style documents; generated skeletons
    # are used for names without a file
    styles_dir: Optional[str] = None

    # Renderer capability: ambient + directional lights (GL JS v3 setLights)
    multi_light: bool = True

    # URL data ingestion
    fetch_timeout: float = 15.0
    user_agent: str = "MapStyle-Studio/0.1.0"


settings = Settings()
