import logging
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
    openweather_api_key: Optional[str] = None
    openweather_base_url: str = "https://api.openweathermap.org/data/2.5"
    country_code: str = "IN"
    units: str = "metric"
    host: str = "0.0.0.0"
    port: int = 8001
    cors_origins: str = "*"
    storage_dir: Optional[str] = None
    log_dir: str = "logs"
    log_level: str = "INFO"


config = Config()


def configure_logging(settings: Config = config) -> None:
    """Log to logs/krishi_weather.log and the console"""
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(exist_ok=True)
    log_file = log_dir / "krishi_weather.log"

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(),
        ],
    )
