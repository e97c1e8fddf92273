"""
Front-end settings, loaded once from the environment (.env supported).
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()


class Settings:
    BACKEND_URL: str = os.getenv("BACKEND_URL", "http://localhost:8000")
    API_TIMEOUT: int = int(os.getenv("API_TIMEOUT", "15"))
    CURRENCY: str = os.getenv("CURRENCY", "RWF")
    SESSION_FILE: str = os.getenv("ISOKO_SESSION_FILE", "")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    APP_TITLE: str = os.getenv("APP_TITLE", "Isoko Lending Desk")


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the Streamlit process."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
