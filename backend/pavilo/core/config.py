"""Application configuration loaded from environment variables."""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings:
    # Storage backend for collections: "sql" (key/value table) or "file" (JSON per key)
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "sql").lower()

    # SQLite DB URL
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL", f"sqlite:///{BASE_DIR / 'pavilo.db'}"
    )

    # Directory for the file backend
    DATA_DIR: str = os.getenv("DATA_DIR", str(BASE_DIR / "data"))

    # Per-key size cap, same order as browser local storage
    STORAGE_QUOTA_BYTES: int = int(os.getenv("STORAGE_QUOTA_BYTES", str(5 * 1024 * 1024)))

    # Billing
    DEFAULT_GST_RATE: float = float(os.getenv("DEFAULT_GST_RATE", "18"))
    BUSINESS_NAME: str = os.getenv("BUSINESS_NAME", "Pavilo Billing Buddy")

    # API server
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE", "logs/pavilo.log")

    # CORS
    CORS_ORIGINS: list[str] = [
        o.strip()
        for o in os.getenv(
            "CORS_ORIGINS", "http://localhost:5173,http://localhost:3000"
        ).split(",")
    ]

    def __init__(self):
        if self.STORAGE_BACKEND == "file":
            Path(self.DATA_DIR).mkdir(parents=True, exist_ok=True)


settings = Settings()
