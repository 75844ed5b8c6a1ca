import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Settings:
    # Storage settings
    catalog_file: str = os.getenv("LIBRARY_CATALOG_FILE", "library.csv")
    history_file: str = os.getenv("LIBRARY_HISTORY_FILE", "history.csv")

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "WARNING").upper()

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Library Management System")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")


settings = Settings()
