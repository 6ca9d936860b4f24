import os
from pathlib import Path


class Settings:
    """Application settings with environment variable overrides."""

    APP_NAME: str = "Judicial Statistics Sync"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Paths
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = Path(os.getenv("DATA_DIR", str(BASE_DIR / "data")))
    DB_PATH: Path = DATA_DIR / "judstats.db"

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        f"sqlite+aiosqlite:///{DB_PATH}",
    )

    # Google Sheets credentials: either an API key (public sheets) or a
    # service account shared on the workbooks.
    GOOGLE_SHEETS_API_KEY: str = os.getenv("GOOGLE_SHEETS_API_KEY", "")
    GOOGLE_SHEETS_CLIENT_EMAIL: str = os.getenv("GOOGLE_SHEETS_CLIENT_EMAIL", "")
    # .env files usually carry the PEM key with literal "\n" sequences
    GOOGLE_SHEETS_PRIVATE_KEY: str = os.getenv(
        "GOOGLE_SHEETS_PRIVATE_KEY", ""
    ).replace("\\n", "\n")
    GOOGLE_SHEETS_CREDENTIALS_FILE: str = os.getenv(
        "GOOGLE_SHEETS_CREDENTIALS_FILE", ""
    )
    GOOGLE_SHEETS_SPREADSHEET_ID: str = os.getenv("GOOGLE_SHEETS_SPREADSHEET_ID", "")

    # Google allows ~60 reads/minute/user; stay under it
    SHEETS_MAX_REQUESTS_PER_MINUTE: int = int(
        os.getenv("SHEETS_MAX_REQUESTS_PER_MINUTE", "50")
    )
    SHEETS_BASE_DELAY_SECONDS: float = float(
        os.getenv("SHEETS_BASE_DELAY_SECONDS", "1.0")
    )
    SHEETS_MAX_DELAY_SECONDS: float = float(
        os.getenv("SHEETS_MAX_DELAY_SECONDS", "60.0")
    )
    SHEETS_MAX_ATTEMPTS: int = int(os.getenv("SHEETS_MAX_ATTEMPTS", "6"))

    # CORS
    ALLOWED_ORIGINS: list[str] = [
        o.strip()
        for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:5173").split(",")
        if o.strip()
    ]

    @property
    def SHEETS_ENABLED(self) -> bool:
        return bool(
            self.GOOGLE_SHEETS_API_KEY
            or self.GOOGLE_SHEETS_CREDENTIALS_FILE
            or (self.GOOGLE_SHEETS_CLIENT_EMAIL and self.GOOGLE_SHEETS_PRIVATE_KEY)
        )


settings = Settings()
