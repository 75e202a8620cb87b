from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., DEBUG, DATA_DIR,
    UPSTREAM_TIMEOUT_SECONDS, STORAGE_TIMEOUT_SECONDS, OUTPUT_FILE).
    """

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore"
    )

    # Basic app metadata
    app_name: str = "Exchange Rate API"
    debug: bool = False
    version: str = "0.1.0"

    # Listener (server process)
    host: str = "0.0.0.0"
    port: int = 8080

    # Data & persistence
    data_dir: Path = Path("data")
    db_filename: str = "exchange_rate.db"
    db_path: Optional[Path] = None  # derived if not provided

    # Upstream feed
    upstream_url: str = "https://economia.awesomeapi.com.br/json/last/USD-BRL"

    # Stage budgets in seconds. Each must stay below its caller's budget:
    # client (0.3) > upstream (0.2) + storage (0.01).
    request_timeout_seconds: Optional[float] = Field(0.3, gt=0)
    upstream_timeout_seconds: float = Field(0.2, gt=0)
    storage_timeout_seconds: float = Field(0.01, gt=0)

    # Client process
    service_url: str = "http://localhost:8080"
    client_timeout_seconds: float = Field(0.3, gt=0)
    output_file: Path = Path("cotacao.txt")

    def init_post_load(self) -> None:
        """Finalize derived fields and ensure directories exist."""
        if self.db_path is None:
            self.db_path = self.data_dir / self.db_filename
        self.db_path = Path(self.db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
