from __future__ import annotations
import os
from pydantic import BaseModel

class Settings(BaseModel):
    db_url: str = os.getenv("DB_URL", "sqlite:///./data/fpwatch.db")
    db_echo: bool = os.getenv("DB_ECHO", "false").lower() == "true"
    dashboard_limit: int = int(os.getenv("DASHBOARD_LIMIT", "50"))
    allowed_origins: str = os.getenv("ALLOWED_ORIGINS", "http://localhost:5173")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
settings = Settings()
