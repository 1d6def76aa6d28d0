from typing import List, Tuple
import os


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        # CORS
        self.ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173")

        # Storage
        self.NOTEBOOK_STORAGE_DIR = os.getenv("NOTEBOOK_STORAGE_DIR", "backend/data/notebooks")

        # Evaluation
        # 0 keeps the output channel unbounded; when set, an emission past the
        # bound raises MaxPendingOutputsExceededError in the running cell
        self.MAX_PENDING_OUTPUTS = int(os.getenv("ESBOOK_MAX_PENDING_OUTPUTS", "0"))
        self.AUTOEVAL = os.getenv("ESBOOK_AUTOEVAL", "true").lower() == "true"
        self.PLOTLY_DEFAULT_SIZE = os.getenv("ESBOOK_PLOTLY_DEFAULT_SIZE", "700,450")

        # Application
        self.APP_TITLE = "esbook"
        self.DEBUG = os.getenv("DEBUG", "false").lower() == "true"
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def allowed_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    @property
    def plotly_default_size(self) -> Tuple[int, int]:
        width, height = self.PLOTLY_DEFAULT_SIZE.split(",")
        return int(width), int(height)


settings = Settings()
