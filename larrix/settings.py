# larrix/settings.py
import os
from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()  # local .env overrides nothing already exported

class Settings(BaseModel):
    HOST: str = os.getenv("LARRIX_HOST", "localhost")
    PORT: int = int(os.getenv("LARRIX_PORT", "3000"))
    EVENTS_PATH: str = "/events"
    SOURCE_DIR: str = os.getenv("LARRIX_SOURCE_DIR", "src")
    OUTPUT_DIR: str = os.getenv("LARRIX_OUTPUT_DIR", "dist")
    CONFIG_FILE: str = os.getenv("LARRIX_CONFIG", "larrix.config.json")
    RECONNECT_DELAY_MS: int = int(os.getenv("LARRIX_RECONNECT_DELAY_MS", "1000"))
    LOG_LEVEL: str = os.getenv("LARRIX_LOG_LEVEL", "WARNING")

    @property
    def events_url(self) -> str:
        return f"http://{self.HOST}:{self.PORT}{self.EVENTS_PATH}"

settings = Settings()
