# codecollab/core/config.py
import os
from typing import List

from dotenv import load_dotenv


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    """
    Setup environment variables.
        - DEFAULT_LANGUAGE_ID the runner language used to seed new rooms
        - TYPING_TIMEOUT_SECONDS how long a typing indicator stays active
        - MAX_* payload limits enforced by the event dispatcher
        - OUTBOX_MAX_SIZE pending events per connection before it is dropped
        - RUNNER_* the external code runner proxied by /api/run-code
    """

    def __init__(self) -> None:
        # Load environment variables from the .env file
        load_dotenv()

        self.APP_NAME: str = os.getenv("APP_NAME", "Code Collab Rooms")
        self.HOST: str = os.getenv("HOST", "0.0.0.0")
        self.PORT: int = int(os.getenv("PORT", "5000"))
        self.CORS_ALLOWED_ORIGINS: List[str] = _split_csv(os.getenv("CORS_ALLOWED_ORIGINS", "*"))

        self.DEFAULT_LANGUAGE_ID: int = int(os.getenv("DEFAULT_LANGUAGE_ID", "71"))
        self.TYPING_TIMEOUT_SECONDS: float = float(os.getenv("TYPING_TIMEOUT_SECONDS", "1.0"))

        self.MAX_ROOM_ID_LENGTH: int = int(os.getenv("MAX_ROOM_ID_LENGTH", "64"))
        self.MAX_CODE_LENGTH: int = int(os.getenv("MAX_CODE_LENGTH", "200000"))
        self.MAX_CHAT_LENGTH: int = int(os.getenv("MAX_CHAT_LENGTH", "2000"))
        self.OUTBOX_MAX_SIZE: int = int(os.getenv("OUTBOX_MAX_SIZE", "1000"))

        self.RUNNER_URL: str = os.getenv("RUNNER_URL", "").rstrip("/")
        self.RUNNER_API_KEY: str = os.getenv("RUNNER_API_KEY", "")
        self.RUNNER_TIMEOUT_SECONDS: float = float(os.getenv("RUNNER_TIMEOUT_SECONDS", "15"))


settings = Settings()
