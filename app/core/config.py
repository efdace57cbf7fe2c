from typing import List, Literal
from pathlib import Path
import os

from dotenv import load_dotenv
from pydantic_settings import BaseSettings


load_dotenv()

BASE_DIR = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    app_name: str = "WasteTrack API"
    debug: bool = False

    # Database
    database_url: str = ""
    database_echo: bool = False

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    public_url: str = "http://localhost:8000"
    allowed_hosts: str = ""

    # Auth
    secret_key: str = ""
    access_token_expire_minutes: int = 15
    refresh_token_expire_minutes: int = 60 * 24 * 7

    # Files
    static_dir: Path = BASE_DIR / "static"
    log_file: Path = BASE_DIR / "logs" / "application.log"

    # Revenue: how the user and transporter pools are divided
    distribution_policy: Literal["equal", "proportional"] = "equal"

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.allowed_hosts.split(",") if origin.strip()]

    @property
    def qr_code_dir(self) -> Path:
        return self.static_dir / "qrcodes"


settings = Settings()

if not settings.secret_key:
    raise RuntimeError("SECRET_KEY is not configured.")

if not settings.database_url:
    raise RuntimeError("DATABASE_URL is not configured.")

os.makedirs(settings.qr_code_dir, exist_ok=True)
