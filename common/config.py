from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def _default_env_file() -> str:
    # .env junto al repo; las variables reales del entorno siguen teniendo prioridad.
    repo_root = Path(__file__).resolve().parents[1]
    return str(repo_root / ".env")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("true", "1", "yes", "on")


@dataclass(frozen=True)
class Settings:
    db_host: str
    db_port: int
    db_user: str
    db_password: str
    db_name: str
    database_url: Optional[str]

    mqtt_host: str
    mqtt_port: int
    mqtt_username: Optional[str]
    mqtt_password: Optional[str]
    mqtt_transport: str
    mqtt_tls: bool
    topic_ns: str

    telegram_bot_token: Optional[str]
    telegram_chat_id: Optional[str]
    telegram_api_url: str
    notify_location: str
    notify_timeout_seconds: float

    temp_high_c: float
    gas_raw_high: float
    lux_low: float
    streak_needed: int
    cooldown_seconds: float
    signals_file: Optional[str]

    async_side_effects: bool
    queue_size: int
    num_workers: int

    api_port: int

    @property
    def cmd_topic(self) -> str:
        return f"{self.topic_ns}/device/cmd"


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("IOT_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    return Settings(
        db_host=os.getenv("PGHOST", "localhost"),
        db_port=int(os.getenv("PGPORT", "5432")),
        db_user=os.getenv("PGUSER", "postgres"),
        db_password=os.getenv("PGPASSWORD", ""),
        db_name=os.getenv("PGDATABASE", "iot"),
        database_url=os.getenv("DATABASE_URL") or None,
        mqtt_host=os.getenv("MQTT_BROKER_HOST", "localhost"),
        mqtt_port=int(os.getenv("MQTT_BROKER_PORT", "1883")),
        mqtt_username=os.getenv("MQTT_USERNAME") or None,
        mqtt_password=os.getenv("MQTT_PASSWORD") or None,
        mqtt_transport=os.getenv("MQTT_TRANSPORT", "tcp"),
        mqtt_tls=_env_bool("MQTT_TLS", "false"),
        topic_ns=os.getenv("TOPIC_NS", "lstiot/lab/room1").rstrip("/"),
        telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN") or None,
        telegram_chat_id=os.getenv("TELEGRAM_CHAT_ID") or None,
        telegram_api_url=os.getenv("TELEGRAM_API_URL", "https://api.telegram.org"),
        notify_location=os.getenv("NOTIFY_LOCATION", "Lab Room 1"),
        notify_timeout_seconds=float(os.getenv("NOTIFY_TIMEOUT_SECONDS", "5")),
        temp_high_c=float(os.getenv("TEMP_HIGH_C", "35.0")),
        gas_raw_high=float(os.getenv("GAS_RAW_HIGH", "1800")),
        lux_low=float(os.getenv("LUX_LOW", "500")),
        streak_needed=int(os.getenv("ALERT_STREAK_NEEDED", "5")),
        cooldown_seconds=float(os.getenv("ALERT_COOLDOWN_SECONDS", "10")),
        signals_file=os.getenv("ALERT_SIGNALS_FILE") or None,
        async_side_effects=_env_bool("ALERT_ASYNC_SIDE_EFFECTS", "true"),
        queue_size=int(os.getenv("ALERT_QUEUE_SIZE", "1000")),
        num_workers=int(os.getenv("ALERT_NUM_WORKERS", "2")),
        api_port=int(os.getenv("API_PORT", "3001")),
    )
