from __future__ import annotations

from typing import Optional
from urllib.parse import quote_plus
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from .config import Settings, get_settings


logger = logging.getLogger(__name__)

# Singleton engine
_engine: Optional[Engine] = None


def build_sqlalchemy_url(settings: Settings) -> str:
    if settings.database_url:
        return settings.database_url

    # quote_plus para contraseñas con caracteres especiales
    return (
        f"postgresql+psycopg2://{quote_plus(settings.db_user)}:"
        f"{quote_plus(settings.db_password)}@{settings.db_host}:"
        f"{settings.db_port}/{settings.db_name}"
    )


def get_engine() -> Engine:
    """Obtiene el engine de PostgreSQL (singleton, creado en el primer uso)."""
    global _engine

    if _engine is not None:
        return _engine

    settings = get_settings()

    # Log básico de parámetros de conexión (sin contraseña)
    logger.info(
        "[DB] Crear engine PostgreSQL host=%s port=%s db=%s user=%s",
        settings.db_host,
        settings.db_port,
        settings.db_name,
        settings.db_user,
    )

    _engine = create_engine(
        build_sqlalchemy_url(settings),
        pool_pre_ping=True,
        pool_recycle=300,
        future=True,
    )
    return _engine


def check_connection(engine: Engine) -> bool:
    """Test de conexión: SELECT 1."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.exception("[DB] Test de conexión FALLÓ")
        return False

