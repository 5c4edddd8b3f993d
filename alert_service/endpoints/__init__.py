from .health import router as health_router
from .history import router as history_router

__all__ = ["health_router", "history_router"]
