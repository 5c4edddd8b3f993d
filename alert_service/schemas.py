from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel


class HistoryPoint(BaseModel):
    time_bucket: Optional[str] = None
    avg_temp: Optional[float] = None
    avg_hum: Optional[float] = None
    avg_gas: Optional[float] = None
    avg_lux: Optional[float] = None


class ServiceStatus(BaseModel):
    receiver: Dict[str, Any]
    evaluator: Dict[str, Any]
    dispatcher: Dict[str, Any]
