"""Messages exchanged with the compiler execution context"""

from typing import Literal, Optional

from pydantic import BaseModel


Direction = Literal["mdToHtml", "htmlToMd"]
DIRECTIONS: tuple[str, ...] = ("mdToHtml", "htmlToMd")


class MetricsSnapshot(BaseModel):
    """Latency summary in milliseconds."""
    p50: float = 0.0
    p95: float = 0.0
    count: int = 0
    average: float = 0.0


class CompileRequest(BaseModel):
    type: Literal["mdToHtml", "htmlToMd", "getMetrics"]
    id: str
    data: str = ""


class CompileResponse(BaseModel):
    type: Literal["result", "error", "metrics"]
    id: str
    result: Optional[str] = None
    message: Optional[str] = None
    metrics: Optional[MetricsSnapshot] = None
