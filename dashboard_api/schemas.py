from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class PollIntervalsModel(BaseModel):
    stats: float = 30.0
    analytics: float = 300.0
    activity: float = 30.0


class SettingsModel(BaseModel):
    api_base_url: Optional[str] = None
    token: Optional[str] = None
    request_timeout: float = 10.0
    window_days: int = 7
    page_limit: int = 10
    intervals: PollIntervalsModel = Field(default_factory=PollIntervalsModel)
    dark_mode: Optional[bool] = None
    failure_policy: Literal["retain", "reset"] = "retain"


class DistributionRequest(BaseModel):
    records: List[Dict[str, Any]] = Field(default_factory=list)
    field: str


class TopItemsRequest(DistributionRequest):
    limit: int = Field(default=5, ge=0)


class TrendRequest(BaseModel):
    records: List[Dict[str, Any]] = Field(default_factory=list)
    field: str
    window_days: int = 7
    today: Optional[str] = None


class ChartRequest(BaseModel):
    kind: Literal["pie", "bar", "line"] = "pie"
    data: List[Dict[str, Any]] = Field(default_factory=list)
    value_key: str = "value"
    label_key: str = "name"
    title: str = ""
    unit: Optional[str] = None
    dark: bool = False


class ColumnModel(BaseModel):
    key: str
    header: str
    accessor: Optional[str] = None
    align: Literal["left", "right"] = "left"


class TableRequest(BaseModel):
    data: List[Dict[str, Any]] = Field(default_factory=list)
    columns: List[ColumnModel] = Field(default_factory=list)
    page: int = 1
    limit: int = Field(default=10, gt=0)
    total_count: Optional[int] = Field(default=None, ge=0)
    loading: bool = False
    error: Optional[str] = None
