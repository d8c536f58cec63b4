from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class ViewSelectionModel(BaseModel):
    # None (or -1) means every ranked row.
    top_n: Optional[int] = 10
    value_column: str = "Total"
    label_column: str = "Supply Name"
    chart_type: str = "bar"


class MetaColumnsResponse(BaseModel):
    columns: List[str] = Field(default_factory=list)
    source: Optional[str] = None
    exports_enabled: bool = False
