"""Commit model exposed by the version-control backend."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Commit(BaseModel):
    """Represents a commit in the work folder's history."""

    uuid: str
    comment: str
    position: int
    author: Optional[str] = None
    timestamp: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)

    @property
    def short_id(self) -> str:
        """Abbreviated identifier for display."""
        return self.uuid[:8]
