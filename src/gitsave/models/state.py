"""View state model for gitsave."""

import os
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from gitsave.models.commit import Commit

DEFAULT_LIMIT = 25


class ViewState(BaseModel):
    """Mutable state the workspace exposes to its views."""

    limit: int = Field(default=DEFAULT_LIMIT, ge=1)
    show_all: bool = False
    new_comment: Optional[str] = None
    last_comment: Optional[str] = None
    selected_commit: Optional[Commit] = None
    work_folder: str = Field(default_factory=os.getcwd)
    has_updates: bool = False
    commit_list: Tuple[Commit, ...] = ()
    error: Optional[str] = None  # Last transient error shown to the user
    busy: bool = False  # A reload is running

    model_config = ConfigDict(validate_assignment=True)

    @property
    def can_create(self) -> bool:
        """Check if a new commit can be created."""
        return bool(self.new_comment)

    @property
    def can_update(self) -> bool:
        """Check if the head commit can be updated."""
        return bool(self.last_comment)
