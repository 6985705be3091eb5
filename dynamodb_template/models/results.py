from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FailedBatch(BaseModel):
    """Entities of one table that a best-effort batch write could not apply."""

    table_name: str = Field(..., description="Table the unprocessed entities belong to")
    unprocessed: List[Any] = Field(default_factory=list, description="Entities left unwritten after all retries")
    reason: Optional[str] = Field(None, description="Why the entities were left unwritten")

    model_config = ConfigDict(arbitrary_types_allowed=True)
