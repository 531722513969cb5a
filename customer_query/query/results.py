"""
Result document returned by every domain query.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class DomainQueryResult(BaseModel):
    """
    Outcome of a domain query.

    Attributes:

        success: False when the query failed; `error` then says why
        error: Failure message
        data: Entity key -> record (primary entity, or None when nothing matched) or list of records (related entities)
        counts: Entity key -> number of distinct records returned
        warnings: Planning warnings and filter fields that were ignored because they are not filterable
    """

    success: bool = True
    error: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    counts: Dict[str, int] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)

    @classmethod
    def failed(cls, error: str, warnings: Optional[List[str]] = None) -> "DomainQueryResult":
        return cls(success=False, error=error, warnings=list(warnings or []))

    def to_document(self) -> Dict[str, Any]:
        """JSON-ready form, leaving out `error` on success and `warnings` when there are none."""
        document = self.model_dump(mode="json")
        if document["error"] is None:
            del document["error"]
        if not document["warnings"]:
            del document["warnings"]
        return document
