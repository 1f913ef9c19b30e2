"""Operation result envelope"""

from typing import Generic, List, TypeVar

from pydantic import BaseModel, Field


T = TypeVar('T')


class OperationResult(BaseModel, Generic[T]):
    """
    Outcome of a store operation that can succeed with warnings.

    Example:
        {
            "success": true,
            "data": {...},
            "warnings": ["Receipt could not be created: Network error: ..."]
        }
    """
    success: bool = True
    data: T
    warnings: List[str] = Field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)
