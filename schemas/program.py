from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from models.enums import ProjectType


class ProgramCreate(BaseModel):
    """Create a credit program owned by the calling institution."""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    project_types: list[ProjectType] = Field(..., min_length=1, alias="projectTypes")
    min_amount: Decimal = Field(..., max_digits=15, decimal_places=2, gt=0, alias="minAmount")
    max_amount: Decimal = Field(..., max_digits=15, decimal_places=2, gt=0, alias="maxAmount")
    min_term: int = Field(..., gt=0, alias="minTerm")
    max_term: int = Field(..., gt=0, alias="maxTerm")
    interest_rate: Decimal = Field(..., max_digits=5, decimal_places=2, ge=0, le=100, alias="interestRate")
    effort_rate: Decimal = Field(..., max_digits=5, decimal_places=2, gt=0, le=100, alias="effortRate")
    processing_fee: Decimal = Field(
        Decimal("0"), max_digits=5, decimal_places=2, ge=0, le=100, alias="processingFee"
    )
    is_active: bool = Field(True, alias="isActive")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _check_bounds(self) -> "ProgramCreate":
        if self.min_amount > self.max_amount:
            raise ValueError("minAmount must not exceed maxAmount")
        if self.min_term > self.max_term:
            raise ValueError("minTerm must not exceed maxTerm")
        return self


class ProgramUpdate(BaseModel):
    """Partial update; bounds are re-checked against the stored values after merging."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    project_types: Optional[list[ProjectType]] = Field(None, min_length=1, alias="projectTypes")
    min_amount: Optional[Decimal] = Field(None, max_digits=15, decimal_places=2, gt=0, alias="minAmount")
    max_amount: Optional[Decimal] = Field(None, max_digits=15, decimal_places=2, gt=0, alias="maxAmount")
    min_term: Optional[int] = Field(None, gt=0, alias="minTerm")
    max_term: Optional[int] = Field(None, gt=0, alias="maxTerm")
    interest_rate: Optional[Decimal] = Field(
        None, max_digits=5, decimal_places=2, ge=0, le=100, alias="interestRate"
    )
    effort_rate: Optional[Decimal] = Field(
        None, max_digits=5, decimal_places=2, gt=0, le=100, alias="effortRate"
    )
    processing_fee: Optional[Decimal] = Field(
        None, max_digits=5, decimal_places=2, ge=0, le=100, alias="processingFee"
    )

    model_config = {"populate_by_name": True}
