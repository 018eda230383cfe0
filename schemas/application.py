from __future__ import annotations

from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from models.enums import ApplicationStatus, ProjectType


class FinancialProfileSchema(BaseModel):
    """Optional applicant finances; every field may be omitted."""

    monthly_income: Optional[Decimal] = Field(
        None, max_digits=15, decimal_places=2, ge=0, alias="monthlyIncome"
    )
    expected_project_income: Optional[Decimal] = Field(
        None, max_digits=15, decimal_places=2, ge=0, alias="expectedProjectIncome"
    )
    monthly_expenses: Optional[Decimal] = Field(
        None, max_digits=15, decimal_places=2, ge=0, alias="monthlyExpenses"
    )
    other_debts: Optional[Decimal] = Field(None, max_digits=15, decimal_places=2, ge=0, alias="otherDebts")
    family_members: Optional[int] = Field(None, ge=1, alias="familyMembers")
    experience_years: Optional[int] = Field(None, ge=0, alias="experienceYears")
    productivity: Optional[Literal["small", "medium", "large"]] = None
    agriculture_type: Optional[str] = Field(None, max_length=255, alias="agricultureType")
    credit_delivery_method: Optional[Literal["total", "monthly"]] = Field(None, alias="creditDeliveryMethod")
    credit_guarantee_declaration: Optional[str] = Field(None, alias="creditGuaranteeDeclaration")

    model_config = {"populate_by_name": True}


class ApplicationCreate(BaseModel):
    project_name: str = Field(..., min_length=1, max_length=255, alias="projectName")
    project_type: ProjectType = Field(..., alias="projectType")
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., max_digits=15, decimal_places=2, gt=0)
    term_months: int = Field(..., gt=0, alias="termMonths")
    credit_program_id: Optional[str] = Field(None, alias="creditProgramId")
    financial_profile: Optional[FinancialProfileSchema] = Field(None, alias="financialProfile")

    model_config = {"populate_by_name": True}

    @field_validator("project_name", "description")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class StatusUpdate(BaseModel):
    status: ApplicationStatus
    rejection_reason: Optional[str] = Field(None, alias="rejectionReason")
    interest_rate: Optional[Decimal] = Field(
        None, max_digits=5, decimal_places=2, ge=0, le=100, alias="interestRate"
    )

    model_config = {"populate_by_name": True}
