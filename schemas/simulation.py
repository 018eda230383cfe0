from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from models.enums import ProjectType


class SimulationRequest(BaseModel):
    amount: Decimal = Field(..., max_digits=15, decimal_places=2, gt=0)
    term_months: int = Field(..., gt=0, alias="termMonths")
    project_type: ProjectType = Field(ProjectType.OTHER, alias="projectType")
    monthly_income: Optional[Decimal] = Field(
        None, max_digits=15, decimal_places=2, gt=0, alias="monthlyIncome"
    )
    credit_program_id: Optional[str] = Field(None, alias="creditProgramId")

    model_config = {"populate_by_name": True}
