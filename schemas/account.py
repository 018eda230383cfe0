from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class PaymentCreate(BaseModel):
    amount: Decimal = Field(..., max_digits=15, decimal_places=2, gt=0)
    payment_date: Optional[date] = Field(None, alias="paymentDate")

    model_config = {"populate_by_name": True}
