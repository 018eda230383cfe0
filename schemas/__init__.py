from schemas.account import PaymentCreate
from schemas.application import ApplicationCreate, FinancialProfileSchema, StatusUpdate
from schemas.program import ProgramCreate, ProgramUpdate
from schemas.simulation import SimulationRequest

__all__ = [
    "ApplicationCreate",
    "FinancialProfileSchema",
    "PaymentCreate",
    "ProgramCreate",
    "ProgramUpdate",
    "SimulationRequest",
    "StatusUpdate",
]
