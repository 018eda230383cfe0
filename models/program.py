from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, Numeric, String, Text, func

from database import Base


class CreditProgram(Base):
    __tablename__ = "credit_programs"

    id = Column(String(64), primary_key=True, index=True)
    financial_institution_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    # List of ProjectType values this program finances
    project_types = Column(JSON, nullable=False)
    min_amount = Column(Numeric(15, 2), nullable=False)
    max_amount = Column(Numeric(15, 2), nullable=False)
    min_term = Column(Integer, nullable=False)
    max_term = Column(Integer, nullable=False)
    interest_rate = Column(Numeric(5, 2), nullable=False)
    effort_rate = Column(Numeric(5, 2), nullable=False)
    processing_fee = Column(Numeric(5, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
