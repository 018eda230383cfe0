from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import relationship

from database import Base
from models.enums import ApplicationStatus, ProjectType, enum_column


class CreditApplication(Base):
    __tablename__ = "credit_applications"

    id = Column(String(64), primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    credit_program_id = Column(String(64), ForeignKey("credit_programs.id"), nullable=True, index=True)
    project_name = Column(String(255), nullable=False)
    project_type = Column(enum_column(ProjectType), nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    term_months = Column(Integer, nullable=False)
    status = Column(enum_column(ApplicationStatus), nullable=False, default=ApplicationStatus.PENDING, index=True)
    rejection_reason = Column(Text, nullable=True)
    interest_rate = Column(Numeric(5, 2), nullable=True)
    reviewed_by = Column(String(64), nullable=True)
    approved_by = Column(String(64), nullable=True)

    # Financial profile: all nullable, present only when the applicant filled it in
    monthly_income = Column(Numeric(15, 2), nullable=True)
    expected_project_income = Column(Numeric(15, 2), nullable=True)
    monthly_expenses = Column(Numeric(15, 2), nullable=True)
    other_debts = Column(Numeric(15, 2), nullable=True)
    family_members = Column(Integer, nullable=True)
    experience_years = Column(Integer, nullable=True)
    productivity = Column(String(50), nullable=True)
    agriculture_type = Column(String(255), nullable=True)
    credit_delivery_method = Column(String(50), nullable=True)
    credit_guarantee_declaration = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    program = relationship("CreditProgram", lazy="selectin")
    account = relationship("Account", back_populates="application", uselist=False)
    documents = relationship("Document", back_populates="application", cascade="all, delete-orphan")
