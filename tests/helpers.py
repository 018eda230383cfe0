"""Shared fixtures for service tests: a fresh in-memory database per test."""
import tempfile
import unittest
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import func, select

from config import Settings
from database import build_engine, build_session_factory, init_db
from models import CreditProgram, ProjectType
from schemas.application import ApplicationCreate
from services.events import EventDispatcher
from services.workflow import CreditWorkflow

RATES = {
    "cattle": Decimal("13"),
    "corn": Decimal("14"),
    "cassava": Decimal("15"),
    "horticulture": Decimal("16"),
    "poultry": Decimal("17"),
    "other": Decimal("18"),
}
TODAY = date(2026, 1, 15)


def application_data(**overrides) -> ApplicationCreate:
    data = {
        "project_name": "Milho Cuanza Sul",
        "project_type": ProjectType.CORN,
        "description": "Cultivo de milho em 5 hectares",
        "amount": Decimal("500000"),
        "term_months": 12,
    }
    data.update(overrides)
    return ApplicationCreate(**data)


class DatabaseTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.engine = build_engine(Settings(database_url=self.database_url(), debug=False))
        await init_db(self.engine)
        self.session_factory = build_session_factory(self.engine)
        self.session = self.session_factory()
        self.events = []
        self.dispatcher = EventDispatcher()
        self.dispatcher.subscribe_all(self._record_event)
        self.workflow = self.make_workflow(self.session)

    def database_url(self) -> str:
        return "sqlite+aiosqlite:///:memory:"

    async def asyncTearDown(self):
        await self.session.close()
        await self.engine.dispose()

    async def _record_event(self, event):
        self.events.append(event)

    def make_workflow(self, session) -> CreditWorkflow:
        return CreditWorkflow(session, RATES, dispatcher=self.dispatcher, today=lambda: TODAY)

    async def add_program(self, **overrides) -> CreditProgram:
        now = datetime.now(timezone.utc)
        values = {
            "id": f"prog-{uuid.uuid4().hex[:8]}",
            "financial_institution_id": "bank-1",
            "name": "Crédito Agrícola Campanha",
            "project_types": ["corn", "cassava"],
            "min_amount": Decimal("100000"),
            "max_amount": Decimal("1000000"),
            "min_term": 6,
            "max_term": 24,
            "interest_rate": Decimal("10"),
            "effort_rate": Decimal("35"),
            "processing_fee": Decimal("2"),
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }
        values.update(overrides)
        program = CreditProgram(**values)
        self.session.add(program)
        await self.session.commit()
        return program

    async def count(self, model) -> int:
        async with self.session_factory() as session:
            return (await session.execute(select(func.count()).select_from(model))).scalar_one()


class FileDatabaseTestCase(DatabaseTestCase):
    """Same fixtures over a SQLite file, where every session has its own connection."""

    def database_url(self) -> str:
        self._tmpdir = tempfile.TemporaryDirectory()
        return f"sqlite+aiosqlite:///{self._tmpdir.name}/agrocredito-test.db"

    async def asyncTearDown(self):
        await super().asyncTearDown()
        self._tmpdir.cleanup()
