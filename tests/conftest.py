"""
Test configuration

Fixtures: a per-test SQLite database file, the HTTP test client and a data
factory that writes records straight through the ORM
"""
from dataclasses import dataclass, field
from typing import AsyncGenerator

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import Database
from app.core.realtime import ConnectionManager
from app.core.security import create_access_token
from app.main import create_app
from app.models import (
    Chat,
    JobApplication,
    JobPosting,
    Notification,
    PatientRegistration,
    PrescriptionRequest,
    Treatment,
    User,
    slugify,
)


# ========== Data factory ==========

@dataclass
class DataFactory:
    """
    Creates test records

    Each call uses its own short session and commits, so the records are
    visible to the app under test and no write lock is left open.
    """
    database: Database
    _counter: int = field(default=0, repr=False)

    def _next_id(self) -> str:
        self._counter += 1
        return str(self._counter)

    async def _add(self, obj):
        async with self.database.session() as session:
            session.add(obj)
            await session.commit()
        return obj

    # ----- users -----

    async def create_user(self, role: str = "user", **overrides) -> User:
        suffix = self._next_id()
        data = {
            "name": f"{role.title()} {suffix}",
            "email": f"{role.lower()}{suffix}@example.com",
            "phone": f"555{suffix.zfill(7)}",
            "role": role,
            "is_approved": True,
            **overrides,
        }
        return await self._add(User(**data))

    @staticmethod
    def token(user: User) -> str:
        return create_access_token(user)

    def headers(self, user: User) -> dict:
        return {"Authorization": f"Bearer {self.token(user)}"}

    # ----- job postings -----

    async def create_job(self, owner: User, **overrides) -> JobPosting:
        suffix = self._next_id()
        data = {
            "title": f"Nurse {suffix}",
            "location": "Dubai Marina",
            "department": "Nursing",
            "salary": "5000",
            "job_type": "Full Time",
            "skills": ["Patient Care", "IV Therapy"],
            "posted_by": owner.id,
            "role": owner.role,
            "status": "approved",
            **overrides,
        }
        return await self._add(JobPosting(**data))

    async def create_application(
        self,
        job: JobPosting,
        applicant: User,
        **overrides
    ) -> JobApplication:
        data = {
            "job_id": job.id,
            "applicant_id": applicant.id,
            "applicant_info": {"name": applicant.name, "email": applicant.email},
            **overrides,
        }
        return await self._add(JobApplication(**data))

    async def create_notification(self, user: User, **overrides) -> Notification:
        data = {"user_id": user.id, "message": f"Notice {self._next_id()}", **overrides}
        return await self._add(Notification(**data))

    # ----- patients -----

    async def create_patient(self, creator: User, **overrides) -> PatientRegistration:
        suffix = self._next_id()
        data = {
            "user_id": creator.id,
            "invoice_number": f"INV-{suffix.zfill(4)}",
            "emr_number": f"EMR-{suffix.zfill(4)}",
            "first_name": "Sara",
            "last_name": f"Patient{suffix}",
            "mobile_number": f"050{suffix.zfill(7)}",
            "gender": "Female",
            "doctor": "Dr. Unknown",
            "service": "Consultation",
            "amount": 1000.0,
            "paid": 400.0,
            "advance": 0.0,
            "pending": 600.0,
            "payment_method": "Card",
            **overrides,
        }
        return await self._add(PatientRegistration(**data))

    # ----- prescriptions -----

    async def create_chat(self, patient: User, doctor: User, **overrides) -> Chat:
        request = await self._add(PrescriptionRequest(
            user_id=patient.id,
            doctor_id=doctor.id,
            health_issue="Headache",
        ))
        data = {
            "prescription_request_id": request.id,
            "user_id": patient.id,
            "doctor_id": doctor.id,
            **overrides,
        }
        return await self._add(Chat(**data))

    # ----- treatments -----

    async def create_treatment(self, name: str, subcategories=()) -> Treatment:
        return await self._add(Treatment(
            name=name,
            slug=slugify(name),
            subcategories=[
                {"name": sub, "slug": slugify(sub), "price": 100.0} for sub in subcategories
            ],
        ))

    # ----- reads -----

    async def get(self, model, id: str):
        async with self.database.session() as session:
            return await session.get(model, id)

    async def count(self, model, *criteria) -> int:
        async with self.database.session() as session:
            result = await session.execute(
                select(func.count()).select_from(model).where(*criteria)
            )
            return result.scalar() or 0


# ========== Fixtures ==========

@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """Fresh SQLite file per test, tables created on connect"""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", create_tables=True)
    await db.connect()
    yield db
    await db.disconnect()


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session() as session:
        yield session


@pytest_asyncio.fixture
async def connections() -> ConnectionManager:
    return ConnectionManager()


@pytest_asyncio.fixture
async def app(database: Database, connections: ConnectionManager):
    return create_app(database=database, connections=connections)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client bound to the app

    ASGITransport does not run the lifespan, so the outbox dispatcher is
    driven by the tests themselves.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def factory(database: Database) -> DataFactory:
    return DataFactory(database=database)
