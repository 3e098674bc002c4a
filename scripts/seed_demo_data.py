"""
Seed the local database with one user per role, a few clients, cases and
schedule events.

Usage:
  python scripts/seed_demo_data.py

This script is idempotent: running it multiple times will upsert the same
records based on unique fields (email for users, name for clients, title for
cases).
"""
import os
import sys
from datetime import datetime, timedelta

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Load .env before the settings object is built
from dotenv import load_dotenv

load_dotenv()

from legaliz.db import SessionLocal, Base, engine  # noqa: E402
from legaliz.models.models import (  # noqa: E402
    User,
    Role,
    Client,
    Case,
    CaseStatus,
    Schedule,
    ScheduleStatus,
)
from legaliz.auth.security import get_password_hash  # noqa: E402


def ensure_user(session, first_name: str, last_name: str, email: str, password: str, role: Role) -> User:
    user = session.query(User).filter(User.email == email).first()
    if user:
        user.first_name = first_name
        user.last_name = last_name
        user.role = role.value
        session.add(user)
        session.flush()
        return user
    user = User(
        first_name=first_name,
        last_name=last_name,
        email=email,
        password_hash=get_password_hash(password),
        role=role.value,
    )
    session.add(user)
    session.flush()
    return user


def ensure_client(session, name: str, user: User | None = None, **kwargs) -> Client:
    cli = session.query(Client).filter(Client.name == name).first()
    if cli is None:
        cli = Client(name=name)
    if user is not None:
        cli.user_id = user.id
        cli.email = user.email
    for k, v in kwargs.items():
        if hasattr(cli, k):
            setattr(cli, k, v)
    session.add(cli)
    session.flush()
    return cli


def ensure_case(session, title: str, client: Client, lawyer: User, **kwargs) -> Case:
    case = session.query(Case).filter(Case.title == title).first()
    if case is None:
        case = Case(title=title, client_id=client.id, lawyer_id=lawyer.id)
    case.client_id = client.id
    case.lawyer_id = lawyer.id
    for k, v in kwargs.items():
        setattr(case, k, v)
    session.add(case)
    session.flush()
    return case


def ensure_event(session, case: Case, scheduled_by: User, event_title: str, start_date: datetime, **kwargs) -> Schedule:
    row = (
        session.query(Schedule)
        .filter(Schedule.case_id == case.id, Schedule.event_title == event_title)
        .first()
    )
    if row is None:
        row = Schedule(case_id=case.id, event_title=event_title, status=ScheduleStatus.PENDING.value)
    row.scheduled_by = scheduled_by.id
    row.start_date = start_date
    for k, v in kwargs.items():
        setattr(row, k, v)
    session.add(row)
    session.flush()
    return row


def main():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        # Users
        ensure_user(session, "Ada", "Admin", "admin@example.com", "TestAdmin123!", Role.ADMIN)
        partner = ensure_user(session, "Paula", "Partner", "partner@example.com", "TestUser123!", Role.PARTNER)
        lawyer = ensure_user(session, "Leo", "Lawyer", "lawyer@example.com", "TestUser123!", Role.LAWYER)
        ensure_user(session, "Sam", "Staff", "staff@example.com", "TestUser123!", Role.STAFF)
        client_user = ensure_user(session, "Carla", "Client", "client@example.com", "TestUser123!", Role.CLIENT)

        # Clients
        carla = ensure_client(session, "Carla Client", user=client_user, contact="555-0100", address="12 Harbour Rd")
        acme = ensure_client(session, "ACME Holdings", email="legal@acme.example", contact="555-0199", address="100 Main St")

        # Cases
        lease = ensure_case(session, "Lease dispute", carla, lawyer, description="Commercial lease termination.")
        merger = ensure_case(
            session, "ACME merger review", acme, partner,
            description="Due diligence for the ACME acquisition.",
            status=CaseStatus.IN_PROGRESS.value, progress=40,
        )

        # Schedule
        today = datetime.utcnow().replace(hour=9, minute=0, second=0, microsecond=0)
        ensure_event(session, lease, lawyer, "Client consultation", today + timedelta(days=1), location="Office 2")
        ensure_event(session, lease, lawyer, "Filing deadline", today + timedelta(days=7), notes="Statement of claim")
        ensure_event(session, merger, partner, "Board meeting", today + timedelta(days=3), location="ACME HQ")

        # Commit all changes
        session.commit()
        print("Seed completed: users, clients, cases and events upserted.")
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
