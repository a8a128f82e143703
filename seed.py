"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 1 admin and 3 employees
  - 7 sample rides (one or more in every status, including an overdue
    APPROVED ride eligible for completion)
  - admin actions for every ride an admin has decided on
"""

import asyncio
from datetime import timedelta

from sqlalchemy import func, select

from src.domain.dates import utcnow
from src.domain.enums import AdminActionType, RideStatus, UserRole
from src.infrastructure.database import async_session_factory, engine
from src.infrastructure.models import AdminActionModel, RideModel, UserModel


ADMIN = {
    "name": "Admin User",
    "email": "admin@rapido.com",
    "phone": "+1234567890",
    "company": "Rapido",
    "role": UserRole.ADMIN,
}

USERS = [
    {"name": "John Doe", "email": "john.doe@company.com", "phone": "+1234567891", "company": "Tech Corp"},
    {"name": "Jane Smith", "email": "jane.smith@company.com", "phone": "+1234567892", "company": "Innovation Inc"},
    {"name": "Mike Johnson", "email": "mike.johnson@company.com", "phone": "+1234567893", "company": "Startup XYZ"},
]

# (user index, pickup, drop, offset in days, purpose, notes, status, admin decision, reason)
RIDES = [
    (0, "123 Main Street, Downtown", "456 Business Park, Tech District", 1,
     "Client Meeting", "Important client presentation", RideStatus.PENDING, None, None),
    (0, "789 Home Address, Suburb", "123 Main Street, Downtown", 2,
     "Daily Commute", "Regular office commute", RideStatus.APPROVED,
     AdminActionType.APPROVE, "Valid business purpose"),
    (1, "321 Oak Avenue, Residential Area", "654 Conference Center, Business District", 3,
     "Conference Attendance", "Annual tech conference", RideStatus.PENDING, None, None),
    (1, "654 Conference Center, Business District", "321 Oak Avenue, Residential Area", -1,
     "Return from Conference", "Returning from tech conference", RideStatus.COMPLETED,
     AdminActionType.APPROVE, "Conference travel approved"),
    (2, "987 Innovation Hub, Startup District", "456 Business Park, Tech District", 4,
     "Investor Meeting", "Pitch presentation to investors", RideStatus.PENDING, None, None),
    (2, "456 Business Park, Tech District", "987 Innovation Hub, Startup District", -2,
     "Team Meeting", "Weekly team sync", RideStatus.REJECTED,
     AdminActionType.REJECT, "Insufficient business justification"),
    (2, "987 Innovation Hub, Startup District", "Airport Terminal 1, Departures", -1,
     "Airport Transfer", "Flight to the partner summit", RideStatus.APPROVED,
     AdminActionType.APPROVE, "Summit travel is pre-approved"),
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        existing = await session.execute(select(func.count()).select_from(UserModel))
        if existing.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Users ─────────────────────────────────────────────────────
        admin = UserModel(**ADMIN)
        users = [UserModel(role=UserRole.USER, **u) for u in USERS]
        session.add_all([admin, *users])
        await session.flush()
        print(f"  Created 1 admin and {len(users)} users")

        # ── Rides + admin actions ─────────────────────────────────────
        now = utcnow()
        actions = 0
        for idx, pickup, drop, days, purpose, notes, status, decision, reason in RIDES:
            ride = RideModel(
                user_id=users[idx].id,
                pickup_location=pickup,
                drop_location=drop,
                scheduled_time=now + timedelta(days=days),
                purpose=purpose,
                notes=notes,
                status=status,
            )
            session.add(ride)
            await session.flush()
            if decision is not None:
                session.add(
                    AdminActionModel(
                        admin_id=admin.id,
                        ride_id=ride.id,
                        action=decision,
                        reason=reason,
                    )
                )
                actions += 1
        await session.flush()
        print(f"  Created {len(RIDES)} rides and {actions} admin actions")

        await session.commit()
        print("\nSeed complete!")
        print(f"  Admin identity:  X-User-Id: {admin.id}")
        for user in users:
            print(f"  {user.email}: X-User-Id: {user.id}")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
