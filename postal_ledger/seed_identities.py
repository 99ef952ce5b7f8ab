"""
Database seeding script for initial identities.

Registers the bootstrap admin and a postalWorker employee, printing the
employee's enrollment secret. Run after the database is reachable.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from postal_ledger.app.db.session import AsyncSessionLocal, engine, Base
from postal_ledger.app.models.enums import IdentityRole
from postal_ledger.app.models.identity import Identity
from postal_ledger.app.models.audit_log import AuditLog
from postal_ledger.app.models.world_state import WorldStateEntry
from postal_ledger.app.models.ledger_event import LedgerEvent
from postal_ledger.app.services.identity_service import ensure_admin, get_identity, register_identity

WORKER_USERNAME = "postalWorker"


async def seed_identities():
    """
    Seed initial identities.

    Creates:
    - the ADMIN identity from settings
    - 1 EMPLOYEE identity (postalWorker)
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting identity seeding...")

        admin = await ensure_admin(db)
        print(f"✅ Admin identity present (username: {admin.username})")

        if await get_identity(db, WORKER_USERNAME):
            print(f"ℹ️  {WORKER_USERNAME} already registered, skipping")
            return

        worker, secret = await register_identity(db, WORKER_USERNAME, IdentityRole.EMPLOYEE)
        print(f"✅ Registered EMPLOYEE identity (username: {worker.username})")
        print(f"\nEnrollment secret for {worker.username}: {secret}")
        print("Enroll with POST /v1/identities/enroll, or use `postal-cli create-user` for new users.")


if __name__ == "__main__":
    asyncio.run(seed_identities())
