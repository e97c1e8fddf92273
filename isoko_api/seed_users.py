"""
Seed the MongoDB `users` collection with one demo account per role, plus
a starter loan product.

Creates:
  - admin@isoko.rw        (role = admin)
  - supervisor@isoko.rw   (role = supervisor, branch = Kigali)
  - officer@isoko.rw      (role = loan-officer, branch = Kigali)
  - cashier@isoko.rw      (role = cashier, branch = Kigali)

All users share the same demo password: demo@1234

Run:
    python -m isoko_api.seed_users
"""

import asyncio

from isoko_api.database import close_connections, get_mongo_db
from isoko_api.helpers import utcnow
from isoko_api.security import hash_password

DEMO_PASSWORD = "demo@1234"

DEMO_USERS = [
    ("admin@isoko.rw", "Aline", "Uwase", "admin", "Head Office", "EMP-001"),
    ("supervisor@isoko.rw", "Eric", "Mugisha", "supervisor", "Kigali", "EMP-002"),
    ("officer@isoko.rw", "Grace", "Ingabire", "loan-officer", "Kigali", "EMP-003"),
    ("cashier@isoko.rw", "Jean", "Habimana", "cashier", "Kigali", "EMP-004"),
]

STARTER_LOAN_TYPE = {
    "name": "Business Working Capital",
    "code": "BWC",
    "description": "Short-term working capital for small traders.",
    "category": "loan",
    "interest_rate": 2.5,
    "interest_method": "flat",
    "interest_period": "monthly",
    "application_fee": 5000.0,
    "processing_fee_rate": 1.0,
    "penalty_rate": 0.5,
    "min_amount": 50000.0,
    "max_amount": 5000000.0,
    "min_term_months": 1,
    "max_term_months": 12,
    "repayment_frequency": "monthly",
    "is_active": True,
}


async def seed():
    db = get_mongo_db()
    col = db["users"]

    # ── Drop existing users for a clean seed ──
    await col.drop()
    print("[seed] Dropped existing users collection.")

    now = utcnow()
    password_hash = hash_password(DEMO_PASSWORD)
    users = [
        {
            "email": email,
            "first_name": first,
            "last_name": last,
            "role": role,
            "branch": branch,
            "employee_id": employee_id,
            "phone": "",
            "status": "active",
            "password_hash": password_hash,
            "created_at": now,
        }
        for email, first, last, role, branch, employee_id in DEMO_USERS
    ]

    result = await col.insert_many(users)
    print(f"[seed] Inserted {len(result.inserted_ids)} users into 'users' collection.")
    for email, _, _, role, _, _ in DEMO_USERS:
        print(f"       - {email:<22} ({role})")
    print(f"       - Shared password: {DEMO_PASSWORD}")

    # ── Indexes ──
    await col.create_index("email", unique=True)
    await db["clients"].create_index("national_id", unique=True)
    await db["loan_types"].create_index("code", unique=True)
    await db["revoked_tokens"].create_index("expires_at", expireAfterSeconds=0)
    print("[seed] Created indexes.")

    # ── Starter loan product ──
    if not await db["loan_types"].find_one({"code": STARTER_LOAN_TYPE["code"]}):
        await db["loan_types"].insert_one({**STARTER_LOAN_TYPE, "created_at": now})
        print(f"[seed] Added loan type {STARTER_LOAN_TYPE['code']}.")

    await close_connections()
    print("[seed] Done.")


if __name__ == "__main__":
    asyncio.run(seed())
