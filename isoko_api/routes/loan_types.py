"""
Loan product configuration.

GET    /loan-types        → list (any signed-in user; `is_active` filter)
GET    /loan-types/{id}   → one product
POST   /loan-types        → create (admin)
PUT    /loan-types/{id}   → replace (admin)
DELETE /loan-types/{id}   → delete an unused product (admin)
"""

from fastapi import APIRouter, Depends, HTTPException

from isoko_api.database import get_db
from isoko_api.dependencies import get_current_user, require_roles
from isoko_api.helpers import DEFAULT_LIMIT, clean, find_page, object_id, ok, utcnow
from isoko_api.models import LoanTypeIn

router = APIRouter(prefix="/loan-types", tags=["Loan Types"])

admin_only = require_roles("admin")


def _check_ranges(req: LoanTypeIn):
    if req.max_amount and req.min_amount > req.max_amount:
        raise HTTPException(status_code=422, detail="Minimum amount cannot exceed maximum amount")
    if req.min_term_months > req.max_term_months:
        raise HTTPException(status_code=422, detail="Minimum term cannot exceed maximum term")


async def _get_loan_type(db, loan_type_id: str) -> dict:
    doc = await db.loan_types.find_one({"_id": object_id(loan_type_id, "Loan type")})
    if doc is None:
        raise HTTPException(status_code=404, detail="Loan type not found")
    return doc


@router.get("")
async def list_loan_types(
    is_active: bool | None = None,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    _: dict = Depends(get_current_user),
    db=Depends(get_db),
):
    query = {} if is_active is None else {"is_active": is_active}
    return ok(await find_page(db.loan_types, query, page, limit, sort=("name", 1)))


@router.get("/{loan_type_id}")
async def get_loan_type(loan_type_id: str, _: dict = Depends(get_current_user), db=Depends(get_db)):
    return ok(clean(await _get_loan_type(db, loan_type_id)))


@router.post("", status_code=201)
async def create_loan_type(req: LoanTypeIn, _: dict = Depends(admin_only), db=Depends(get_db)):
    _check_ranges(req)
    doc = req.model_dump()
    doc["code"] = doc["code"].strip().upper()
    if await db.loan_types.find_one({"code": doc["code"]}):
        raise HTTPException(status_code=409, detail=f"Loan type code {doc['code']} already exists")
    doc["created_at"] = utcnow()
    result = await db.loan_types.insert_one(doc)
    doc["_id"] = result.inserted_id
    return ok(clean(doc), "Loan type created")


@router.put("/{loan_type_id}")
async def update_loan_type(loan_type_id: str, req: LoanTypeIn, _: dict = Depends(admin_only), db=Depends(get_db)):
    _check_ranges(req)
    existing = await _get_loan_type(db, loan_type_id)
    changes = req.model_dump()
    changes["code"] = changes["code"].strip().upper()
    clash = await db.loan_types.find_one({"code": changes["code"]})
    if clash is not None and clash["_id"] != existing["_id"]:
        raise HTTPException(status_code=409, detail=f"Loan type code {changes['code']} already exists")
    changes["updated_at"] = utcnow()
    await db.loan_types.update_one({"_id": existing["_id"]}, {"$set": changes})
    existing.update(changes)
    return ok(clean(existing), "Loan type updated")


@router.delete("/{loan_type_id}")
async def delete_loan_type(loan_type_id: str, _: dict = Depends(admin_only), db=Depends(get_db)):
    existing = await _get_loan_type(db, loan_type_id)
    if await db.loans.count_documents({"loan_type_id": str(existing["_id"])}):
        raise HTTPException(status_code=409, detail="Loan type is in use; deactivate it instead")
    await db.loan_types.delete_one({"_id": existing["_id"]})
    return ok(message="Loan type deleted")
