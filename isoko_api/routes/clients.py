"""
Borrower (client) routes.

GET    /clients               → paginated list, scoped to the caller
GET    /clients/{id}          → one client
POST   /clients               → register a borrower
PUT    /clients/{id}          → partial update
DELETE /clients/{id}          → remove a borrower with no loans (admin)
POST   /clients/{id}/files    → multipart photo / document upload
GET    /clients/{id}/loans    → the borrower's loans
"""

import logging
import uuid
from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from isoko_api.config import settings
from isoko_api.database import get_db
from isoko_api.dependencies import client_scope, get_current_user, require_roles
from isoko_api.helpers import (
    DEFAULT_LIMIT,
    clean,
    find_page,
    object_id,
    ok,
    search_filter,
    utcnow,
)
from isoko_api.lending import reference_number
from isoko_api.models import ClientCreate, ClientUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["Clients"])

loan_desk = require_roles("loan-officer", "supervisor", "admin")

CLIENT_SEARCH_FIELDS = ["first_name", "last_name", "phone", "national_id", "client_number"]
FILE_TYPES = ("photo", "document")
MAX_UPLOAD_BYTES = 5 * 1024 * 1024
ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "application/pdf"}


async def get_client_for(db, client_id: str, user: dict) -> dict:
    """The client if it exists and falls inside the user's scope."""
    query = {"_id": object_id(client_id, "Client"), **client_scope(user)}
    client = await db.clients.find_one(query)
    if client is None:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.get("")
async def list_clients(
    search: str | None = None,
    branch: str | None = None,
    status: str | None = None,
    assigned_to_me: bool = False,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    user: dict = Depends(get_current_user),
    db=Depends(get_db),
):
    query = {**client_scope(user), **search_filter(search, CLIENT_SEARCH_FIELDS)}
    if assigned_to_me:
        query["assigned_officer_id"] = str(user["_id"])
    if branch:
        query["branch"] = branch
    if status:
        query["status"] = status
    return ok(await find_page(db.clients, query, page, limit))


@router.get("/{client_id}")
async def get_client(client_id: str, user: dict = Depends(get_current_user), db=Depends(get_db)):
    return ok(clean(await get_client_for(db, client_id, user)))


@router.post("", status_code=201)
async def create_client(req: ClientCreate, user: dict = Depends(loan_desk), db=Depends(get_db)):
    if await db.clients.find_one({"national_id": req.national_id}):
        raise HTTPException(status_code=409, detail="A client with this national ID already exists")

    now = utcnow()
    doc = req.model_dump()
    if user["role"] == "loan-officer" or not doc.get("assigned_officer_id"):
        doc["assigned_officer_id"] = str(user["_id"])
    doc.update(
        client_number=reference_number("CL", now),
        branch=doc.get("branch") or user.get("branch", ""),
        status="active",
        files=[],
        created_at=now,
        created_by=str(user["_id"]),
    )
    result = await db.clients.insert_one(doc)
    doc["_id"] = result.inserted_id
    logger.info("Client %s registered by %s", doc["client_number"], user.get("email"))
    return ok(clean(doc), "Client created")


@router.put("/{client_id}")
async def update_client(client_id: str, req: ClientUpdate, user: dict = Depends(loan_desk), db=Depends(get_db)):
    client = await get_client_for(db, client_id, user)
    changes = req.model_dump(exclude_none=True)
    if changes:
        changes["updated_at"] = utcnow()
        await db.clients.update_one({"_id": client["_id"]}, {"$set": changes})
        client.update(changes)
    return ok(clean(client), "Client updated")


@router.delete("/{client_id}")
async def delete_client(client_id: str, user: dict = Depends(require_roles("admin")), db=Depends(get_db)):
    client = await get_client_for(db, client_id, user)
    if await db.loans.count_documents({"client_id": str(client["_id"])}):
        raise HTTPException(status_code=409, detail="Client has loans and cannot be deleted")
    await db.clients.delete_one({"_id": client["_id"]})
    return ok(message="Client deleted")


@router.post("/{client_id}/files", status_code=201)
async def upload_client_file(
    client_id: str,
    file_type: str = Form(...),
    file: UploadFile = File(...),
    user: dict = Depends(loan_desk),
    db=Depends(get_db),
):
    if file_type not in FILE_TYPES:
        raise HTTPException(status_code=422, detail=f"file_type must be one of {', '.join(FILE_TYPES)}")
    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(status_code=415, detail="Only JPEG, PNG and PDF files are accepted")
    client = await get_client_for(db, client_id, user)

    content = await file.read()
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File is larger than 5 MB")

    folder = Path(settings.UPLOAD_DIR) / str(client["_id"])
    folder.mkdir(parents=True, exist_ok=True)
    stored_name = f"{uuid.uuid4().hex}_{Path(file.filename or 'upload').name}"
    (folder / stored_name).write_bytes(content)

    entry = {
        "file_type": file_type,
        "filename": file.filename,
        "stored_as": stored_name,
        "content_type": file.content_type,
        "size": len(content),
        "uploaded_at": utcnow(),
        "uploaded_by": str(user["_id"]),
    }
    update = {"$push": {"files": entry}}
    if file_type == "photo":
        update["$set"] = {"photo": stored_name}
    await db.clients.update_one({"_id": client["_id"]}, update)
    return ok(clean(entry), f"{file_type.title()} uploaded")


@router.get("/{client_id}/loans")
async def client_loans(client_id: str, user: dict = Depends(get_current_user), db=Depends(get_db)):
    client = await get_client_for(db, client_id, user)
    docs = await db.loans.find({"client_id": str(client["_id"])}).sort("created_at", -1).to_list(length=200)
    return ok({"items": [clean(d) for d in docs]})
