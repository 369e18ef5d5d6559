from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from typing import Optional
from pixico.core.auth import AdminAccessError, verify_admin
from pixico.core.gateway import Gateway, GatewayError, get_admin_gateway, get_gateway
from pixico.core.logging_config import log_security_event, get_client_ip
from pixico.schemas.contact import ContactUpdate
from pixico.services.admin import (
    CONTACT_ID_REQUIRED,
    DELETE_CONTACT_FAILED,
    LOAD_CONTACTS_FAILED,
    UPDATE_CONTACT_FAILED,
    ContactTriage,
    is_missing_id,
)
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@router.get("/contacts")
async def list_contacts(
    request: Request,
    status: Optional[str] = None,
    gateway: Gateway = Depends(get_gateway),
    admin_gateway: Gateway = Depends(get_admin_gateway),
):
    """All contact queries, newest first."""
    try:
        await verify_admin(request, gateway)
    except AdminAccessError as e:
        return _failure(e.status_code, e.message)

    try:
        contacts = await ContactTriage(admin_gateway).list(status=status)
    except GatewayError as e:
        logger.error(f"Listing contacts failed: {e.message}")
        return _failure(500, LOAD_CONTACTS_FAILED)

    return {
        "success": True,
        "data": [c.model_dump(mode="json") for c in contacts],
    }


@router.patch("/contacts")
async def update_contact(
    request: Request,
    gateway: Gateway = Depends(get_gateway),
    admin_gateway: Gateway = Depends(get_admin_gateway),
):
    """
    Update status, notes or reply time of one contact query.

    Only fields present in the body with a non-null value are written.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict) or is_missing_id(body.get("id")):
        return _failure(400, CONTACT_ID_REQUIRED)

    try:
        update = ContactUpdate.model_validate(body)
    except ValidationError as e:
        return _failure(400, f"Invalid contact update: {e.errors()[0]['msg']}")

    try:
        identity = await verify_admin(request, gateway)
    except AdminAccessError as e:
        return _failure(e.status_code, e.message)

    try:
        await ContactTriage(admin_gateway).update(update)
    except GatewayError as e:
        logger.error(f"Updating contact {update.id} failed: {e.message}")
        return _failure(500, UPDATE_CONTACT_FAILED)

    log_security_event(
        event_type="admin.contact.updated",
        message=f"Contact {update.id} updated",
        user_id=identity.user_id,
        ip_address=get_client_ip(request),
        event_category="admin",
        fields=sorted(update.changes()),
    )
    return {"success": True}


@router.delete("/contacts")
async def delete_contact(
    request: Request,
    id: Optional[str] = None,
    gateway: Gateway = Depends(get_gateway),
    admin_gateway: Gateway = Depends(get_admin_gateway),
):
    if is_missing_id(id):
        return _failure(400, CONTACT_ID_REQUIRED)

    try:
        identity = await verify_admin(request, gateway)
    except AdminAccessError as e:
        return _failure(e.status_code, e.message)

    try:
        await ContactTriage(admin_gateway).delete(id)
    except GatewayError as e:
        logger.error(f"Deleting contact {id} failed: {e.message}")
        return _failure(500, DELETE_CONTACT_FAILED)

    log_security_event(
        event_type="admin.contact.deleted",
        message=f"Contact {id} deleted",
        user_id=identity.user_id,
        ip_address=get_client_ip(request),
        event_category="admin",
    )
    return {"success": True}
