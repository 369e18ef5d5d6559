from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pixico.core.auth import AdminAccessError, verify_admin
from pixico.core.gateway import Gateway, GatewayError, get_admin_gateway, get_gateway
from pixico.core.logging_config import log_security_event, get_client_ip
from pixico.schemas.profile import RoleUpdate
from pixico.services.admin import UserRoleManager
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.patch("/users/{user_id}/role")
async def change_user_role(
    request: Request,
    user_id: str,
    gateway: Gateway = Depends(get_gateway),
    admin_gateway: Gateway = Depends(get_admin_gateway),
):
    """Set a profile's role to ``user`` or ``admin``."""
    try:
        body = await request.json()
    except ValueError:
        body = None
    try:
        role_update = RoleUpdate.model_validate(body if isinstance(body, dict) else {})
    except ValidationError:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Role must be 'user' or 'admin'"},
        )

    try:
        identity = await verify_admin(request, gateway)
    except AdminAccessError as e:
        return JSONResponse(
            status_code=e.status_code, content={"success": False, "error": e.message}
        )

    manager = UserRoleManager(admin_gateway)
    try:
        profile = await manager.change_role(user_id, role_update.role)
    except GatewayError as e:
        return JSONResponse(
            status_code=e.status_code if e.status_code == 404 else 500,
            content={"success": False, "error": manager.error},
        )

    log_security_event(
        event_type="admin.user.role_changed",
        message=f"Role of {user_id} set to {role_update.role}",
        user_id=identity.user_id,
        ip_address=get_client_ip(request),
        event_category="admin",
        target_user_id=user_id,
        role=role_update.role,
    )
    return {"success": True, "data": profile.model_dump(mode="json")}
