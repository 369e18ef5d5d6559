from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlencode
from slowapi import Limiter
from slowapi.util import get_remote_address
from pixico.api.validation import PageParam, TabParam, clean_search_term
from pixico.core.auth import (
    AdminIdentity,
    AdminUnauthorized,
    admin_login,
    end_admin_session,
    require_admin_page,
    start_admin_session,
)
from pixico.core.gateway import (
    AuthError,
    Gateway,
    GatewayConfigError,
    GatewayError,
    get_admin_gateway,
    get_gateway,
)
from pixico.core.logging_config import log_security_event, get_client_ip
from pixico.core.templating import templates
from pixico.schemas.contact import ContactUpdate
from pixico.services.admin import (
    DELETE_CONTACT_FAILED,
    UPDATE_CONTACT_FAILED,
    ContactTriage,
    UserRoleManager,
    load_contacts_page,
    load_dashboard,
    load_users_page,
)
import logging

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)


def _redirect(path: str, **params) -> RedirectResponse:
    query = urlencode({k: v for k, v in params.items() if v not in (None, "")})
    return RedirectResponse(f"{path}?{query}" if query else path, status_code=303)


# Login ----------------------------------------------------------------------


@router.get("/login", response_class=HTMLResponse)
async def login_form(request: Request, error: Optional[str] = TabParam):
    return templates.TemplateResponse(
        request, "admin/login.html", {"error": error, "email": ""}
    )


@router.post("/login", response_class=HTMLResponse)
@limiter.limit("10/minute")
async def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    gateway: Gateway = Depends(get_gateway),
):
    """Email/password sign-in restricted to administrators."""
    client_ip = get_client_ip(request)

    def failed(message: str, status_code: int = 401):
        return templates.TemplateResponse(
            request,
            "admin/login.html",
            {"error": message, "email": email},
            status_code=status_code,
        )

    if not email.strip() or not password:
        return failed("Email and password are required", status_code=400)

    try:
        session = await admin_login(gateway, email, password)
    except AuthError:
        log_security_event(
            event_type="admin.login.failed",
            message="Admin login rejected by auth service",
            level=logging.WARNING,
            email=email,
            ip_address=client_ip,
        )
        return failed("Invalid email or password")
    except AdminUnauthorized as e:
        log_security_event(
            event_type="admin.login.denied",
            message="Non-admin account attempted admin login",
            level=logging.WARNING,
            email=email,
            ip_address=client_ip,
        )
        return failed(str(e), status_code=403)
    except GatewayConfigError:
        return failed("Authentication is not configured", status_code=503)
    except GatewayError as e:
        logger.error(f"Admin login could not reach the backend: {e.message}")
        return failed("Login failed. Please try again.", status_code=502)

    request.session.clear()
    start_admin_session(request, session)
    log_security_event(
        event_type="admin.login.success",
        message="Administrator signed in",
        user_id=session.user.id,
        email=session.user.email,
        ip_address=client_ip,
    )
    return RedirectResponse("/admin", status_code=303)


@router.api_route("/logout", methods=["GET", "POST"])
async def logout(request: Request, gateway: Gateway = Depends(get_gateway)):
    token = end_admin_session(request)
    if token:
        try:
            await gateway.auth.sign_out(token)
        except GatewayError as e:
            logger.info(f"Backend sign-out skipped: {e.message}")
        log_security_event(
            event_type="admin.logout",
            message="Administrator signed out",
            ip_address=get_client_ip(request),
        )
    return RedirectResponse("/admin/login", status_code=303)


# Dashboard ------------------------------------------------------------------


@router.get("", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    admin: AdminIdentity = Depends(require_admin_page),
    admin_gateway: Gateway = Depends(get_admin_gateway),
):
    data = await load_dashboard(admin_gateway)
    return templates.TemplateResponse(
        request, "admin/dashboard.html", {"admin": admin, "dashboard": data}
    )


# Users ----------------------------------------------------------------------


@router.get("/users", response_class=HTMLResponse)
async def users(
    request: Request,
    page: int = PageParam,
    q: Optional[str] = TabParam,
    notice: Optional[str] = TabParam,
    error: Optional[str] = TabParam,
    admin: AdminIdentity = Depends(require_admin_page),
    admin_gateway: Gateway = Depends(get_admin_gateway),
):
    view = await load_users_page(admin_gateway, page=page, query=clean_search_term(q) or "")
    view.notice = notice
    view.error = view.error or error
    return templates.TemplateResponse(
        request, "admin/users.html", {"admin": admin, "view": view}
    )


@router.post("/users/{user_id}/role")
async def users_change_role(
    request: Request,
    user_id: str,
    role: str = Form(...),
    page: int = Form(1),
    q: str = Form(""),
    admin: AdminIdentity = Depends(require_admin_page),
    admin_gateway: Gateway = Depends(get_admin_gateway),
):
    manager = UserRoleManager(admin_gateway)
    try:
        await manager.change_role(user_id, role)
    except ValueError as e:
        return _redirect("/admin/users", page=page, q=q, error=str(e))
    except GatewayError:
        return _redirect("/admin/users", page=page, q=q, error=manager.error)

    log_security_event(
        event_type="admin.user.role_changed",
        message=f"Role of {user_id} set to {role}",
        user_id=admin.user_id,
        ip_address=get_client_ip(request),
        event_category="admin",
        target_user_id=user_id,
        role=role,
    )
    return _redirect("/admin/users", page=page, q=q, notice=manager.notice)


# Contacts -------------------------------------------------------------------


@router.get("/contacts", response_class=HTMLResponse)
async def contacts(
    request: Request,
    status: Optional[str] = TabParam,
    open_id: Optional[str] = Query(None, alias="open", max_length=64),
    error: Optional[str] = TabParam,
    admin: AdminIdentity = Depends(require_admin_page),
    admin_gateway: Gateway = Depends(get_admin_gateway),
):
    """Contact inbox; opening a new query marks it read."""
    view = await load_contacts_page(admin_gateway, status)
    view.error = view.error or error
    selected = None
    if open_id:
        selected = next((c for c in view.contacts if str(c.id) == open_id), None)

    if selected is not None and selected.status == "new":
        try:
            await ContactTriage(admin_gateway).update(
                ContactUpdate(id=selected.id, status="read")
            )
            selected.status = "read"
        except GatewayError as e:
            logger.error(f"Marking contact {selected.id} read failed: {e.message}")
            view.error = UPDATE_CONTACT_FAILED

    return templates.TemplateResponse(
        request,
        "admin/contacts.html",
        {"admin": admin, "view": view, "selected": selected},
    )


@router.post("/contacts/{contact_id}")
async def contacts_update(
    request: Request,
    contact_id: str,
    status: Optional[str] = Form(None),
    admin_notes: Optional[str] = Form(None),
    admin: AdminIdentity = Depends(require_admin_page),
    admin_gateway: Gateway = Depends(get_admin_gateway),
):
    try:
        update = ContactUpdate(
            id=contact_id,
            status=status or None,
            admin_notes=admin_notes,
            replied_at=datetime.now(timezone.utc) if status == "replied" else None,
        )
        await ContactTriage(admin_gateway).update(update)
    except ValueError as e:
        return _redirect("/admin/contacts", open=contact_id, error=str(e))
    except GatewayError as e:
        logger.error(f"Updating contact {contact_id} failed: {e.message}")
        return _redirect("/admin/contacts", open=contact_id, error=UPDATE_CONTACT_FAILED)

    return _redirect("/admin/contacts", open=contact_id)


@router.post("/contacts/{contact_id}/delete")
async def contacts_delete(
    request: Request,
    contact_id: str,
    admin: AdminIdentity = Depends(require_admin_page),
    admin_gateway: Gateway = Depends(get_admin_gateway),
):
    try:
        await ContactTriage(admin_gateway).delete(contact_id)
    except GatewayError as e:
        logger.error(f"Deleting contact {contact_id} failed: {e.message}")
        return _redirect("/admin/contacts", error=DELETE_CONTACT_FAILED)

    log_security_event(
        event_type="admin.contact.deleted",
        message=f"Contact {contact_id} deleted",
        user_id=admin.user_id,
        ip_address=get_client_ip(request),
        event_category="admin",
    )
    return _redirect("/admin/contacts")
