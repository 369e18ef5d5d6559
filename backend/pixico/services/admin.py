"""
Admin mutation handlers and the read models behind the admin pages.

All calls go through an elevated gateway; callers are expected to have
passed ``verify_admin`` first.
"""

import asyncio
import logging
from typing import List, Optional, get_args

from pydantic import BaseModel

from pixico.core.gateway import Gateway, GatewayError
from pixico.schemas.admin import (
    ContactsPage,
    Dashboard,
    DashboardStats,
    RecentContact,
    RecentPrompt,
    UsersPage,
)
from pixico.schemas.common import RowId
from pixico.schemas.contact import ContactQuery, ContactUpdate
from pixico.schemas.profile import Profile, Role
from pixico.services.filtering import filter_by_text, select_tab

logger = logging.getLogger(__name__)

USERS_PER_PAGE = 20
RECENT_LIMIT = 5
ROLES = get_args(Role)

ALL_STATUSES = "all"
CONTACT_ID_REQUIRED = "Contact ID required"

# Callers only see these; upstream detail stays in the log
LOAD_CONTACTS_FAILED = "Failed to load contacts"
UPDATE_CONTACT_FAILED = "Failed to update contact"
DELETE_CONTACT_FAILED = "Failed to delete contact"
UPDATE_ROLE_FAILED = "Failed to update user role"


def is_missing_id(value) -> bool:
    """Contact ids arrive as JSON values or query strings; both may be blank."""
    return value is None or value == "" or value == 0


class UserRoleManager:
    """
    Role changes against one loaded page of profiles.

    Local state is only touched after the backend accepted the update. On
    failure the page is left as it was and the error is kept on ``error``.
    """

    def __init__(self, gateway: Gateway, users: Optional[List[Profile]] = None):
        self.gateway = gateway
        self.users: List[Profile] = list(users or [])
        self.error: Optional[str] = None
        self.notice: Optional[str] = None

    async def change_role(self, user_id: str, role: str) -> Profile:
        if role not in ROLES:
            raise ValueError(f"Unknown role '{role}'")

        self.error = None
        try:
            rows = await (
                self.gateway.table("profiles")
                .update({"role": role})
                .eq("id", user_id)
                .execute(model=Profile)
            )
        except GatewayError as e:
            logger.error(f"Role update for {user_id} failed: {e.message}")
            self.error = UPDATE_ROLE_FAILED
            raise

        if not rows:
            self.error = "User not found"
            raise GatewayError(self.error, status_code=404)

        updated = rows[0]
        self.users = [updated if user.id == user_id else user for user in self.users]
        self.notice = f"User role updated to {role}"
        logger.info(f"Role of {user_id} set to {role}")
        return updated


class ContactTriage:
    """List, annotate and delete contact queries."""

    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    async def list(self, status: Optional[str] = None) -> List[ContactQuery]:
        query = self.gateway.table("contact_queries").select("*")
        if status:
            query = query.eq("status", status)
        return await query.order("created_at", desc=True).execute(model=ContactQuery)

    async def update(self, update: ContactUpdate) -> bool:
        """
        Write the supplied fields of ``update``.

        Returns False when there was nothing to write, in which case the
        backend is not called.

        Raises:
            ValueError: No contact id given
            GatewayError: The backend rejected the update
        """
        if is_missing_id(update.id):
            raise ValueError(CONTACT_ID_REQUIRED)

        changes = update.changes()
        if not changes:
            return False

        await (
            self.gateway.table("contact_queries")
            .update(changes)
            .eq("id", update.id)
            .execute()
        )
        logger.info(f"Contact {update.id} updated: {sorted(changes)}")
        return True

    async def delete(self, contact_id: Optional[RowId]) -> None:
        if is_missing_id(contact_id):
            raise ValueError(CONTACT_ID_REQUIRED)

        await self.gateway.table("contact_queries").delete().eq("id", contact_id).execute()
        logger.info(f"Contact {contact_id} deleted")


async def load_users_page(gateway: Gateway, page: int = 1, query: str = "") -> UsersPage:
    page = max(1, page)
    start = (page - 1) * USERS_PER_PAGE
    view = UsersPage(page=page, page_size=USERS_PER_PAGE, query=query)

    try:
        total, users = await asyncio.gather(
            gateway.table("profiles").select("*").count(),
            gateway.table("profiles")
            .select("*")
            .order("created_at", desc=True)
            .range(start, start + USERS_PER_PAGE - 1)
            .execute(model=Profile),
        )
    except GatewayError as e:
        logger.error(f"Loading users failed: {e.message}")
        view.error = "Failed to load users"
        return view

    view.total_count = total
    view.users = filter_by_text(users, query, ("email", "full_name"))
    return view


async def load_contacts_page(gateway: Gateway, status: Optional[str] = None) -> ContactsPage:
    """Whole inbox; the status tab narrows the loaded rows."""
    try:
        contacts = await ContactTriage(gateway).list()
    except GatewayError as e:
        logger.error(f"Loading contacts failed: {e.message}")
        return ContactsPage(status=status, error=LOAD_CONTACTS_FAILED)
    return ContactsPage(
        contacts=select_tab(contacts, status, "status", ALL_STATUSES), status=status
    )


class _ViewCount(BaseModel):
    view_count: Optional[int] = None


async def load_dashboard(gateway: Gateway) -> Dashboard:
    """Headline counts and the newest prompts and contacts, fetched together."""
    try:
        users, prompts, contacts, views, recent_prompts, recent_contacts = await asyncio.gather(
            gateway.table("profiles").select("*").count(),
            gateway.table("prompts").select("*").count(),
            gateway.table("contact_queries").select("*").count(),
            gateway.table("prompts").select("view_count").execute(model=_ViewCount),
            gateway.table("prompts")
            .select("id, title, view_count, created_at")
            .order("created_at", desc=True)
            .limit(RECENT_LIMIT)
            .execute(model=RecentPrompt),
            gateway.table("contact_queries")
            .select("id, name, email, subject, status, created_at")
            .order("created_at", desc=True)
            .limit(RECENT_LIMIT)
            .execute(model=RecentContact),
        )
    except GatewayError as e:
        logger.error(f"Loading dashboard failed: {e.message}")
        return Dashboard(error="Failed to load dashboard")

    return Dashboard(
        stats=DashboardStats(
            total_users=users,
            total_prompts=prompts,
            total_contacts=contacts,
            total_views=sum(row.view_count or 0 for row in views),
        ),
        recent_prompts=recent_prompts,
        recent_contacts=recent_contacts,
    )
