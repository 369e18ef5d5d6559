from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional
from pixico.schemas.common import CountsMixin, RowId
from pixico.schemas.contact import ContactQuery
from pixico.schemas.profile import Profile


class RecentPrompt(CountsMixin):
    id: RowId
    title: Optional[str] = None
    view_count: int = 0
    created_at: Optional[datetime] = None


class RecentContact(BaseModel):
    id: RowId
    name: Optional[str] = None
    email: Optional[str] = None
    subject: Optional[str] = None
    status: str = "new"
    created_at: Optional[datetime] = None


class DashboardStats(BaseModel):
    total_users: int = 0
    total_prompts: int = 0
    total_contacts: int = 0
    total_views: int = 0


class Dashboard(BaseModel):
    stats: DashboardStats = Field(default_factory=DashboardStats)
    recent_prompts: List[RecentPrompt] = Field(default_factory=list)
    recent_contacts: List[RecentContact] = Field(default_factory=list)
    error: Optional[str] = None


class UsersPage(BaseModel):
    """One page of profiles plus the text filter applied on top of it."""

    users: List[Profile] = Field(default_factory=list)
    query: str = ""
    page: int = 1
    page_size: int = 20
    total_count: int = 0
    error: Optional[str] = None
    notice: Optional[str] = None

    @property
    def total_pages(self) -> int:
        return max(1, -(-self.total_count // self.page_size))

    @property
    def admins_on_page(self) -> int:
        return sum(1 for user in self.users if user.is_admin)


class ContactsPage(BaseModel):
    contacts: List[ContactQuery] = Field(default_factory=list)
    status: Optional[str] = None
    error: Optional[str] = None
