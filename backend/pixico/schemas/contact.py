from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, Literal, Optional
from pixico.schemas.common import RowId

ContactStatus = Literal["new", "read", "replied", "archived"]


class ContactQuery(BaseModel):
    id: RowId
    name: Optional[str] = None
    email: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None
    status: str = "new"
    admin_notes: Optional[str] = None
    replied_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ContactCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    message: str = Field(min_length=1, max_length=5000)
    subject: Optional[str] = Field(default=None, max_length=200)


class ContactUpdate(BaseModel):
    """Partial update; ``id`` is checked by the handler so it can answer 400."""

    id: Optional[RowId] = None
    status: Optional[ContactStatus] = None
    admin_notes: Optional[str] = None
    replied_at: Optional[datetime] = None

    def changes(self) -> Dict[str, Any]:
        """Fields the caller actually supplied with a value."""
        return self.model_dump(
            exclude={"id"}, exclude_unset=True, exclude_none=True, mode="json"
        )
