from pydantic import BaseModel
from datetime import datetime
from typing import Literal, Optional

Role = Literal["user", "admin"]


class Profile(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Role = "user"
    created_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class RoleUpdate(BaseModel):
    role: Role
