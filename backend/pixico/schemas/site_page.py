from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import List, Optional


class SiteSection(BaseModel):
    title: str = ""
    text: str = ""


class SiteFaq(BaseModel):
    question: str = ""
    answer: str = ""


class SitePageContent(BaseModel):
    sections: List[SiteSection] = []
    faqs: List[SiteFaq] = []


class SitePage(BaseModel):
    slug: str
    title: str = ""
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    content: SitePageContent = Field(default_factory=SitePageContent)
    updated_at: Optional[datetime] = None

    @field_validator("content", mode="before")
    @classmethod
    def null_content(cls, v):
        return {} if v is None else v
