from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Literal

ChangeFrequency = Literal[
    "always", "hourly", "daily", "weekly", "monthly", "yearly", "never"
]


class SitemapEntry(BaseModel):
    url: str
    last_modified: datetime = Field(serialization_alias="lastModified")
    change_frequency: ChangeFrequency = Field(serialization_alias="changeFrequency")
    priority: float = Field(ge=0.0, le=1.0)


class ManifestIcon(BaseModel):
    src: str
    sizes: str
    type: str
    purpose: str = "any"


class ManifestScreenshot(BaseModel):
    src: str
    sizes: str
    type: str


class WebManifest(BaseModel):
    name: str
    short_name: str
    description: str
    start_url: str = "/"
    display: str = "standalone"
    background_color: str
    theme_color: str
    orientation: str = "portrait-primary"
    categories: List[str] = []
    icons: List[ManifestIcon] = []
    screenshots: List[ManifestScreenshot] = []
