from pixico.schemas.category import Category, CategoryRef
from pixico.schemas.prompt import AiModel, ModelRef, Prompt, TagRef
from pixico.schemas.blog import Blog
from pixico.schemas.profile import Profile, RoleUpdate
from pixico.schemas.contact import ContactQuery, ContactCreate, ContactUpdate
from pixico.schemas.site_page import SitePage
from pixico.schemas.metadata import SitemapEntry, WebManifest
from pixico.schemas.support import SupportRequest, SupportResponse

__all__ = [
    "Category",
    "CategoryRef",
    "AiModel",
    "ModelRef",
    "Prompt",
    "TagRef",
    "Blog",
    "Profile",
    "RoleUpdate",
    "ContactQuery",
    "ContactCreate",
    "ContactUpdate",
    "SitePage",
    "SitemapEntry",
    "WebManifest",
    "SupportRequest",
    "SupportResponse",
]
