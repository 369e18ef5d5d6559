from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from pydantic import ValidationError
from pixico.core.gateway import Gateway, get_gateway
from pixico.core.templating import templates
from pixico.schemas.contact import ContactCreate
from pixico.schemas.views import ContactPage, PageMeta
from pixico.services.page_loaders import load_navigation, submit_contact
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

CONTACT_META = PageMeta(
    title="Contact Us | Pixico",
    description="Questions, feedback or partnership ideas? Get in touch with the Pixico team.",
)

FIELD_LABELS = {
    "name": "Name",
    "email": "Email",
    "subject": "Subject",
    "message": "Message",
}


def _form_errors(error: ValidationError) -> list:
    messages = []
    for item in error.errors():
        field = item["loc"][0] if item["loc"] else ""
        label = FIELD_LABELS.get(field, str(field).title())
        messages.append(f"{label}: {item['msg']}")
    return messages


@router.get("", response_class=HTMLResponse)
async def contact_form(request: Request, gateway: Gateway = Depends(get_gateway)):
    nav = await load_navigation(gateway)
    page = ContactPage(nav=nav, meta=CONTACT_META)
    return templates.TemplateResponse(request, "contact.html", {"page": page, "form": {}})


@router.post("", response_class=HTMLResponse)
async def contact_submit(request: Request, gateway: Gateway = Depends(get_gateway)):
    """Store a contact message; invalid input re-renders the form without a backend write."""
    form = {key: str(value).strip() for key, value in (await request.form()).items()}
    form = {key: value for key, value in form.items() if value}
    nav = await load_navigation(gateway)
    page = ContactPage(nav=nav, meta=CONTACT_META)

    try:
        contact = ContactCreate.model_validate(form)
    except ValidationError as e:
        page.submit_status = "error"
        page.errors = _form_errors(e)
        return templates.TemplateResponse(
            request, "contact.html", {"page": page, "form": form}, status_code=400
        )

    if await submit_contact(gateway, contact):
        page.submit_status = "success"
        form = {}
    else:
        page.submit_status = "error"
        page.errors = ["Something went wrong. Please try again later."]

    return templates.TemplateResponse(request, "contact.html", {"page": page, "form": form})
