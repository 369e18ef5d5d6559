from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from pixico.api.validation import SlugParam
from pixico.core.gateway import Gateway, get_gateway
from pixico.core.templating import templates
from pixico.services.page_loaders import load_site_page

router = APIRouter()


# Registered last: matches any single-segment path not claimed by another router
@router.get("/{slug}", response_class=HTMLResponse)
async def site_page(
    request: Request, slug: str = SlugParam, gateway: Gateway = Depends(get_gateway)
):
    page = await load_site_page(gateway, slug)
    return templates.TemplateResponse(request, "site_page.html", {"page": page})
