from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pixico.core.config import settings
from pixico.core.gateway import Gateway, get_gateway
from pixico.core.templating import templates
from pixico.services.metadata import build_manifest, generate_sitemap

router = APIRouter()


@router.get("/sitemap.xml")
async def sitemap(request: Request, gateway: Gateway = Depends(get_gateway)):
    entries = await generate_sitemap(gateway, settings.APP_URL)
    return templates.TemplateResponse(
        request,
        "sitemap.xml",
        {"entries": entries},
        media_type="application/xml",
    )


@router.get("/manifest.webmanifest")
async def manifest():
    return JSONResponse(
        content=build_manifest().model_dump(),
        media_type="application/manifest+json",
    )
