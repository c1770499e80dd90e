"""Health check endpoint."""

from fastapi import APIRouter

from chessstats import __version__

router = APIRouter()


@router.get("/")
async def root():
    return {"status": "ok", "service": "chessstats-api", "version": __version__}


@router.get("/health")
async def health():
    return {"status": "healthy"}
