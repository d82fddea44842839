from fastapi import APIRouter

from . import auth, edit, generate, health, intake, scrape, sites

router = APIRouter()
router.include_router(health.router)
router.include_router(auth.router)
router.include_router(intake.router)
router.include_router(scrape.router)
router.include_router(generate.router)
router.include_router(edit.router)
router.include_router(sites.router)
