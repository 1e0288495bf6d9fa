from fastapi import APIRouter

from .endpoints import auth, health, locations, loyalty, observability

router = APIRouter()
router.include_router(health.router, tags=["Health"])
router.include_router(auth.router)
router.include_router(loyalty.router)
router.include_router(locations.router)
router.include_router(observability.router)
