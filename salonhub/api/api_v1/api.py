from fastapi import APIRouter
from salonhub.api.api_v1.endpoints import auth, public, availability, bookings, salon, services, schedule, super_admin

router = APIRouter()

# Include all routers
router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(public.router, prefix="/public", tags=["Public"])
router.include_router(availability.router, prefix="/availability", tags=["Availability"])
router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])
router.include_router(salon.router, prefix="/salon", tags=["Salon"])
router.include_router(services.router, prefix="/services", tags=["Services"])
router.include_router(schedule.router, prefix="/schedule", tags=["Schedule"])
router.include_router(super_admin.router, prefix="/super-admin", tags=["Super Admin"])
