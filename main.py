import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from salonhub.core.config import settings
from salonhub.core.exceptions import SalonHubError
from salonhub.api.api_v1.api import router as api_router
from salonhub.api.deps import to_http_exception
from salonhub.db.provider import open_gateway, close_gateway

logging.basicConfig(level=logging.INFO)

app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="SalonHub booking and back-office API"
)

# Set up CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(api_router, prefix="/api/v1")

# Domain errors raised outside an endpoint body (dependencies)
@app.exception_handler(SalonHubError)
async def salonhub_error_handler(request: Request, exc: SalonHubError):
    http_exc = to_http_exception(exc)
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})

# Datastore lifecycle events
@app.on_event("startup")
async def startup_db_client():
    await open_gateway()

@app.on_event("shutdown")
async def shutdown_db_client():
    await close_gateway()

@app.get("/")
async def root():
    return {"message": "Welcome to SalonHub API"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
