from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from crm_admin.core.config import settings
from crm_admin.api import admin
from crm_admin.api.admin import ControllerRegistry
from crm_admin.core.logger import setup_logging, logger
from contextlib import asynccontextmanager
from datetime import datetime

setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"🚀 Starting {settings.PROJECT_NAME} (records from {settings.RECORD_API_BASE_URL})")
    yield
    # Shutdown
    logger.info("🛑 Shutting down console")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan
)
app.state.registry = ControllerRegistry()

# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"🔥 UNHANDLED ERROR: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={"message": "Internal Server Error", "detail": "An unexpected error occurred. Please contact support."}
    )

# Include routers
app.include_router(admin.router, prefix=settings.API_ADMIN_STR, tags=["Admin"])

@app.get("/")
async def health_check():
    return {'status': 'active', 'time': datetime.now().isoformat()}

@app.get("/health")
async def health_check_std():
    return {"status": "ok", "environment": settings.ENVIRONMENT, "timestamp": datetime.now().isoformat()}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("crm_admin.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
