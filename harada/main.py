# harada/main.py
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import exc as sa_exc
from harada.config import settings
from harada.database import engine, Base
from harada.core.errors import HaradaError
from harada.models.user import User
from harada.models.chart import Chart, ChartCell
from harada.models.cycle import WeeklyCycle, WeeklyAction
from harada.routers import auth, chart, cycle, calendar

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Harada Planner", version="1.0")

# Include Routers
app.include_router(auth.router)
app.include_router(chart.router)
app.include_router(cycle.router)
app.include_router(calendar.router)


@app.exception_handler(HaradaError)
async def harada_error_handler(request: Request, exc: HaradaError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, type(exc).__name__, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Create DB Tables (for local use; run Alembic migrations in prod)
@app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        try:
            await conn.run_sync(Base.metadata.create_all)
        except sa_exc.IntegrityError as e:
            msg = str(getattr(e, "orig", e))
            if "already exists" in msg:
                logger.warning("Ignored duplicate DDL error during create_all: %s", msg)
            else:
                raise

@app.get("/")
def read_root():
    return {"message": "Welcome to Harada Planner"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("harada.main:app", host="0.0.0.0", port=8000, reload=True)
