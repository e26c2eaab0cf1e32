import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.middleware import SlowAPIMiddleware

from .config import get_settings
from .database import Base, SessionLocal, engine
from .routers import auth, users, categories, tools, bookings
from .error_handlers import register_exception_handlers
from .seed import seed_categories

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# -----------------------------------------
# Create DB tables and reference data
# -----------------------------------------
Base.metadata.create_all(bind=engine)

if settings.SEED_CATEGORIES_ON_STARTUP:
    _db = SessionLocal()
    try:
        seed_categories(_db)
    finally:
        _db.close()

# -----------------------------------------
# Rate limiter, per client IP
# -----------------------------------------
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED,
)

app = FastAPI(
    title="Toolshare Marketplace API",
    version="1.0.0",
    description="Peer-to-peer tool rentals: listings, availability and bookings.",
)

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


# -----------------------------------------
# Routers (normal + versioned /api/v1)
# -----------------------------------------
for _router in (auth.router, users.router, categories.router, tools.router, bookings.router):
    app.include_router(_router)
    app.include_router(_router, prefix="/api/v1")


@app.get("/health", tags=["health"])
def health_check():
    return {"status": "ok"}
