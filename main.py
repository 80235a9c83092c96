from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shared.config.database import AsyncSessionLocal, create_tables
from shared.config.settings import SCHEDULER_ENABLED, SERVICE_NAME, STATUS_TICK_SECONDS
from shared.exceptions import register_exception_handlers
from shared.observability import setup_observability
from shared.security import limiter

# IMPORTANT: import models so they register with Base
from services.auth_service import models as auth_models
from services.restaurant_service import models as restaurant_models
from services.order_service import models as order_models
from services.payment_service import models as payment_models
from services.cart_service import models as cart_models

from services.auth_service.router import router as auth_router
from services.restaurant_service.router import router as restaurant_router
from services.cart_service.router import router as cart_router
from services.order_service.router import router as order_router, internal_router as order_internal_router
from services.payment_service.router import router as payment_router
from services.order_service.scheduler import OrderStatusScheduler

app = FastAPI(
    title="Food Fusion API",
    version="1.0.0",
    description="Restaurants, device carts, checkout and time-driven order tracking.",
)

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(app, SERVICE_NAME)

# --- SECURITY SETUP ---
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.scheduler = OrderStatusScheduler(AsyncSessionLocal, interval_seconds=STATUS_TICK_SECONDS)

app.include_router(auth_router)
app.include_router(restaurant_router)
app.include_router(cart_router)
app.include_router(order_internal_router)
app.include_router(order_router)
app.include_router(payment_router)


@app.get("/health", include_in_schema=False)
async def health_check():
    return {
        "service": SERVICE_NAME,
        "status": "running",
        "scheduler": "running" if app.state.scheduler.running else "stopped",
    }


@app.on_event("startup")
async def startup_event():
    await create_tables()
    if SCHEDULER_ENABLED:
        app.state.scheduler.start()


@app.on_event("shutdown")
async def shutdown_event():
    await app.state.scheduler.stop()


if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
