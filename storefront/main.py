import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from storefront import __version__
from storefront.shared.config.database import create_tables
from storefront.shared.config.settings import CORS_ORIGINS, SERVICE_NAME
from storefront.shared.errors import register_error_handlers
from storefront.shared.observability import setup_observability
from storefront.shared.security import limiter

from storefront.services.auth_service.router import router as auth_router
from storefront.services.user_service.router import router as user_router
from storefront.services.product_service.router import router as product_router
from storefront.services.order_service.router import router as order_router
from storefront.services.payment_service.router import router as payment_router
from storefront.services.admin_service.router import router as admin_router

app = FastAPI(title="Storefront API", version=__version__)

setup_observability(app, SERVICE_NAME)
register_error_handlers(app)

# Rate limiting (login, OTP)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    await create_tables()


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "OK", "service": SERVICE_NAME, "version": __version__}


app.include_router(auth_router)
app.include_router(user_router)
app.include_router(product_router)
app.include_router(order_router)
app.include_router(payment_router)
app.include_router(admin_router)


def run():
    uvicorn.run("storefront.main:app", host="0.0.0.0", port=8000)
