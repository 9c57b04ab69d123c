from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import get_settings
from app.database import init_db
from app.rate_limit import limiter
from app.redis_client import close_redis
from app.accounts.router import router as accounts_router
from app.accounts.admin_router import router as accounts_admin_router
from app.connections.router import router as connections_router
from app.connections.admin_router import router as connections_admin_router
from app.policies.router import router as plans_router
from app.policies.admin_router import router as settings_admin_router
from app.profiles.router import router as profiles_router
from shared.middleware.request_id import request_id_middleware
from shared.middleware.error_handler import error_envelope_middleware, http_exception_handler


# ── OpenAPI metadata ──────────────────────────────────────────────────────────

_DESCRIPTION = """
## mNikah Connections Service

Owns the consent protocol between two accounts and what each can see of the other:

* **Connection requests** — follow, chat, photo and merged follow+chat requests; accept,
  reject, withdraw and disconnect. Accepting a follow/chat request opens a conversation and
  records a mutual follow in both directions.
* **Daily quota** — free and premium request limits, reset at midnight UTC. Photo requests
  are exempt.
* **Profiles** — every profile view and discovery-feed card is resolved through blocks,
  connection state, profile visibility, the viewer's plan and the admin display policy.
* **Blocks and feed rejections** — a block removes every request between the pair; a feed
  rejection only hides an account from discovery.

### Authentication
All protected endpoints require:
```
Authorization: Bearer <access_token>
```
Admin endpoints additionally require an administrator account.

### Error shape
All errors return a consistent JSON envelope:
```json
{ "error": { "code": "...", "message": "...", "details": {} }, "request_id": "..." }
```
`details` is present only for structured errors such as the daily request limit.

### Rate limits
`429 Too Many Requests` is returned when the daily request quota is exhausted (with the
limit in `details`) or when the per-minute submission limit is exceeded.
"""

_TAGS_METADATA = [
    {
        "name": "connections",
        "description": (
            "Submit, answer, withdraw and list connection requests; read today's quota; "
            "remove a connection."
        ),
    },
    {
        "name": "profiles",
        "description": (
            "View a profile or browse the discovery feed. Hidden fields are omitted from "
            "the response body."
        ),
    },
    {
        "name": "accounts",
        "description": "Own account, profile edits, visibility, blocks and feed rejections.",
    },
    {
        "name": "plans",
        "description": "Active premium plans with their request limits and capabilities.",
    },
    {
        "name": "admin-connections",
        "description": "**Admin only.** System-wide overview of pending requests.",
    },
    {
        "name": "admin-accounts",
        "description": "**Admin only.** Approve or reject profile edits; restore feed rejections.",
    },
    {
        "name": "admin-settings",
        "description": "**Admin only.** Read and update the global display policy.",
    },
]


# ── Health schema ─────────────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str
    service: str


# ── App factory ───────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    init_db(settings.connections_database_url)
    yield
    await close_redis()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="mNikah Connections Service",
        version="1.0.0",
        description=_DESCRIPTION,
        openapi_tags=_TAGS_METADATA,
        license_info={
            "name": "Proprietary",
        },
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Attach rate limiter state before middleware
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    # Route-level HTTPExceptions are caught by FastAPI before any http middleware
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # Middleware is applied in reverse-registration order (last added = outermost).
    # CORS must be outermost so ALL responses (including 429s) carry CORS headers.
    app.add_middleware(SlowAPIMiddleware)
    app.middleware("http")(error_envelope_middleware)
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    app.include_router(connections_router, prefix="/api/v1")
    app.include_router(connections_admin_router, prefix="/api/v1")
    app.include_router(profiles_router, prefix="/api/v1")
    app.include_router(accounts_router, prefix="/api/v1")
    app.include_router(accounts_admin_router, prefix="/api/v1")
    app.include_router(plans_router, prefix="/api/v1")
    app.include_router(settings_admin_router, prefix="/api/v1")

    @app.get("/health", response_model=HealthResponse, tags=["health"], include_in_schema=True)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service="connections")

    return app


app = create_app()
