from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backoffice.core.config import settings
import backoffice.models  # noqa: F401  # force model registration

from backoffice.api.errors import register_exception_handlers
from backoffice.api.v1.members import router as members_router
from backoffice.api.v1.teams import router as teams_router


def create_application() -> FastAPI:
    app = FastAPI(title="Back-office API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    @app.get("/")
    def root():
        return {"status": "ok", "service": "backoffice"}

    # Routers
    app.include_router(teams_router, prefix="/api/v1")
    app.include_router(members_router, prefix="/api/v1")

    return app


app = create_application()
