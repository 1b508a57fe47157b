import logging

from fastapi import FastAPI

from src.api.errors import register_exception_handlers
from src.api.routes.routes import router
from src.config import Settings
from src.container import ServiceContainer

logger = logging.getLogger(__name__)


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    app = FastAPI(title="Event Booking Engine")
    app.state.container = container

    @app.on_event("startup")
    def on_startup() -> None:
        if app.state.container is None:
            app.state.container = ServiceContainer(Settings.from_env())
        app.state.container.start()

    @app.on_event("shutdown")
    def on_shutdown() -> None:
        if app.state.container is not None:
            app.state.container.shutdown()

    register_exception_handlers(app)
    app.include_router(router)
    return app


app = create_app()
