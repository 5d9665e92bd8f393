import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
#Handles Cross-Origin Resource Sharing
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, settings
from .database import create_context
from .gateway import init_db, subscribe_to_changes
from .routers import patients_router

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    app_settings = app_settings or settings

    #Engine (or fallback) is chosen once when the app starts
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        context = create_context(app_settings)
        await init_db(context)
        app.state.db = context
        app.state.changes = await subscribe_to_changes(context)
        try:
            yield
        finally:
            app.state.changes.close()
            context.close()

    # Initialize FastAPI app
    app = FastAPI(
        title="MediTrack API",
        description="Local-first patient registry with an in-memory fallback",
        version="1.0.0",
        lifespan=lifespan
    )

    # Configure CORS(Cross-Origin Resource Sharing)
    #allows the UI to access this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(patients_router)

    @app.get("/")
    async def root():
        return {"message": "MediTrack API is running"}

    @app.get("/health")
    async def health_check():
        #Reports which backend is serving requests
        return {"status": "healthy", "database": app.state.db.mode.value}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000)
