"""
Ingest Server

HTTP push alternative to the streaming event bus. Supervisors (or a
bridge script) POST process:event messages; each is adapted into a
RawEvent and handed to the observer.
"""

from typing import Any, Union
from datetime import datetime
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ValidationError

from ..dispatcher import NotificationDispatcher
from ..observer import LifecycleObserver
from ..schemas.events import RawEvent

logger = structlog.get_logger(__name__)


class HealthResponse(BaseModel):
    """Liveness payload"""
    status: str
    service: str
    version: str
    timestamp: str


class IngestResponse(BaseModel):
    """Result of an ingest call"""
    received: int
    accepted: int


class IngestServer:
    """
    FastAPI server feeding the lifecycle observer.

    Routes:
    - POST /events   one bus message or a list of them
    - GET /health    liveness
    - GET /ready     readiness (dispatcher running)
    """

    def __init__(
        self,
        observer: LifecycleObserver,
        dispatcher: NotificationDispatcher,
        service_name: str = "pm2-alerts",
        version: str = "1.0.0",
    ):
        self.observer = observer
        self.dispatcher = dispatcher
        self.service_name = service_name
        self.version = version

        self._ready = False
        self.app = self._create_app()

    def _create_app(self) -> FastAPI:
        """Build the FastAPI app"""

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            """Start the dispatcher; on exit cancel timers and stop it"""
            await self.dispatcher.start()
            logger.info("Ingest server starting", service=self.service_name)
            self._ready = True
            yield
            self._ready = False
            self.observer.close()
            await self.dispatcher.stop()
            logger.info("Ingest server shutting down")

        app = FastAPI(
            title=f"{self.service_name} ingest",
            version=self.version,
            lifespan=lifespan,
        )

        self._register_routes(app)
        return app

    def _register_routes(self, app: FastAPI) -> None:
        """Attach ingest and health routes"""

        @app.get("/health", response_model=HealthResponse)
        async def health_check():
            """Liveness"""
            return HealthResponse(
                status="healthy",
                service=self.service_name,
                version=self.version,
                timestamp=datetime.utcnow().isoformat(),
            )

        @app.get("/ready")
        async def readiness_check():
            """Ready once the dispatcher worker runs"""
            if not self._ready:
                raise HTTPException(status_code=503, detail="Not ready")
            return {"status": "ready"}

        @app.post("/events", response_model=IngestResponse)
        async def ingest_events(body: Union[dict[str, Any], list[dict[str, Any]]]):
            """Ingest one or more process:event messages"""
            messages = body if isinstance(body, list) else [body]

            try:
                events = [RawEvent.from_bus_payload(message) for message in messages]
            except ValidationError as e:
                logger.warning("Rejected malformed event batch", error=str(e))
                raise HTTPException(status_code=422, detail="Malformed event")

            accepted = sum(1 for event in events if self.observer.ingest(event))

            logger.debug("Ingested events", received=len(events), accepted=accepted)
            return IngestResponse(received=len(events), accepted=accepted)
