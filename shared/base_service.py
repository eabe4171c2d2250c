"""
Base service class for authorization gate services.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from pydantic import BaseModel, Field
from typing import Dict, Optional
import time
import os

from shared.config import ServiceConfig, get_config
from shared.logging import configure_logging, get_logger, set_request_id, clear_context, request_id_var
from shared.errors import AccessLayerException, ErrorResponse

REQUEST_ID_HEADER = "X-Request-ID"


class HealthResponse(BaseModel):
    """Health check payload."""

    service: str
    status: str
    uptime_seconds: float
    dependencies: Dict[str, str] = Field(default_factory=dict)
    version: str = "1.0.0"
    commit: str = Field(default_factory=lambda: os.getenv("GIT_COMMIT", "unknown"))


class BaseService:
    """FastAPI host shared by gate services.

    Subclasses register their routes in ``__init__`` and override
    ``startup``/``shutdown`` to open and release connections, and
    ``_check_dependencies`` to report them on ``/health``.
    """

    def __init__(self, service_name: str, port: int, config: Optional[ServiceConfig] = None):
        self.service_name = service_name
        self.port = port
        self.config = config or get_config(service_name, port)
        self.logger = get_logger(service_name)
        self._start_time = time.monotonic()

        configure_logging(service_name, self.config.log_level, json_logs=self.config.env != "local")

        self.app = FastAPI(
            title=f"{service_name.title()} Service",
            description=f"Bearer-token authorization gate - {service_name.title()} Service",
            version="1.0.0",
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url="/redoc" if self.config.env == "local" else None,
            lifespan=self._lifespan,
        )
        self._setup_middleware()
        self._setup_routes()
        self._setup_error_handlers()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        await self.startup()
        try:
            yield
        finally:
            await self.shutdown()
            self.logger.info("Service stopped", uptime_seconds=round(self._get_uptime(), 1))

    async def startup(self) -> None:
        """Open connections. Override in subclasses."""

    async def shutdown(self) -> None:
        """Release connections. Override in subclasses."""

    def _setup_middleware(self):
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"] if self.config.env == "local" else [],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        @self.app.middleware("http")
        async def correlate_request(request: Request, call_next):
            """Bind a request ID for the duration of the request."""
            started = time.perf_counter()
            request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))

            try:
                response = await call_next(request)

                # health probes log at debug
                log = self.logger.debug if request.url.path == "/health" else self.logger.info
                log(
                    "HTTP request",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=round((time.perf_counter() - started) * 1000, 2)
                )

                response.headers[REQUEST_ID_HEADER] = request_id
                return response
            finally:
                clear_context()

    def _setup_routes(self):

        @self.app.get("/health", response_model=HealthResponse)
        async def health_check():
            """Report liveness; 503 when a dependency is unavailable."""
            try:
                dependencies = await self._check_dependencies()
            except Exception as e:
                self.logger.error("Health check failed", error=str(e))
                dependencies = {"self": "error"}

            healthy = all(state == "ok" for state in dependencies.values())
            body = HealthResponse(
                service=self.service_name,
                status="ok" if healthy else "degraded",
                uptime_seconds=self._get_uptime(),
                dependencies=dependencies,
            )
            if healthy:
                return body
            return JSONResponse(status_code=503, content=body.model_dump())

    def _setup_error_handlers(self):

        @self.app.exception_handler(AccessLayerException)
        async def access_layer_exception_handler(request: Request, exc: AccessLayerException):
            log = self.logger.error if exc.status_code >= 500 else self.logger.warning
            log("Request rejected", code=exc.code, message=exc.message, details=exc.details)

            headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_response(request_id_var.get()).model_dump(),
                headers=headers
            )

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            self.logger.error("Unhandled exception", error=str(exc), exc_info=True)
            body = ErrorResponse(
                request_id=request.headers.get(REQUEST_ID_HEADER),
                code="INTERNAL_ERROR",
                message="Internal server error",
            )
            return JSONResponse(status_code=500, content=body.model_dump())

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check service dependencies. Override in subclasses."""
        return {}

    def _get_uptime(self) -> float:
        return time.monotonic() - self._start_time

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )
