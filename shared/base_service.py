"""
Base service class for Timberline services.

Subclasses add their routes and override ``start``/``stop`` (run by the app
lifespan) and ``_check_dependencies`` (reported by ``/health``).
"""

import os
import time
from contextlib import asynccontextmanager
from typing import Dict

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST

from shared.config import get_config
from shared.errors import TimberlineException, ErrorResponse
from shared.logging import (
    configure_logging, get_logger, bind_request_context, current_request_id, clear_context
)
from shared.metrics import get_metrics_collector


SERVICE_VERSION = "1.0.0"


def route_template(request: Request) -> str:
    """Matched route path, so ids in URLs don't become metric labels."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, service_name: str, port: int):
        self.service_name = service_name
        self.config = get_config(service_name, port)
        configure_logging(service_name, self.config.log_level, self.config.env)

        self.logger = get_logger(service_name)
        self.metrics = get_metrics_collector(service_name)
        self._start_time = time.time()

        self.app = FastAPI(
            title=f"{service_name.title()} Service",
            description=f"Timberline - {service_name.title()} Service",
            version=SERVICE_VERSION,
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url="/redoc" if self.config.env == "local" else None,
            lifespan=self._lifespan,
        )
        self._setup_middleware()
        self._setup_error_handlers()
        self._setup_common_routes()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        await self.start()
        try:
            yield
        finally:
            await self.stop()

    def _setup_middleware(self):
        """Set up CORS and request context middleware."""

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"] if self.config.env == "local" else [],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        @self.app.middleware("http")
        async def request_context(request: Request, call_next):
            clear_context()
            request_id = bind_request_context(
                request.headers.get("x-request-id"),
                request.headers.get("x-user-id")
            )
            start_time = time.time()

            response = await call_next(request)

            duration = time.time() - start_time
            endpoint = route_template(request)
            response.headers["x-request-id"] = request_id

            self.metrics.record_http_request(
                method=request.method,
                endpoint=endpoint,
                status_code=response.status_code,
                duration=duration
            )
            self.logger.info(
                "HTTP request",
                method=request.method,
                endpoint=endpoint,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2)
            )
            return response

    def _error_response(self, status_code: int, error: ErrorResponse) -> JSONResponse:
        self.metrics.record_error(error.code)
        return JSONResponse(status_code=status_code, content=error.model_dump())

    def _setup_error_handlers(self):
        """Map exceptions to ErrorResponse bodies."""

        @self.app.exception_handler(TimberlineException)
        async def timberline_exception_handler(request: Request, exc: TimberlineException):
            log = self.logger.error if exc.status_code >= 500 else self.logger.warning
            log("Request failed", code=exc.code, message=exc.message, details=exc.details)
            return self._error_response(exc.status_code, exc.to_response(current_request_id()))

        @self.app.exception_handler(RequestValidationError)
        async def request_validation_handler(request: Request, exc: RequestValidationError):
            errors = [
                {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
                for error in exc.errors()
            ]
            self.logger.warning("Invalid request", errors=errors)
            return self._error_response(422, ErrorResponse(
                request_id=current_request_id(),
                code="VALIDATION_ERROR",
                message="Request validation failed",
                details={"errors": errors}
            ))

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            self.logger.error("Unhandled exception", error=str(exc), exc_info=True)
            return self._error_response(500, ErrorResponse(
                request_id=current_request_id(),
                code="INTERNAL_ERROR",
                message="Internal server error"
            ))

    def _setup_common_routes(self):
        """Set up health and metrics routes."""

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint; 503 when a dependency is down."""
            try:
                dependencies = await self._check_dependencies()
            except Exception as e:
                self.logger.error("Health check failed", error=str(e))
                dependencies = {"check": "error"}

            healthy = all(state == "ok" for state in dependencies.values())
            status = "ok" if healthy else "degraded"
            self.metrics.record_health_check(status)

            return JSONResponse(
                status_code=200 if healthy else 503,
                content={
                    "service": self.service_name,
                    "status": status,
                    "uptime_seconds": round(time.time() - self._start_time, 3),
                    "dependencies": dependencies,
                    "version": SERVICE_VERSION,
                    "commit": os.getenv("GIT_COMMIT", "unknown")
                }
            )

        @self.app.get("/metrics")
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            return Response(content=self.metrics.export(), media_type=CONTENT_TYPE_LATEST)

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check service dependencies. Override in subclasses."""
        return {}

    async def start(self):
        """Start service components. Override in subclasses."""

    async def stop(self):
        """Stop service components. Override in subclasses."""

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )
