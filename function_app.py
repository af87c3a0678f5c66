from contextlib import asynccontextmanager
from typing import Optional

import azure.functions as func
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from azure.cosmos import exceptions as cosmos_exceptions
from starlette.middleware.sessions import SessionMiddleware

from crm_panel.config import Settings
from crm_panel.exceptions import LoginRequiredError, PartialBatchError, ValidationError
from crm_panel.logging_config import logger, set_log_level, tracer
from crm_panel.routes.auth_route import router as auth_router
from crm_panel.routes.catalog_route import router as catalog_router
from crm_panel.routes.dashboard_route import router as dashboard_router
from crm_panel.routes.inventory_route import router as inventory_router
from crm_panel.routes.product_route import router as product_router


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the panel API. Settings are read from the environment when not
    given, which fails fast if required configuration is missing.
    """
    settings = settings or Settings.from_env()
    set_log_level(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if app.state.backend is not None:
            await app.state.backend.close()
            app.state.backend = None

    app = FastAPI(
        title="CRM Panel API",
        version="1.0.0",
        openapi_url="/api/openapi.json",
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.backend = None

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.session_cookie,
        same_site="lax",
        https_only=settings.session_https_only,
    )

    @app.exception_handler(LoginRequiredError)
    async def handle_login_required(request: Request, exc: LoginRequiredError):
        logger.info("Redirecting anonymous request to login", extra={"path": request.url.path})
        return RedirectResponse(settings.login_path, status_code=status.HTTP_303_SEE_OTHER)

    @app.exception_handler(PartialBatchError)
    async def handle_partial_batch(request: Request, exc: PartialBatchError):
        logger.error(
            "Inventory batch partially applied",
            extra={
                "applied": exc.applied,
                "failed_product_id": exc.failed_product_id,
                "path": request.url.path,
            },
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": str(exc), "applied": exc.applied},
        )

    @app.exception_handler(cosmos_exceptions.CosmosHttpResponseError)
    async def handle_cosmos_http_error(
        request: Request, exc: cosmos_exceptions.CosmosHttpResponseError
    ):
        with tracer.start_as_current_span("handle_cosmos_error") as span:
            span.set_attribute("error", True)
            span.set_attribute("error.type", "cosmos_http_error")
            span.set_attribute("error.status_code", exc.status_code)

            if exc.status_code in (401, 403):
                logger.warning(
                    "Cosmos DB authentication error",
                    extra={"status_code": exc.status_code, "path": request.url.path}
                )
                return JSONResponse(
                    status_code=exc.status_code,
                    content={
                        "detail": "Unauthorized" if exc.status_code == 401 else "Forbidden"
                    },
                )

            logger.error(
                "Cosmos DB HTTP error",
                extra={
                    "status_code": exc.status_code,
                    "error_message": str(exc),
                    "path": request.url.path
                }
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"detail": str(exc)},
            )

    @app.exception_handler(ValidationError)
    @app.exception_handler(ValueError)
    async def handle_value_error(_: Request, exc: Exception):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.get("/health", tags=["health"])
    async def health_check():
        return {"status": "ok"}

    app.include_router(auth_router)
    app.include_router(dashboard_router)
    app.include_router(inventory_router)
    app.include_router(product_router)
    app.include_router(catalog_router)

    return app


app = create_app()

function_app = func.FunctionApp()


@function_app.route(route="{*route}", auth_level=func.AuthLevel.ANONYMOUS)
async def main(req: func.HttpRequest) -> func.HttpResponse:
    """Azure Functions entry-point routed through FastAPI."""
    with tracer.start_as_current_span("process_request") as span:
        span.set_attribute("http.method", req.method)
        span.set_attribute("http.url", str(req.url))
        span.set_attribute("http.route", req.route_params.get('route', ''))

        logger.info(
            f"Processing {req.method} request",
            extra={
                "method": req.method,
                "path": str(req.url),
                "route": req.route_params.get('route', '')
            }
        )

        try:
            response = await func.AsgiMiddleware(app).handle_async(req)
            span.set_attribute("http.status_code", response.status_code)
            return response
        except Exception as e:
            span.set_attribute("error", True)
            span.set_attribute("error.type", type(e).__name__)
            span.set_attribute("error.message", str(e))

            logger.error(
                f"Error processing request: {str(e)}",
                extra={"error_type": type(e).__name__}
            )
            return func.HttpResponse(
                body=str(e),
                status_code=500
            )
