import logfire
from api.src.utils.logfire_config import ensure_logfire_configured

ensure_logfire_configured(mode="prod", service_name="fieldtrip-letters")
logfire.info("FastAPI index.py starting...")

# --- Logfire Instrumentation ---
# HTTP Client Instrumentation
logfire.instrument_httpx()  # Form client submissions (api.src.fieldtrip.form)

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from api.src.fieldtrip.routes import router as fieldtrip_router


app = FastAPI(docs_url="/api/docs", openapi_url="/api/openapi.json")

logfire.instrument_fastapi(app)


# --- Middleware Definitions ---

class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to catch unhandled exceptions and log them to Logfire.

    Note: logfire.instrument_fastapi(app) already captures most errors, but this
    middleware ensures any exceptions that slip through are properly logged with
    logfire.exception() which triggers Logfire alerts.
    """
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            response = await call_next(request)
            return response
        except Exception:
            logfire.exception(
                "Unhandled exception on {method} {path}",
                path=request.url.path,
                method=request.method,
                client_host=request.client.host if request.client else "unknown",
            )
            return JSONResponse(
                status_code=500,
                content={"error": "Internal Server Error", "detail": "An unexpected error occurred."},
            )


# --- Middleware Registration ---
# Middlewares process requests top-to-bottom, responses bottom-to-top.

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    # Browsers only expose the download filename if the header is listed here
    expose_headers=["Content-Disposition"],
)

app.add_middleware(ErrorHandlingMiddleware)


# Include all routers
app.include_router(fieldtrip_router, prefix="/api")


@app.get("/api/health")
async def health_check():
    return {"status": "healthy"}
