"""
Course Loyalty API - HTTP bridge for a backend service to the Sui badge contract.

Provides REST endpoints for:
- Creating badges (POST /api/create-badge)
- Updating badge progress (POST /api/update-progress)
- Reading badges (POST /api/get-badge)
- Balance lookups (POST /api/get-balance)
- Wallet generation (POST /api/generate-wallet)
- Connection checks (GET /api/test)
- Health checks (GET /health, GET /api/hello)
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, Callable, TypeVar

import structlog
import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .auth import verify_api_key
from .config import Settings, get_settings
from .cors import cors_middleware
from .keys import SuiKeypair
from .models import (
    BadgeData,
    BalanceData,
    ConnectionData,
    ConnectionResponse,
    CreateBadgeData,
    CreateBadgeRequest,
    CreateBadgeResponse,
    ErrorResponse,
    GenerateWalletResponse,
    GetBadgeRequest,
    GetBadgeResponse,
    GetBalanceRequest,
    GetBalanceResponse,
    HealthResponse,
    HelloResponse,
    UpdateProgressData,
    UpdateProgressRequest,
    UpdateProgressResponse,
    WalletData,
    describe_validation_error,
)
from .rpc import SuiRPC, SuiRPCConfig, get_fullnode_url
from .sui import BADGE_TYPE_MARKER, LoyaltyClientConfig, SuiLoyaltyClient, mist_to_sui

# Configure logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger()

INTERNAL_ERROR = "Internal server error"

ClientFactory = Callable[[], SuiLoyaltyClient]
RPCFactory = Callable[[], SuiRPC]
RequestModel = TypeVar("RequestModel", bound=BaseModel)


def utc_timestamp() -> str:
    """Current time as ISO-8601 UTC with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ============================================================================
# Dependencies
# ============================================================================


def get_client_factory(settings: Settings = Depends(get_settings)) -> ClientFactory:
    """
    Provide a builder for the badge client.

    The client is built inside the handler, after request validation, so a
    missing SUI_PRIVATE_KEY/PACKAGE_ID/ADMIN_CAP_ID surfaces as a 500 only for
    otherwise valid requests.
    """

    def build() -> SuiLoyaltyClient:
        return SuiLoyaltyClient(LoyaltyClientConfig.from_settings(settings))

    return build


def get_rpc_factory(settings: Settings = Depends(get_settings)) -> RPCFactory:
    """Provide a builder for a bare fullnode client (no signing key needed)."""

    def build() -> SuiRPC:
        return SuiRPC(
            SuiRPCConfig(
                url=settings.sui_rpc_url or get_fullnode_url(settings.sui_network),
                timeout=settings.sui_rpc_timeout,
            )
        )

    return build


async def parse_body(request: Request, model: type[RequestModel]) -> RequestModel:
    """Parse a JSON body into a request model, raising 400 on bad input."""
    raw = await request.body()
    try:
        payload = await request.json() if raw.strip() else {}
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")

    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")

    try:
        return model.model_validate(payload)
    except ValidationError as e:
        message = describe_validation_error(e)
        logger.warning("Rejected request body", path=request.url.path, error=message)
        raise HTTPException(status_code=400, detail=message)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    settings = get_settings()

    logger.info(
        "API started",
        version=__version__,
        host=settings.host,
        port=settings.port,
        network=settings.sui_network,
        sui_rpc=settings.sui_rpc_url or get_fullnode_url(settings.sui_network),
    )

    yield

    logger.info("API stopped")


# Create FastAPI app
app = FastAPI(
    title="Course Loyalty API",
    description="HTTP bridge for minting and updating course badges on Sui",
    version=__version__,
    lifespan=lifespan,
)

app.middleware("http")(cors_middleware)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors (400/401/404/405) in the response envelope."""
    headers = dict(exc.headers or {})
    if exc.status_code == 405:
        allowed = headers.get("Allow")
        error = f"Method not allowed. Use {allowed}." if allowed else "Method not allowed."
    else:
        error = str(exc.detail)

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=error).model_dump(),
        headers=headers or None,
    )


# ============================================================================
# Health Check
# ============================================================================


@app.get("/api/hello", response_model=HelloResponse)
async def hello() -> HelloResponse:
    """Unauthenticated liveness probe."""
    return HelloResponse(message="Hello from the Course Loyalty API!", timestamp=utc_timestamp())


@app.get("/health", response_model=HealthResponse)
async def health_check(
    settings: Settings = Depends(get_settings),
    rpc_factory: RPCFactory = Depends(get_rpc_factory),
) -> HealthResponse:
    """
    Check API health and fullnode connectivity.
    """
    async with rpc_factory() as rpc:
        sui_ok = await rpc.check_connectivity()

    return HealthResponse(
        status="ok" if sui_ok else "degraded",
        version=__version__,
        network=settings.sui_network,
        sui_rpc=sui_ok,
        contracts={
            "package_id": settings.package_id,
            "admin_cap_id": settings.admin_cap_id,
        },
    )


# ============================================================================
# Badges
# ============================================================================


@app.post(
    "/api/create-badge",
    response_model=CreateBadgeResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(verify_api_key)],
)
async def create_badge(
    request: Request,
    response: Response,
    client_factory: ClientFactory = Depends(get_client_factory),
) -> CreateBadgeResponse:
    """
    Mint a Badge for a student.

    Calls online_course_loyalty::create_badge and returns the new object ID.
    """
    body = await parse_body(request, CreateBadgeRequest)

    try:
        logger.info(
            "Creating badge",
            student_name=body.student_name,
            course_id=body.course_id,
            student_address=body.student_address,
        )
        async with client_factory() as client:
            result = await client.create_badge(
                body.student_name, body.course_id, body.student_address
            )

        if not result.success:
            response.status_code = 500
            return CreateBadgeResponse(
                success=False,
                error=result.error or "Failed to create badge",
            )

        return CreateBadgeResponse(
            success=True,
            data=CreateBadgeData(
                badge_id=result.badge_id,
                digest=result.digest,
                student_name=body.student_name,
                course_id=body.course_id,
                student_address=body.student_address,
            ),
        )

    except Exception as e:
        logger.error("Error in create-badge handler", error=str(e))
        response.status_code = 500
        return CreateBadgeResponse(success=False, error=str(e) or INTERNAL_ERROR)


@app.post(
    "/api/update-progress",
    response_model=UpdateProgressResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(verify_api_key)],
)
async def update_progress(
    request: Request,
    response: Response,
    client_factory: ClientFactory = Depends(get_client_factory),
) -> UpdateProgressResponse:
    """
    Set the progress percentage of an existing Badge.
    """
    body = await parse_body(request, UpdateProgressRequest)

    try:
        logger.info("Updating progress", badge_id=body.badge_id, progress=body.progress)
        async with client_factory() as client:
            result = await client.update_progress(body.badge_id, body.progress)

        if not result.success:
            response.status_code = 500
            return UpdateProgressResponse(
                success=False,
                error=result.error or "Failed to update progress",
            )

        return UpdateProgressResponse(
            success=True,
            data=UpdateProgressData(
                badge_id=body.badge_id,
                progress=body.progress,
                digest=result.digest,
            ),
        )

    except Exception as e:
        logger.error("Error in update-progress handler", error=str(e), badge_id=body.badge_id)
        response.status_code = 500
        return UpdateProgressResponse(success=False, error=str(e) or INTERNAL_ERROR)


@app.post(
    "/api/get-badge",
    response_model=GetBadgeResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(verify_api_key)],
)
async def get_badge(
    request: Request,
    response: Response,
    client_factory: ClientFactory = Depends(get_client_factory),
) -> GetBadgeResponse:
    """
    Read a Badge object with its fields and owner.
    """
    body = await parse_body(request, GetBadgeRequest)

    try:
        # Reads raise instead of returning a TxResult
        async with client_factory() as client:
            result = await client.get_badge(body.badge_id)

        data = result.get("data") or {}
        content = data.get("content") or {}
        object_type = data.get("type") or content.get("type")
        if not data or BADGE_TYPE_MARKER not in (object_type or ""):
            logger.warning("Badge not found", badge_id=body.badge_id, error=result.get("error"))
            response.status_code = 404
            return GetBadgeResponse(success=False, error=f"Badge not found: {body.badge_id}")

        return GetBadgeResponse(
            success=True,
            data=BadgeData(
                badge_id=data.get("objectId", body.badge_id),
                object_type=object_type,
                owner=data.get("owner"),
                fields=content.get("fields") or {},
                version=str(data["version"]) if data.get("version") is not None else None,
                digest=data.get("digest"),
            ),
        )

    except Exception as e:
        logger.error("Error in get-badge handler", error=str(e), badge_id=body.badge_id)
        response.status_code = 500
        return GetBadgeResponse(success=False, error=str(e) or INTERNAL_ERROR)


# ============================================================================
# Accounts
# ============================================================================


@app.post(
    "/api/get-balance",
    response_model=GetBalanceResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(verify_api_key)],
)
async def get_balance(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings),
    rpc_factory: RPCFactory = Depends(get_rpc_factory),
) -> GetBalanceResponse:
    """
    Look up the SUI balance of any address.
    """
    body = await parse_body(request, GetBalanceRequest)

    try:
        async with rpc_factory() as rpc:
            balance = await rpc.get_balance(body.address)

        balance_raw = balance["totalBalance"]
        balance_sui = mist_to_sui(balance_raw)

        logger.info("Balance check", address=body.address, balance_sui=balance_sui)

        return GetBalanceResponse(
            success=True,
            data=BalanceData(
                address=body.address,
                balance=balance_sui,
                balance_raw=balance_raw,
                coin_type=balance["coinType"],
                network=settings.sui_network,
                timestamp=utc_timestamp(),
            ),
        )

    except Exception as e:
        logger.error("Error getting balance", error=str(e), address=body.address)
        response.status_code = 500
        return GetBalanceResponse(success=False, error=str(e) or INTERNAL_ERROR)


@app.post(
    "/api/generate-wallet",
    response_model=GenerateWalletResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(verify_api_key)],
)
async def generate_wallet(
    response: Response,
    settings: Settings = Depends(get_settings),
) -> GenerateWalletResponse:
    """
    Generate a fresh Ed25519 keypair.

    The private key is returned once and never stored.
    """
    try:
        keypair = SuiKeypair.generate()
        address = keypair.to_sui_address()

        logger.info("Generated new wallet", address=address)

        return GenerateWalletResponse(
            success=True,
            data=WalletData(
                address=address,
                private_key=keypair.export_private_key(),
                network=settings.sui_network,
                timestamp=utc_timestamp(),
            ),
        )

    except Exception as e:
        logger.error("Error generating wallet", error=str(e))
        response.status_code = 500
        return GenerateWalletResponse(success=False, error=str(e) or INTERNAL_ERROR)


@app.get(
    "/api/test",
    response_model=ConnectionResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(verify_api_key)],
)
async def connection_check(
    response: Response,
    settings: Settings = Depends(get_settings),
    client_factory: ClientFactory = Depends(get_client_factory),
) -> ConnectionResponse:
    """
    Verify configuration and connectivity using the operating key.
    """
    try:
        async with client_factory() as client:
            address = client.get_address()
            balance = await client.get_balance()

        return ConnectionResponse(
            success=True,
            data=ConnectionData(
                network=settings.sui_network,
                address=address,
                balance=f"{mist_to_sui(balance)} SUI",
                package_id=client.package_id,
                admin_cap_id=client.admin_cap_id,
                timestamp=utc_timestamp(),
            ),
        )

    except Exception as e:
        logger.error("Error in test handler", error=str(e))
        response.status_code = 500
        return ConnectionResponse(success=False, error=str(e) or INTERNAL_ERROR)


# ============================================================================
# Entry Point
# ============================================================================


def run() -> None:
    """Run the API server."""
    settings = get_settings()
    uvicorn.run(
        "loyalty_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
