"""
Pydantic models for API requests and responses.

Request and response bodies use camelCase keys on the wire.
"""

import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from .keys import is_valid_sui_address


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _request_error(message: str) -> PydanticCustomError:
    return PydanticCustomError("request_field", message)


def describe_validation_error(exc: ValidationError) -> str:
    """Turn the first validation error into a human-readable message."""
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    first = errors[0]
    if first["type"] == "request_field":
        return first["msg"]
    field = ".".join(str(part) for part in first["loc"])
    return f"Invalid field {field}: {first['msg']}" if field else first["msg"]


def parse_progress(value: Any) -> Optional[int]:
    """Accept integers, integral floats and decimal digit strings."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        stripped = value.strip()
        if re.fullmatch(r"-?[0-9]+", stripped):
            return int(stripped)
    return None


# ============================================================================
# Create Badge
# ============================================================================

class CreateBadgeRequest(CamelModel):
    """Request to mint a course badge for a student."""

    student_name: Optional[str] = Field(None, description="Student display name")
    course_id: Optional[str] = Field(None, description="Course identifier")
    student_address: Optional[str] = Field(None, description="Student Sui address (0x + 64 hex)")

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "studentName": "Ada Lovelace",
                    "courseId": "CS101",
                    "studentAddress": "0x" + "ab" * 32,
                }
            ]
        }
    )

    @model_validator(mode="after")
    def check_fields(self) -> "CreateBadgeRequest":
        if not self.student_name or not self.course_id or not self.student_address:
            raise _request_error("Missing required fields: studentName, courseId, studentAddress")
        if not is_valid_sui_address(self.student_address):
            raise _request_error("Invalid Sui address format")
        return self


class CreateBadgeData(CamelModel):
    badge_id: str = Field(..., description="Created Badge object ID")
    digest: Optional[str] = Field(None, description="Transaction digest")
    student_name: str
    course_id: str
    student_address: str


class CreateBadgeResponse(BaseModel):
    success: bool = Field(..., description="Whether the badge was created")
    data: Optional[CreateBadgeData] = None
    error: Optional[str] = Field(None, description="Error message if failed")


# ============================================================================
# Update Progress
# ============================================================================

class UpdateProgressRequest(CamelModel):
    """Request to set a badge's progress percentage."""

    badge_id: Optional[str] = Field(None, description="Badge object ID (0x + 64 hex)")
    progress: Any = Field(None, description="Progress percentage, 0-100")

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "badgeId": "0x" + "00" * 32,
                    "progress": 50,
                }
            ]
        }
    )

    @model_validator(mode="after")
    def check_fields(self) -> "UpdateProgressRequest":
        if not self.badge_id:
            raise _request_error("Missing required field: badgeId")
        if self.progress is None:
            raise _request_error("Missing required field: progress")
        if not is_valid_sui_address(self.badge_id):
            raise _request_error("Invalid badge ID format")

        progress = parse_progress(self.progress)
        if progress is None or not 0 <= progress <= 100:
            raise _request_error("Progress must be a number between 0 and 100")
        self.progress = progress
        return self


class UpdateProgressData(CamelModel):
    badge_id: str
    progress: int
    digest: Optional[str] = None


class UpdateProgressResponse(BaseModel):
    success: bool = Field(..., description="Whether the progress was updated")
    data: Optional[UpdateProgressData] = None
    error: Optional[str] = Field(None, description="Error message if failed")


# ============================================================================
# Get Badge
# ============================================================================

class GetBadgeRequest(CamelModel):
    """Request to read a badge object."""

    badge_id: Optional[str] = Field(None, description="Badge object ID (0x + 64 hex)")

    @model_validator(mode="after")
    def check_fields(self) -> "GetBadgeRequest":
        if not self.badge_id:
            raise _request_error("Missing required field: badgeId")
        if not is_valid_sui_address(self.badge_id):
            raise _request_error("Invalid badge ID format")
        return self


class BadgeData(CamelModel):
    badge_id: str
    object_type: Optional[str] = None
    owner: Any = None
    fields: dict[str, Any] = Field(default_factory=dict)
    version: Optional[str] = None
    digest: Optional[str] = None


class GetBadgeResponse(BaseModel):
    success: bool
    data: Optional[BadgeData] = None
    error: Optional[str] = None


# ============================================================================
# Balance
# ============================================================================

class GetBalanceRequest(CamelModel):
    """Request to look up the SUI balance of an address."""

    address: Optional[str] = Field(None, description="Sui address (0x + 64 hex)")

    @model_validator(mode="after")
    def check_fields(self) -> "GetBalanceRequest":
        if not self.address:
            raise _request_error("Missing required field: address")
        if not is_valid_sui_address(self.address):
            raise _request_error("Invalid Sui address format")
        return self


class BalanceData(CamelModel):
    address: str
    balance: str = Field(..., description="Balance in SUI")
    balance_raw: str = Field(..., description="Balance in MIST")
    coin_type: str
    network: str
    timestamp: str


class GetBalanceResponse(BaseModel):
    success: bool
    data: Optional[BalanceData] = None
    error: Optional[str] = None


# ============================================================================
# Generate Wallet
# ============================================================================

class WalletData(CamelModel):
    address: str
    private_key: str = Field(..., description="suiprivkey1... encoded secret key")
    network: str
    timestamp: str


class GenerateWalletResponse(BaseModel):
    success: bool
    data: Optional[WalletData] = None
    error: Optional[str] = None


# ============================================================================
# Connection Check
# ============================================================================

class ConnectionData(CamelModel):
    network: str
    address: str
    balance: str = Field(..., description='Balance of the operating address, e.g. "2.5 SUI"')
    package_id: str
    admin_cap_id: str
    timestamp: str


class ConnectionResponse(BaseModel):
    success: bool
    data: Optional[ConnectionData] = None
    error: Optional[str] = None


# ============================================================================
# Errors / Health
# ============================================================================

class ErrorResponse(BaseModel):
    """Envelope for failures raised outside a handler."""

    success: bool = False
    error: str


class HelloResponse(BaseModel):
    success: bool = True
    message: str
    timestamp: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")
    network: str = Field(..., description="Configured Sui network")
    sui_rpc: bool = Field(..., description="Fullnode connectivity")
    contracts: dict[str, Optional[str]] = Field(
        ...,
        description="Configured contract object IDs"
    )
