"""
Sui client for interacting with the online_course_loyalty contract.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

import httpx
import structlog

from .config import Settings
from .errors import ConfigurationError, SuiRPCError
from .keys import SuiKeypair, is_valid_sui_address
from .rpc import SuiRPC, SuiRPCConfig, get_fullnode_url

logger = structlog.get_logger()


LOYALTY_MODULE = "online_course_loyalty"
BADGE_TYPE_MARKER = f"::{LOYALTY_MODULE}::Badge"

MAX_PROGRESS = 100

MIST_PER_SUI = 1_000_000_000


def mist_to_sui(mist: int | str) -> str:
    """Convert a MIST amount to a plain SUI decimal string ("2500000000" -> "2.5")."""
    sui = (Decimal(mist) / MIST_PER_SUI).normalize()
    return format(sui, "f")


@dataclass
class LoyaltyClientConfig:
    """Everything needed to build a SuiLoyaltyClient."""

    network: str
    private_key: str
    package_id: str
    admin_cap_id: str
    rpc_url: Optional[str] = None
    gas_budget: int = 10_000_000
    timeout: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "LoyaltyClientConfig":
        """Build from settings, failing on missing required values."""
        if not settings.sui_private_key:
            raise ConfigurationError("SUI_PRIVATE_KEY is required")
        if not settings.package_id:
            raise ConfigurationError("PACKAGE_ID is required")
        if not settings.admin_cap_id:
            raise ConfigurationError("ADMIN_CAP_ID is required")

        return cls(
            network=settings.sui_network,
            private_key=settings.sui_private_key,
            package_id=settings.package_id,
            admin_cap_id=settings.admin_cap_id,
            rpc_url=settings.sui_rpc_url,
            gas_budget=settings.sui_gas_budget,
            timeout=settings.sui_rpc_timeout,
        )

    @property
    def resolved_rpc_url(self) -> str:
        return self.rpc_url or get_fullnode_url(self.network)


@dataclass
class TxResult:
    """Outcome of a write operation. Write operations never raise."""

    success: bool
    digest: Optional[str] = None
    badge_id: Optional[str] = None
    error: Optional[str] = None


def extract_badge_id(result: dict[str, Any]) -> Optional[str]:
    """Find the created Badge object in a transaction's object changes."""
    changes = result.get("objectChanges")
    if not isinstance(changes, list):
        return None
    for change in changes:
        if not isinstance(change, dict):
            continue
        object_type = change.get("objectType")
        if (
            change.get("type") == "created"
            and isinstance(object_type, str)
            and BADGE_TYPE_MARKER in object_type
        ):
            return change.get("objectId")
    return None


def execution_error(result: dict[str, Any]) -> Optional[str]:
    """Return the ledger's error message if the transaction aborted."""
    effects = result.get("effects")
    status = effects.get("status") if isinstance(effects, dict) else None
    if isinstance(status, dict) and status.get("status") == "failure":
        return status.get("error") or "Transaction failed"
    return None


class SuiLoyaltyClient:
    """
    Async Sui client for badge contract interactions.
    """

    def __init__(self, config: LoyaltyClientConfig, rpc: Optional[SuiRPC] = None):
        self.config = config
        self.keypair = SuiKeypair.from_private_key(config.private_key)
        self.rpc = rpc or SuiRPC(
            SuiRPCConfig(url=config.resolved_rpc_url, timeout=config.timeout)
        )

    @property
    def package_id(self) -> str:
        return self.config.package_id

    @property
    def admin_cap_id(self) -> str:
        return self.config.admin_cap_id

    def get_address(self) -> str:
        """Get the operating address."""
        return self.keypair.to_sui_address()

    async def close(self) -> None:
        await self.rpc.close()

    async def __aenter__(self) -> "SuiLoyaltyClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _sign_and_execute(
        self,
        function: str,
        arguments: list[Any],
        show_object_changes: bool = False,
    ) -> dict[str, Any]:
        """Build, sign and execute a move call into the loyalty module."""
        tx_bytes = await self.rpc.move_call(
            signer=self.get_address(),
            package_id=self.package_id,
            module=LOYALTY_MODULE,
            function=function,
            arguments=arguments,
            gas_budget=self.config.gas_budget,
        )
        signature = self.keypair.sign_transaction(tx_bytes)
        result = await self.rpc.execute_transaction_block(
            tx_bytes,
            [signature],
            show_effects=True,
            show_object_changes=show_object_changes,
        )
        if not isinstance(result, dict):
            raise SuiRPCError(-1, "Malformed transaction result")
        return result

    async def create_badge(
        self,
        student_name: str,
        course_id: str,
        student_address: str,
    ) -> TxResult:
        """Call online_course_loyalty::create_badge()."""
        if not is_valid_sui_address(student_address):
            return TxResult(success=False, error=f"Invalid Sui address: {student_address}")

        try:
            result = await self._sign_and_execute(
                "create_badge",
                [student_name, course_id, student_address],
                show_object_changes=True,
            )
        except Exception as e:
            logger.error("Failed to create badge", error=str(e), student_address=student_address)
            return TxResult(success=False, error=str(e) or "Unknown error occurred")

        digest = result.get("digest")
        aborted = execution_error(result)
        if aborted:
            logger.error("Badge transaction aborted", digest=digest, error=aborted)
            return TxResult(success=False, digest=digest, error=aborted)

        badge_id = extract_badge_id(result)
        if not badge_id:
            logger.error("No badge in object changes", digest=digest)
            return TxResult(
                success=False,
                digest=digest,
                error="Could not extract badge ID from transaction result",
            )

        logger.info("Badge created", badge_id=badge_id, digest=digest)
        return TxResult(success=True, digest=digest, badge_id=badge_id)

    async def update_progress(self, badge_id: str, new_progress: int) -> TxResult:
        """Call online_course_loyalty::update_progress()."""
        if not is_valid_sui_address(badge_id):
            return TxResult(success=False, error=f"Invalid badge ID: {badge_id}")

        if not 0 <= new_progress <= MAX_PROGRESS:
            return TxResult(success=False, error="Progress must be between 0 and 100")

        try:
            result = await self._sign_and_execute(
                "update_progress",
                [self.admin_cap_id, badge_id, new_progress],
            )
        except Exception as e:
            logger.error("Failed to update progress", error=str(e), badge_id=badge_id)
            return TxResult(success=False, error=str(e) or "Unknown error occurred")

        digest = result.get("digest")
        aborted = execution_error(result)
        if aborted:
            logger.error("Progress transaction aborted", digest=digest, error=aborted)
            return TxResult(success=False, digest=digest, error=aborted)

        logger.info("Progress updated", badge_id=badge_id, progress=new_progress, digest=digest)
        return TxResult(success=True, digest=digest, badge_id=badge_id)

    async def get_badge(self, badge_id: str) -> dict[str, Any]:
        """Fetch a badge object with content and owner. Errors propagate."""
        try:
            return await self.rpc.get_object(badge_id, show_content=True, show_owner=True)
        except (httpx.HTTPError, SuiRPCError) as e:
            logger.error("Failed to get badge", error=str(e), badge_id=badge_id)
            raise

    async def get_balance(self) -> str:
        """Raw MIST balance of the operating address."""
        balance = await self.rpc.get_balance(self.get_address())
        return balance["totalBalance"]
