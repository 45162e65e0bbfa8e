"""
Sui fullnode JSON-RPC client for the API.

Simplified async client covering the calls the badge endpoints need.
"""

import base64
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .errors import SuiRPCError


FULLNODE_URLS = {
    "mainnet": "https://fullnode.mainnet.sui.io:443",
    "testnet": "https://fullnode.testnet.sui.io:443",
    "devnet": "https://fullnode.devnet.sui.io:443",
}

SUI_COIN_TYPE = "0x2::sui::SUI"


def get_fullnode_url(network: str) -> str:
    """Public fullnode URL for a named network."""
    try:
        return FULLNODE_URLS[network]
    except KeyError:
        raise ValueError(f"Unknown Sui network: {network}") from None


@dataclass
class SuiRPCConfig:
    """Sui RPC configuration."""

    url: str = FULLNODE_URLS["testnet"]
    timeout: float = 30.0


class SuiRPC:
    """
    Async Sui fullnode JSON-RPC client.
    """

    def __init__(self, config: SuiRPCConfig):
        self.config = config
        self._client: Optional[httpx.AsyncClient] = None
        self._request_id = 0

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.url,
                timeout=self.config.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "SuiRPC":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Make an RPC call."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }

        client = await self._get_client()
        response = await client.post("/", json=payload)
        response.raise_for_status()

        result = response.json()
        error = result.get("error")
        if error:
            if isinstance(error, dict):
                raise SuiRPCError(error.get("code", -1), error.get("message", str(error)))
            raise SuiRPCError(-1, str(error))

        if "result" not in result:
            raise SuiRPCError(-1, f"Malformed response to {method}")

        return result["result"]

    async def move_call(
        self,
        signer: str,
        package_id: str,
        module: str,
        function: str,
        arguments: list[Any],
        gas_budget: int,
        type_arguments: list[str] | None = None,
    ) -> bytes:
        """
        Build an unsigned move-call transaction.

        Returns BCS-serialized TransactionData bytes.
        """
        result = await self.call(
            "unsafe_moveCall",
            [
                signer,
                package_id,
                module,
                function,
                type_arguments or [],
                arguments,
                None,  # let the node pick a gas coin
                str(gas_budget),
            ],
        )
        return base64.b64decode(result["txBytes"])

    async def execute_transaction_block(
        self,
        tx_bytes: bytes,
        signatures: list[str],
        show_effects: bool = True,
        show_object_changes: bool = False,
    ) -> dict[str, Any]:
        """Submit a signed transaction and wait for local execution."""
        return await self.call(
            "sui_executeTransactionBlock",
            [
                base64.b64encode(tx_bytes).decode("ascii"),
                signatures,
                {
                    "showEffects": show_effects,
                    "showObjectChanges": show_object_changes,
                },
                "WaitForLocalExecution",
            ],
        )

    async def get_object(
        self,
        object_id: str,
        show_content: bool = True,
        show_owner: bool = True,
        show_type: bool = True,
    ) -> dict[str, Any]:
        """Get object data by ID."""
        return await self.call(
            "sui_getObject",
            [
                object_id,
                {
                    "showContent": show_content,
                    "showOwner": show_owner,
                    "showType": show_type,
                },
            ],
        )

    async def get_balance(self, owner: str, coin_type: str = SUI_COIN_TYPE) -> dict[str, Any]:
        """Get total balance of one coin type for an address."""
        balance = await self.call("suix_getBalance", [owner, coin_type])
        if not isinstance(balance, dict) or "totalBalance" not in balance or "coinType" not in balance:
            raise SuiRPCError(-1, "Malformed balance response")
        return balance

    async def get_chain_identifier(self) -> str:
        """Get the chain identifier of the connected network."""
        return await self.call("sui_getChainIdentifier")

    async def check_connectivity(self) -> bool:
        """Check if the fullnode is reachable."""
        try:
            await self.get_chain_identifier()
            return True
        except (httpx.HTTPError, SuiRPCError):
            return False
