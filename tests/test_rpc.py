from __future__ import annotations

import base64
import json
from typing import Any

import httpx
import pytest

from loyalty_api.errors import SuiRPCError
from loyalty_api.rpc import SuiRPC, SuiRPCConfig, get_fullnode_url


def _rpc_with(handler) -> tuple[SuiRPC, list[dict[str, Any]]]:
    """SuiRPC whose HTTP client answers from `handler(payload)`."""
    requests: list[dict[str, Any]] = []

    def transport(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        requests.append(payload)
        return handler(payload)

    rpc = SuiRPC(SuiRPCConfig(url="http://fullnode.test"))
    rpc._client = httpx.AsyncClient(
        base_url="http://fullnode.test",
        transport=httpx.MockTransport(transport),
    )
    return rpc, requests


def _ok(result: Any) -> httpx.Response:
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": result})


def test_fullnode_urls() -> None:
    assert get_fullnode_url("mainnet") == "https://fullnode.mainnet.sui.io:443"
    assert get_fullnode_url("testnet") == "https://fullnode.testnet.sui.io:443"
    assert get_fullnode_url("devnet") == "https://fullnode.devnet.sui.io:443"
    with pytest.raises(ValueError):
        get_fullnode_url("localnet-typo")


@pytest.mark.asyncio
async def test_move_call_builds_unsafe_move_call() -> None:
    tx_bytes = b"\x00\x01tx"
    rpc, requests = _rpc_with(lambda p: _ok({"txBytes": base64.b64encode(tx_bytes).decode()}))

    result = await rpc.move_call(
        signer="0x" + "ad" * 32,
        package_id="0x" + "aa" * 32,
        module="online_course_loyalty",
        function="create_badge",
        arguments=["Ada", "CS101", "0x" + "11" * 32],
        gas_budget=10_000_000,
    )

    assert result == tx_bytes
    assert requests[0]["method"] == "unsafe_moveCall"
    assert requests[0]["params"] == [
        "0x" + "ad" * 32,
        "0x" + "aa" * 32,
        "online_course_loyalty",
        "create_badge",
        [],
        ["Ada", "CS101", "0x" + "11" * 32],
        None,
        "10000000",
    ]
    await rpc.close()


@pytest.mark.asyncio
async def test_execute_sends_base64_and_options() -> None:
    rpc, requests = _rpc_with(lambda p: _ok({"digest": "abc"}))

    result = await rpc.execute_transaction_block(b"tx", ["sig"], show_object_changes=True)

    assert result == {"digest": "abc"}
    params = requests[0]["params"]
    assert requests[0]["method"] == "sui_executeTransactionBlock"
    assert params[0] == base64.b64encode(b"tx").decode()
    assert params[1] == ["sig"]
    assert params[2] == {"showEffects": True, "showObjectChanges": True}
    assert params[3] == "WaitForLocalExecution"
    await rpc.close()


@pytest.mark.asyncio
async def test_get_balance_defaults_to_sui() -> None:
    rpc, requests = _rpc_with(lambda p: _ok({"coinType": "0x2::sui::SUI", "totalBalance": "5"}))

    balance = await rpc.get_balance("0x" + "11" * 32)

    assert balance["totalBalance"] == "5"
    assert requests[0]["method"] == "suix_getBalance"
    assert requests[0]["params"] == ["0x" + "11" * 32, "0x2::sui::SUI"]
    await rpc.close()


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", [None, {"coinType": "0x2::sui::SUI"}, "5"])
async def test_malformed_balance_raises(reply) -> None:
    rpc, _ = _rpc_with(lambda p: _ok(reply))

    with pytest.raises(SuiRPCError, match="Malformed balance response"):
        await rpc.get_balance("0x" + "11" * 32)
    await rpc.close()


@pytest.mark.asyncio
async def test_get_object_options() -> None:
    rpc, requests = _rpc_with(lambda p: _ok({"data": {}}))

    await rpc.get_object("0x" + "be" * 32)

    assert requests[0]["method"] == "sui_getObject"
    assert requests[0]["params"][1] == {"showContent": True, "showOwner": True, "showType": True}
    await rpc.close()


@pytest.mark.asyncio
async def test_rpc_error_object_raises() -> None:
    rpc, _ = _rpc_with(
        lambda p: httpx.Response(
            200,
            json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "Invalid params"}},
        )
    )

    with pytest.raises(SuiRPCError) as exc_info:
        await rpc.call("suix_getBalance", ["bad"])

    assert exc_info.value.code == -32602
    assert exc_info.value.message == "Invalid params"
    await rpc.close()


@pytest.mark.asyncio
async def test_http_error_raises() -> None:
    rpc, _ = _rpc_with(lambda p: httpx.Response(503, text="unavailable"))

    with pytest.raises(httpx.HTTPStatusError):
        await rpc.call("sui_getChainIdentifier")
    await rpc.close()


@pytest.mark.asyncio
async def test_missing_result_raises() -> None:
    rpc, _ = _rpc_with(lambda p: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1}))

    with pytest.raises(SuiRPCError, match="Malformed response"):
        await rpc.call("sui_getChainIdentifier")
    await rpc.close()


@pytest.mark.asyncio
async def test_check_connectivity() -> None:
    rpc, _ = _rpc_with(lambda p: _ok("4c78adac"))
    assert await rpc.check_connectivity() is True
    await rpc.close()

    rpc, _ = _rpc_with(lambda p: httpx.Response(500))
    assert await rpc.check_connectivity() is False
    await rpc.close()


@pytest.mark.asyncio
async def test_request_ids_increment() -> None:
    rpc, requests = _rpc_with(lambda p: _ok("x"))

    async with rpc:
        await rpc.call("sui_getChainIdentifier")
        await rpc.call("sui_getChainIdentifier")

    assert [r["id"] for r in requests] == [1, 2]
    assert rpc._client is None
