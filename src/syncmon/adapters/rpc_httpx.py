from __future__ import annotations
import asyncio, httpx, logging
from typing import Sequence
from ..domain.models import EventLog
from ..domain.value_types import Address, Topic0
from ..ports.rpc import RPCClient

logger = logging.getLogger(__name__)

class RPCError(RuntimeError):
    """JSON-RPC level failure (error object in the response, or retries exhausted)."""

def _to_hex_block(n: int) -> str: return hex(int(n))
def _is_topic_hash(x: str) -> bool: return isinstance(x, str) and x.startswith("0x") and len(x)==66

def _build_topics_param(topic0s: Sequence[Topic0]) -> list[list[str]]:
    t0s = [str(t).strip().lower() for t in topic0s]
    if not all(_is_topic_hash(x) for x in t0s):
        raise ValueError(f"Invalid topic0(s): {t0s}")
    return [t0s]

def _error_message(err: object) -> str:
    if isinstance(err, dict):
        return f"code={err.get('code')} message={err.get('message')}"
    return str(err)

class HttpxRPC(RPCClient):
    def __init__(
        self,
        rpc_url: str,
        timeout_s: float = 20,
        max_conn: int = 16,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        max_429_retries: int = 3,
    ) -> None:
        self.rpc_url = rpc_url
        self.max_429_retries = max_429_retries
        self._id = 0
        self.client = httpx.AsyncClient(
            http2=transport is None,
            timeout=httpx.Timeout(timeout_s),
            limits=httpx.Limits(max_connections=max_conn, max_keepalive_connections=max(1, max_conn//2)),
            transport=transport,
        )

    async def __aenter__(self) -> "HttpxRPC": return self
    async def __aexit__(self, *exc: object) -> None: await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _call(self, method: str, params: list) -> object:
        self._id += 1
        payload = {"jsonrpc":"2.0","id":self._id,"method":method,"params":params}
        # retry on 429 with simple backoff; other failures go to the caller's retry policy
        for attempt in range(self.max_429_retries):
            r = await self.client.post(self.rpc_url, json=payload)
            if r.status_code == 429:
                ra = r.headers.get("Retry-After")
                delay = max(1.0, float(ra)) if ra and ra.isdigit() else (1.0 * (2**attempt))
                logger.debug("%s rate limited, sleeping %.1fs", method, delay)
                await asyncio.sleep(delay); continue
            r.raise_for_status()
            data = r.json()
            if "error" in data:
                raise RPCError(f"{method} RPC error {_error_message(data['error'])}")
            return data.get("result")
        raise RPCError(f"Retries exhausted for {method} (rate limited)")

    async def latest_block(self) -> int:
        res = await self._call("eth_blockNumber", [])
        if not isinstance(res, str):
            raise RPCError(f"eth_blockNumber returned {res!r}")
        return int(res, 16)

    async def get_logs(self, address: Address, topic0s: Sequence[Topic0], from_block: int, to_block: int) -> list[EventLog]:
        res = await self._call("eth_getLogs", [{
            "address": str(address),
            "fromBlock": _to_hex_block(from_block),
            "toBlock": _to_hex_block(to_block),
            "topics": _build_topics_param(topic0s),
        }])
        typed: list[EventLog] = []
        for rl in res or []:
            topics = rl.get("topics", [])
            t0 = topics[0] if topics else "0x" + ("0"*64)
            typed.append(EventLog(
                address=Address(rl["address"].lower()),
                topic0=Topic0(t0.lower()),
                data_hex=rl["data"],
                block_number=int(rl["blockNumber"], 16),
                tx_hash=rl["transactionHash"].lower(),
                log_index=int(rl["logIndex"], 16),
            ))
        return typed
