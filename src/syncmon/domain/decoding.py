from __future__ import annotations

import logging
from typing import Iterable

from eth_utils import keccak

from syncmon.domain.models import EventLog, RangeEvent
from syncmon.domain.value_types import Topic0

logger = logging.getLogger(__name__)

# event UpdateEvent(uint32 startBlockNumber, bytes32 prevHash, bytes32 root, uint32 numFinal)
UPDATE_EVENT_SIGNATURE = "UpdateEvent(uint32,bytes32,bytes32,uint32)"
START_WORD = 0
COUNT_WORD = 3


def event_topic0(signature: str) -> Topic0:
    """keccak-256 of the canonical event signature, 0x-prefixed lowercase."""
    return Topic0("0x" + keccak(text=signature).hex())

UPDATE_EVENT_T0 = event_topic0(UPDATE_EVENT_SIGNATURE)

# --------- 32B word slicing (fast, no eth_abi) --------------------------------
def _hexstr_to_bytes(s: str) -> bytes:
    h = s[2:] if s[:2].lower() == "0x" else s
    if len(h) % 2: h = "0" + h
    return bytes.fromhex(h) if h else b""

def _word(b: bytes, i: int) -> bytes:
    return b[i*32:(i+1)*32]

def _u256(w: bytes) -> int:
    return int.from_bytes(w, "big")

# ---------------------------- public API --------------------------------------
def decode_update_event(log: EventLog, *, topic0: Topic0 = UPDATE_EVENT_T0) -> RangeEvent:
    if log.topic0.lower() != topic0:
        raise ValueError(f"unexpected topic0 {log.topic0} in tx {log.tx_hash}")
    data_b = _hexstr_to_bytes(log.data_hex)
    if len(data_b) < (COUNT_WORD + 1) * 32:
        raise ValueError(f"truncated UpdateEvent data ({len(data_b)} bytes) in tx {log.tx_hash}")
    return RangeEvent(start=_u256(_word(data_b, START_WORD)), count=_u256(_word(data_b, COUNT_WORD)))


def decode_update_events(logs: Iterable[EventLog], *, topic0: Topic0 = UPDATE_EVENT_T0) -> list[RangeEvent]:
    """Decode a batch; malformed logs are logged and skipped."""
    out: list[RangeEvent] = []
    for log in logs:
        try:
            out.append(decode_update_event(log, topic0=topic0))
        except ValueError as e:
            logger.warning("skipping log %s#%d at block %d: %s",
                           log.tx_hash, log.log_index, log.block_number, e)
    return out
