"""Tests for UpdateEvent topic0 derivation and log decoding."""

import logging

import pytest

from syncmon.domain.decoding import (
    UPDATE_EVENT_SIGNATURE,
    UPDATE_EVENT_T0,
    decode_update_event,
    decode_update_events,
    event_topic0,
)
from syncmon.domain.models import EventLog, RangeEvent
from syncmon.domain.value_types import Address, Topic0

TRANSFER_T0 = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"


class TestTopic0:
    def test_known_signature(self) -> None:
        assert event_topic0("Transfer(address,address,uint256)") == TRANSFER_T0

    def test_update_event_topic_shape(self) -> None:
        assert UPDATE_EVENT_T0 == event_topic0(UPDATE_EVENT_SIGNATURE)
        assert UPDATE_EVENT_T0.startswith("0x") and len(UPDATE_EVENT_T0) == 66
        assert UPDATE_EVENT_T0 == UPDATE_EVENT_T0.lower()


class TestDecodeUpdateEvent:
    def test_reads_start_and_num_final(self, update_log) -> None:
        assert decode_update_event(update_log(17031168, 1024)) == RangeEvent(17031168, 1024)

    def test_accepts_unprefixed_hex(self, update_log) -> None:
        log = update_log(5, 6)
        raw = EventLog(log.address, log.topic0, log.data_hex[2:], log.block_number, log.tx_hash, log.log_index)
        assert decode_update_event(raw) == RangeEvent(5, 6)

    def test_wrong_topic_rejected(self, update_log) -> None:
        with pytest.raises(ValueError, match="unexpected topic0"):
            decode_update_event(update_log(0, 1, topic0=Topic0(TRANSFER_T0)))

    def test_truncated_data_rejected(self) -> None:
        log = EventLog(Address("0x00"), UPDATE_EVENT_T0, "0x" + "00" * 64, 1, "0xabc", 0)
        with pytest.raises(ValueError, match="truncated"):
            decode_update_event(log)


class TestDecodeUpdateEvents:
    def test_batch_skips_malformed(self, update_log, caplog: pytest.LogCaptureFixture) -> None:
        bad = EventLog(Address("0x00"), UPDATE_EVENT_T0, "0x", 9, "0xbad", 3)
        logs = [update_log(0, 128), bad, update_log(128, 64)]
        with caplog.at_level(logging.WARNING, logger="syncmon.domain.decoding"):
            events = decode_update_events(logs)
        assert events == [RangeEvent(0, 128), RangeEvent(128, 64)]
        assert "0xbad" in caplog.text

    def test_empty_batch(self) -> None:
        assert decode_update_events([]) == []
