"""Tests for decoding planner payloads."""

import pytest
from eth_abi import encode

from uniswap_v4.errors import InvalidAction
from uniswap_v4.planner.actions import Actions, SettleParams, SweepParams, TakeParams
from uniswap_v4.planner.actions_parser import parse_action, parse_calldata
from tests.helpers.constants import DAI, RECIPIENT


def payload(codes: bytes, params: list[bytes]) -> bytes:
    return encode(["bytes", "bytes[]"], [codes, params])


class TestParseAction:
    """Tests for parse_action."""

    def test_decodes_params(self):
        """A single action decodes into its params type."""
        params = TakeParams(DAI, RECIPIENT, 8)
        assert parse_action(Actions.TAKE, params.encode()) == params

    def test_unknown_code(self):
        """Unknown action codes are rejected."""
        with pytest.raises(InvalidAction):
            parse_action(0x05, b"")

    def test_truncated_params(self):
        """Params shorter than their head are rejected."""
        with pytest.raises(InvalidAction):
            parse_action(Actions.SETTLE, b"\x00" * 10)


class TestParseCalldata:
    """Tests for parse_calldata."""

    def test_preserves_order(self):
        """Actions come back in the order they were planned."""
        settle = SettleParams(DAI, 0, True)
        sweep = SweepParams(DAI, RECIPIENT)
        parsed = parse_calldata(
            payload(bytes([Actions.SETTLE, Actions.SWEEP]), [settle.encode(), sweep.encode()])
        )
        assert parsed == [(Actions.SETTLE, settle), (Actions.SWEEP, sweep)]

    def test_hex_string(self):
        """Calldata may be passed as a 0x-prefixed hex string."""
        settle = SettleParams(DAI, 0, True)
        raw = payload(bytes([Actions.SETTLE]), [settle.encode()])
        assert parse_calldata("0x" + raw.hex()) == [(Actions.SETTLE, settle)]

    def test_unknown_code(self):
        """An unknown code inside a payload is rejected."""
        with pytest.raises(InvalidAction):
            parse_calldata(payload(bytes([0x05]), [b""]))

    def test_length_mismatch(self):
        """Action and param counts must agree."""
        settle = SettleParams(DAI, 0, True).encode()
        with pytest.raises(InvalidAction):
            parse_calldata(payload(bytes([Actions.SETTLE, Actions.SETTLE]), [settle]))

    def test_garbage(self):
        """Bytes that are not an ABI payload are rejected."""
        with pytest.raises(InvalidAction):
            parse_calldata(b"\x01\x02\x03")

    def test_invalid_hex(self):
        """Non-hex strings are rejected."""
        with pytest.raises(InvalidAction):
            parse_calldata("0xzz")
