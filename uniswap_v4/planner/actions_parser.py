"""Decoding of planner payloads back into typed actions."""

from __future__ import annotations

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import decode_hex

from uniswap_v4.errors import InvalidAction
from uniswap_v4.planner.actions import ACTION_PARAMS, ActionParams, Actions


def _to_bytes(payload: bytes | str) -> bytes:
    if isinstance(payload, str):
        try:
            return decode_hex(payload)
        except ValueError as err:
            raise InvalidAction(f"Payload is not valid hex: {err}") from err
    return bytes(payload)


def parse_action(code: int, data: bytes) -> ActionParams:
    """Decode one action's parameter block.

    Raises:
        InvalidAction: If the code is unknown or the block does not decode
    """
    try:
        action = Actions(code)
    except ValueError as err:
        raise InvalidAction(f"Unknown action code 0x{code:02x}") from err

    try:
        return ACTION_PARAMS[action].decode(data)
    except (DecodingError, OverflowError) as err:
        raise InvalidAction(f"Cannot decode {action.name} parameters: {err}") from err


def parse_calldata(payload: bytes | str) -> list[tuple[Actions, ActionParams]]:
    """Decode an ``abi.encode(bytes actions, bytes[] params)`` payload.

    Args:
        payload: Raw bytes or 0x-prefixed hex of the unlock data

    Returns:
        (action, params) pairs in execution order

    Raises:
        InvalidAction: On unknown codes, mismatched lengths or undecodable params
    """
    try:
        actions, params = decode(["bytes", "bytes[]"], _to_bytes(payload))
    except DecodingError as err:
        raise InvalidAction(f"Malformed action payload: {err}") from err

    if len(actions) != len(params):
        raise InvalidAction(
            f"Payload has {len(actions)} action codes but {len(params)} parameter blocks"
        )

    parsed = []
    for code, data in zip(actions, params):
        action_params = parse_action(code, data)
        parsed.append((action_params.ACTION, action_params))
    return parsed


__all__ = ["parse_action", "parse_calldata"]
