"""Sequential builder for V4 action payloads.

The planner appends actions in order and tracks, per currency, the delta
the batch leaves open on the pool manager. A payload is only emitted once
every touched currency is resolved, so a finalized payload never strands
tokens in the pool manager or leaves a debt unpaid.

Delta sign convention (caller's point of view): negative means the caller
owes the pool manager, positive means the pool manager owes the caller.
Actions whose amounts are only known on chain (mint, swap outputs, open
settles and takes) are tracked as open debits or credits and must be
closed by a settle or take that consumes the full delta.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction

import structlog
from eth_abi import encode

from uniswap_v4.constants import BIPS_BASE, EMPTY_BYTES, OPEN_DELTA
from uniswap_v4.entities.currency import Currency
from uniswap_v4.entities.pool import PoolKey
from uniswap_v4.entities.trade import Trade, TradeType
from uniswap_v4.errors import InvalidAction, PlannerFinalized, UnsettledCurrency
from uniswap_v4.planner.actions import (
    ActionParams,
    Actions,
    BurnPositionParams,
    ClearOrTakeParams,
    CloseCurrencyParams,
    DecreaseLiquidityParams,
    IncreaseLiquidityParams,
    MintPositionParams,
    SettleAllParams,
    SettlePairParams,
    SettleParams,
    SwapExactInParams,
    SwapExactInSingleParams,
    SwapExactOutParams,
    SwapExactOutSingleParams,
    TakeAllParams,
    TakePairParams,
    TakeParams,
    TakePortionParams,
)
from uniswap_v4.planner.actions_parser import parse_calldata
from uniswap_v4.types import normalize_address
from uniswap_v4.utils.path import encode_route_to_path

logger = structlog.get_logger()

# Actions on an existing position carry only a token id; the planner needs
# the position's currencies from the caller to account for them.
_TOKEN_ID_ACTIONS = (IncreaseLiquidityParams, DecreaseLiquidityParams, BurnPositionParams)


class PlannerState(Enum):
    OPEN = "open"
    FINALIZED = "finalized"


@dataclass
class CurrencyDelta:
    """Running delta of one currency within a batch.

    Attributes:
        amount: Known signed delta (negative: owed by the caller)
        open_debit: The caller owes an amount only known on chain
        open_credit: The caller is owed an amount only known on chain
    """

    amount: int = 0
    open_debit: bool = False
    open_credit: bool = False

    @property
    def resolved(self) -> bool:
        return self.amount == 0 and not self.open_debit and not self.open_credit

    def clear_debit(self) -> None:
        self.amount = max(self.amount, 0)
        self.open_debit = False

    def clear_credit(self) -> None:
        self.amount = min(self.amount, 0)
        self.open_credit = False


def currency_address(currency: Currency | str) -> str:
    """Address of a currency object or a raw address (zero address for native)."""
    if isinstance(currency, str):
        return normalize_address(currency, validate=True)
    return currency.address


class V4Planner:
    """Ordered builder of an ``abi.encode(bytes actions, bytes[] params)`` payload.

    The planner is a single linear builder and is not safe for concurrent
    mutation. Once ``finalize`` succeeds it rejects further actions and
    returns the same payload on every call.
    """

    def __init__(self) -> None:
        self.actions: list[Actions] = []
        self.params: list[ActionParams] = []
        self.state = PlannerState.OPEN
        self._deltas: dict[str, CurrencyDelta] = {}
        self._payload: bytes | None = None

    def __repr__(self) -> str:
        names = ", ".join(action.name for action in self.actions)
        return f"{type(self).__name__}({self.state.value}, [{names}])"

    # =========================================================================
    # Delta bookkeeping
    # =========================================================================

    def _delta(self, currency: str) -> CurrencyDelta:
        return self._deltas.setdefault(currency, CurrencyDelta())

    @property
    def deltas(self) -> dict[str, CurrencyDelta]:
        """Copy of the running delta map, keyed by currency address."""
        return {
            currency: CurrencyDelta(delta.amount, delta.open_debit, delta.open_credit)
            for currency, delta in self._deltas.items()
        }

    def unresolved_currencies(self) -> list[str]:
        return [currency for currency, delta in self._deltas.items() if not delta.resolved]

    def _apply(self, params: ActionParams, currencies: tuple[str, str] | None) -> None:
        if isinstance(params, (MintPositionParams, IncreaseLiquidityParams)):
            pair = (
                (params.pool_key.currency0, params.pool_key.currency1)
                if isinstance(params, MintPositionParams)
                else currencies
            )
            for currency in pair:
                self._delta(currency).open_debit = True

        elif isinstance(params, (DecreaseLiquidityParams, BurnPositionParams)):
            for currency in currencies:
                self._delta(currency).open_credit = True

        elif isinstance(params, (SwapExactInSingleParams, SwapExactInParams)):
            delta_in = self._delta(params.currency_in)
            if params.amount_in == OPEN_DELTA:
                delta_in.clear_credit()
            else:
                delta_in.amount -= params.amount_in
            self._delta(params.currency_out).open_credit = True

        elif isinstance(params, (SwapExactOutSingleParams, SwapExactOutParams)):
            delta_out = self._delta(params.currency_out)
            if params.amount_out == OPEN_DELTA:
                delta_out.clear_debit()
            else:
                delta_out.amount += params.amount_out
            self._delta(params.currency_in).open_debit = True

        elif isinstance(params, SettleParams):
            if params.amount == OPEN_DELTA:
                self._delta(params.currency).clear_debit()
            else:
                self._delta(params.currency).amount += params.amount

        elif isinstance(params, SettleAllParams):
            self._delta(params.currency).clear_debit()

        elif isinstance(params, SettlePairParams):
            self._delta(params.currency0).clear_debit()
            self._delta(params.currency1).clear_debit()

        elif isinstance(params, TakeParams):
            if params.amount == OPEN_DELTA:
                self._delta(params.currency).clear_credit()
            else:
                self._delta(params.currency).amount -= params.amount

        elif isinstance(params, (TakeAllParams, ClearOrTakeParams)):
            self._delta(params.currency).clear_credit()

        elif isinstance(params, TakePortionParams):
            # A partial portion leaves the rest of the credit open
            if params.bips == BIPS_BASE:
                self._delta(params.currency).clear_credit()

        elif isinstance(params, TakePairParams):
            self._delta(params.currency0).clear_credit()
            self._delta(params.currency1).clear_credit()

        elif isinstance(params, CloseCurrencyParams):
            delta = self._delta(params.currency)
            delta.clear_debit()
            delta.clear_credit()

        # SWEEP, WRAP and UNWRAP move router balances, not pool manager deltas

    # =========================================================================
    # Appending actions
    # =========================================================================

    def _check_open(self) -> None:
        if self.state is PlannerState.FINALIZED:
            raise PlannerFinalized("Planner is finalized; no further actions can be added")

    def add_action(
        self,
        params: ActionParams,
        currencies: Sequence[Currency | str] | None = None,
    ) -> V4Planner:
        """Append an action and update the delta map.

        Args:
            params: Validated parameters of the action
            currencies: The position's (currency0, currency1); required for
                increase, decrease and burn, which identify the position by
                token id only

        Raises:
            PlannerFinalized: If the planner was already finalized
            InvalidAction: If a token-id action is missing its currencies
        """
        self._check_open()

        pair = None
        if isinstance(params, _TOKEN_ID_ACTIONS):
            if currencies is None or len(currencies) != 2:
                raise InvalidAction(
                    f"{params.ACTION.name} requires the position's two currencies"
                )
            pair = (currency_address(currencies[0]), currency_address(currencies[1]))

        self._apply(params, pair)
        self.actions.append(params.ACTION)
        self.params.append(params)

        logger.debug(
            "planner_action_added",
            action=params.ACTION.name,
            index=len(self.actions) - 1,
        )
        return self

    def add_settle(
        self,
        currency: Currency | str,
        payer_is_user: bool,
        amount: int | None = None,
    ) -> V4Planner:
        """Settle a currency; without an amount the full open debt is paid."""
        return self.add_action(
            SettleParams(
                currency_address(currency),
                OPEN_DELTA if amount is None else amount,
                payer_is_user,
            )
        )

    def add_take(
        self,
        currency: Currency | str,
        recipient: str,
        amount: int | None = None,
    ) -> V4Planner:
        """Take a currency; without an amount the full open credit is taken."""
        return self.add_action(
            TakeParams(
                currency_address(currency),
                recipient,
                OPEN_DELTA if amount is None else amount,
            )
        )

    def add_swap(
        self,
        pool_key: PoolKey,
        zero_for_one: bool,
        amount: int,
        amount_limit: int,
        exact_output: bool = False,
        hook_data: bytes = EMPTY_BYTES,
    ) -> V4Planner:
        """Append a single-pool swap.

        Args:
            pool_key: Pool to swap through
            zero_for_one: Direction, currency0 to currency1 when True
            amount: Exact input (or exact output when ``exact_output``)
            amount_limit: Minimum output (or maximum input when ``exact_output``)
            exact_output: Build SWAP_EXACT_OUT_SINGLE instead of SWAP_EXACT_IN_SINGLE
            hook_data: Data forwarded to the pool's hook
        """
        if exact_output:
            params = SwapExactOutSingleParams(
                pool_key, zero_for_one, amount, amount_limit, hook_data
            )
        else:
            params = SwapExactInSingleParams(
                pool_key, zero_for_one, amount, amount_limit, hook_data
            )
        return self.add_action(params)

    def add_trade(self, trade: Trade, slippage_tolerance: Fraction | None = None) -> V4Planner:
        """Append the multi-hop swap of a single-route trade.

        Exact-input trades without a tolerance accept any output.

        Raises:
            InvalidAction: If the trade has more than one swap, or is
                exact-output without a slippage tolerance
        """
        exact_output = trade.trade_type is TradeType.EXACT_OUTPUT
        if exact_output and slippage_tolerance is None:
            raise InvalidAction("Exact-output trades require a slippage tolerance")
        if len(trade.swaps) != 1:
            raise InvalidAction(f"Only trades with one swap are accepted, got {len(trade.swaps)}")

        route = trade.route
        path = encode_route_to_path(route, exact_output)

        if exact_output:
            params = SwapExactOutParams(
                route.path_output.address,
                path,
                trade.output_amount.quotient,
                trade.maximum_amount_in(slippage_tolerance).quotient,
            )
        else:
            minimum_out = (
                trade.minimum_amount_out(slippage_tolerance).quotient
                if slippage_tolerance is not None
                else 0
            )
            params = SwapExactInParams(
                route.path_input.address,
                path,
                trade.input_amount.quotient,
                minimum_out,
            )
        return self.add_action(params)

    # =========================================================================
    # Output
    # =========================================================================

    def finalize(self) -> bytes:
        """Encode the batch.

        Returns:
            ``abi.encode(bytes actions, bytes[] params)``; the same bytes on
            every call once finalized

        Raises:
            UnsettledCurrency: If any touched currency has an unresolved delta
        """
        if self._payload is not None:
            return self._payload

        unresolved = self.unresolved_currencies()
        if unresolved:
            logger.debug("planner_unsettled", currencies=unresolved)
            raise UnsettledCurrency(unresolved)

        payload = encode(
            ["bytes", "bytes[]"],
            [bytes(self.actions), [params.encode() for params in self.params]],
        )
        self._payload = payload
        self.state = PlannerState.FINALIZED

        logger.debug("planner_finalized", num_actions=len(self.actions), size=len(payload))
        return payload

    @classmethod
    def resume(
        cls,
        payload: bytes | str,
        position_currencies: Mapping[int, Iterable[Currency | str]] | None = None,
    ) -> V4Planner:
        """Rebuild an open planner by replaying an encoded payload.

        Args:
            payload: A payload produced by ``finalize``
            position_currencies: (currency0, currency1) per token id, needed
                when the payload touches existing positions

        Raises:
            InvalidAction: If the payload does not decode or a token id has
                no currencies
        """
        position_currencies = position_currencies or {}
        planner = cls()
        for _, params in parse_calldata(payload):
            currencies = None
            if isinstance(params, _TOKEN_ID_ACTIONS):
                if params.token_id not in position_currencies:
                    raise InvalidAction(
                        f"No currencies supplied for position {params.token_id}"
                    )
                currencies = tuple(position_currencies[params.token_id])
            planner.add_action(params, currencies)
        return planner


__all__ = ["CurrencyDelta", "PlannerState", "V4Planner", "currency_address"]
