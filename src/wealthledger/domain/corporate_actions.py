"""Corporate action processing for investment holdings.

Pure functions: given a holding's current quantity and average cost and an
action, compute the next state and any realized gain. Nothing here touches
the store, so the same rules serve live postings and backfills.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional

from wealthledger.domain.entities import AssetAction
from wealthledger.domain.errors import ValidationError
from wealthledger.domain import errors
from wealthledger.domain.precision import (
    ZERO,
    Number,
    quantize_money,
    quantize_quantity,
    to_decimal,
)


@dataclass(frozen=True)
class CorporateActionResult:
    """Holding state after an action, plus the gain it realized."""

    quantity: Decimal
    average_cost: Decimal
    realized_gain_loss: Decimal = ZERO

    @property
    def cost_basis(self) -> Decimal:
        return quantize_money(self.quantity * self.average_cost)


ActionHandler = Callable[[Decimal, Decimal, Decimal, Decimal], CorporateActionResult]

# Actions that change quantity or cost basis
POSITION_ACTIONS = frozenset({AssetAction.BUY, AssetAction.SELL, AssetAction.SPLIT, AssetAction.BONUS})

_handlers: dict[AssetAction, ActionHandler] = {}


def register_action_handler(
    action: AssetAction, handler: Optional[ActionHandler] = None
):
    """Register the handler for an action, replacing any existing one.

    Usable directly or as a decorator::

        @register_action_handler(AssetAction.MERGER)
        def merge(qty, avg, action_qty, price):
            ...

    Handlers receive (current_qty, current_avg_cost, action_qty, action_price)
    as Decimals and return a CorporateActionResult.
    """
    if handler is not None:
        _handlers[action] = handler
        return handler

    def decorator(func: ActionHandler) -> ActionHandler:
        _handlers[action] = func
        return func

    return decorator


def get_action_handler(action: AssetAction) -> ActionHandler:
    """Return the registered handler for an action."""
    try:
        return _handlers[action]
    except KeyError:
        raise ValidationError(f"No handler registered for action {action.value}") from None


def apply_corporate_action(
    current_qty: Number,
    current_avg_cost: Number,
    action: AssetAction,
    action_qty: Number = ZERO,
    action_price: Number = ZERO,
) -> CorporateActionResult:
    """Compute the next holding state for an action.

    Args:
        current_qty: Units currently held
        current_avg_cost: Current weighted average cost per unit
        action: Action to apply
        action_qty: Units bought/sold/granted, or the ratio for a split
        action_price: Price per unit for buys and sells

    Returns:
        CorporateActionResult with quantity quantized to 8 places and
        cost/gain to 4 places

    Raises:
        ValidationError: If the action is not valid for the current state
            (oversell, non-positive split ratio...)
    """
    qty = to_decimal(current_qty)
    avg = to_decimal(current_avg_cost)
    if qty < ZERO:
        raise ValidationError(f"Holding quantity cannot be negative: {qty}")
    if avg < ZERO:
        raise ValidationError(f"Average cost cannot be negative: {avg}")

    handler = get_action_handler(AssetAction(action))
    return handler(qty, avg, to_decimal(action_qty), to_decimal(action_price))


def _buy(qty: Decimal, avg: Decimal, action_qty: Decimal, price: Decimal) -> CorporateActionResult:
    if action_qty <= ZERO:
        raise ValidationError(f"Buy quantity must be positive, got {action_qty}")
    if price < ZERO:
        raise ValidationError(f"Buy price cannot be negative, got {price}")
    new_qty = qty + action_qty
    if new_qty <= ZERO:
        raise ValidationError(f"Buy would leave a non-positive quantity ({new_qty})")
    new_avg = (qty * avg + action_qty * price) / new_qty
    return CorporateActionResult(quantize_quantity(new_qty), quantize_money(new_avg))


def _sell(qty: Decimal, avg: Decimal, action_qty: Decimal, price: Decimal) -> CorporateActionResult:
    if action_qty <= ZERO:
        raise ValidationError(f"Sell quantity must be positive, got {action_qty}")
    if price < ZERO:
        raise ValidationError(f"Sell price cannot be negative, got {price}")
    if action_qty > qty:
        raise ValidationError(errors.oversell("position", action_qty, qty))
    gain = action_qty * (price - avg)
    return CorporateActionResult(
        quantize_quantity(qty - action_qty), quantize_money(avg), quantize_money(gain)
    )


def _split(qty: Decimal, avg: Decimal, ratio: Decimal, price: Decimal) -> CorporateActionResult:
    if ratio <= ZERO:
        raise ValidationError(f"Split ratio must be positive, got {ratio}")
    return CorporateActionResult(quantize_quantity(qty * ratio), quantize_money(avg / ratio))


def _bonus(qty: Decimal, avg: Decimal, action_qty: Decimal, price: Decimal) -> CorporateActionResult:
    if action_qty <= ZERO:
        raise ValidationError(f"Bonus quantity must be positive, got {action_qty}")
    new_qty = qty + action_qty
    # Bonus units are free: total cost is spread over the larger position
    return CorporateActionResult(quantize_quantity(new_qty), quantize_money(qty * avg / new_qty))


def _pass_through(qty: Decimal, avg: Decimal, action_qty: Decimal, price: Decimal) -> CorporateActionResult:
    return CorporateActionResult(quantize_quantity(qty), quantize_money(avg))


register_action_handler(AssetAction.BUY, _buy)
register_action_handler(AssetAction.SELL, _sell)
register_action_handler(AssetAction.SPLIT, _split)
register_action_handler(AssetAction.BONUS, _bonus)
for _action in (
    AssetAction.DIVIDEND,
    AssetAction.RIGHTS,
    AssetAction.MERGER,
    AssetAction.SPINOFF,
    AssetAction.OTHER,
):
    register_action_handler(_action, _pass_through)
