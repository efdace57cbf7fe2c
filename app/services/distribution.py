"""
Revenue split for an approved Revenue Request.

Everything here is pure: the approval transaction feeds in the stored total
and one Contribution per referenced collection, and applies the resulting
ledger credits. Money is handled as Decimal quantized to cents.

Fixed split of the total revenue R:
    users        40%  divided across the distinct users
    transporters 30%  divided across the distinct transporters
    government   30%  half municipality, half central government
    recycler     R - (users + transporters + government), the residual
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import Dict, Iterable, List
import uuid

from app.db.schema import WalletOwnerType


USER_POOL_RATE = Decimal("0.40")
TRANSPORTER_POOL_RATE = Decimal("0.30")
GOVERNMENT_POOL_RATE = Decimal("0.30")

CENT = Decimal("0.01")

EQUAL = "equal"
PROPORTIONAL = "proportional"


def to_money(value) -> Decimal:
    # str() first so floats like 0.1 keep their shortest repr
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def collection_revenue(wet, dry, hazardous, price_wet, price_dry, price_hazardous) -> Decimal:
    """wet*p_wet + dry*p_dry + hazardous*p_hazardous, unrounded."""
    return (
        Decimal(str(wet)) * Decimal(str(price_wet))
        + Decimal(str(dry)) * Decimal(str(price_dry))
        + Decimal(str(hazardous)) * Decimal(str(price_hazardous))
    )


@dataclass(frozen=True)
class Contribution:
    """One referenced collection as seen by the distribution."""
    user_id: uuid.UUID
    transporter_id: uuid.UUID
    revenue: Decimal = Decimal("0")


@dataclass(frozen=True)
class LedgerCredit:
    owner_type: WalletOwnerType
    owner_id: uuid.UUID
    amount: Decimal


@dataclass(frozen=True)
class Distribution:
    total_revenue: Decimal
    total_user_share: Decimal
    total_transporter_share: Decimal
    municipality_share: Decimal
    central_gov_share: Decimal
    recycler_share: Decimal
    credits: List[LedgerCredit] = field(default_factory=list)


def split_pool(pool: Decimal, weights: Dict[uuid.UUID, Decimal]) -> Dict[uuid.UUID, Decimal]:
    """
    Divides `pool` across the keys of `weights` in proportion to their weight.

    Every share but the last is rounded down to the cent; the last owner
    takes what is left so the shares always add up to exactly `pool`.
    If all weights are zero the pool is split equally.
    """
    if not weights:
        return {}

    owners = list(weights)
    total_weight = sum(weights.values(), Decimal("0"))
    if total_weight <= 0:
        weights = {owner: Decimal("1") for owner in owners}
        total_weight = Decimal(len(owners))

    shares: Dict[uuid.UUID, Decimal] = {}
    allocated = Decimal("0")
    for owner in owners[:-1]:
        share = (pool * weights[owner] / total_weight).quantize(
            CENT, rounding=ROUND_DOWN)
        shares[owner] = share
        allocated += share

    shares[owners[-1]] = pool - allocated
    return shares


def _weights(contributions: Iterable[Contribution], key: str, policy: str) -> Dict[uuid.UUID, Decimal]:
    # dict keeps first-seen order, which fixes who absorbs the rounding remainder
    weights: Dict[uuid.UUID, Decimal] = {}
    for c in contributions:
        owner = getattr(c, key)
        if policy == PROPORTIONAL:
            weights[owner] = weights.get(owner, Decimal("0")) + c.revenue
        else:
            weights[owner] = Decimal("1")
    return weights


def compute_distribution(total_revenue, contributions: List[Contribution], policy: str = EQUAL) -> Distribution:
    """
    Splits `total_revenue` across the stakeholders of `contributions`.

    With the `equal` policy every distinct user (and transporter) gets the
    same slice of their pool regardless of how much they contributed. With
    `proportional` the slices follow each stakeholder's revenue contribution.
    """
    if policy not in (EQUAL, PROPORTIONAL):
        raise ValueError(f"Unknown distribution policy '{policy}'.")

    total = to_money(total_revenue)

    # Pools round down so the recycler residual can never go negative
    user_pool = (total * USER_POOL_RATE).quantize(CENT, rounding=ROUND_DOWN)
    transporter_pool = (total * TRANSPORTER_POOL_RATE).quantize(
        CENT, rounding=ROUND_DOWN)
    government_pool = (total * GOVERNMENT_POOL_RATE).quantize(
        CENT, rounding=ROUND_DOWN)

    municipality_share = (government_pool / 2).quantize(
        CENT, rounding=ROUND_DOWN)
    central_gov_share = government_pool - municipality_share

    recycler_share = total - (user_pool + transporter_pool + government_pool)

    credits: List[LedgerCredit] = []
    user_shares = split_pool(
        user_pool, _weights(contributions, "user_id", policy))
    for owner_id, amount in user_shares.items():
        if amount > 0:
            credits.append(LedgerCredit(
                WalletOwnerType.USER, owner_id, amount))

    transporter_shares = split_pool(
        transporter_pool, _weights(contributions, "transporter_id", policy))
    for owner_id, amount in transporter_shares.items():
        if amount > 0:
            credits.append(LedgerCredit(
                WalletOwnerType.TRANSPORTER, owner_id, amount))

    return Distribution(
        total_revenue=total,
        total_user_share=user_pool,
        total_transporter_share=transporter_pool,
        municipality_share=municipality_share,
        central_gov_share=central_gov_share,
        recycler_share=recycler_share,
        credits=credits
    )
