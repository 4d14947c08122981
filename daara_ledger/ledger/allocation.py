"""
Fund Allocation

Splits a month's net balance across the three reserve funds.

Each fund is computed on its own:

    new_balance = prior_balance + net * percent / 100

Nothing ties the three shares together. If the configured percentages do
not add up to 100, the funds together receive more (or less) than the net.
That is accepted behavior; the operator sees the percentage total and
corrects it in the configuration.
"""

from decimal import Decimal
from typing import Mapping

from daara_ledger.models import (
    HUNDRED,
    ZERO,
    AppConfig,
    FundAllocation,
    FundKey,
    FundState,
)


def fund_share(net_monthly: Decimal, percent: int) -> Decimal:
    """A fund's share of the net. Negative when the month ran a deficit."""
    return net_monthly * Decimal(percent) / HUNDRED


def allocate(
    net_monthly: Decimal,
    prior_balances: Mapping[FundKey, Decimal],
    percents: Mapping[FundKey, int],
) -> dict[FundKey, Decimal]:
    """
    Compute each fund's new balance.

    Args:
        net_monthly: Month's net (received - expenses), may be negative
        prior_balances: Balance of each fund before this month
        percents: Percentage of the net going to each fund

    Returns:
        New balance per fund. Missing keys count as zero.
    """
    return {
        fund: prior_balances.get(fund, ZERO) + fund_share(net_monthly, percents.get(fund, 0))
        for fund in FundKey
    }


def build_allocation(
    net_monthly: Decimal,
    current: FundAllocation,
    config: AppConfig,
) -> FundAllocation:
    """
    Rebuild a month's allocation from its prior balances and the current split.

    Prior balances are kept; every new balance is recomputed.
    """
    prior = current.prior_balances()
    new = allocate(net_monthly, prior, config.percents())
    return FundAllocation.from_states({
        fund: FundState(prior_balance=prior[fund], new_balance=new[fund])
        for fund in FundKey
    })
