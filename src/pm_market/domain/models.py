"""Domain models for pm_market — what the price feed knows about a market.

Market identifiers:
  - "{id}"           binary Yes/No market, priced at the Yes outcome
  - "{id}_{i}"       outcome i of a multi-outcome market (a virtual binary market)
  - any of the above + "_no"   the No side of that binary target
"""

from dataclasses import dataclass, field
from decimal import Decimal

from src.pm_common.money import ONE

NO_SUFFIX = "_no"


@dataclass
class FeedMarket:
    id: str
    question: str
    group_item_title: str = ""
    outcomes: list[str] = field(default_factory=list)
    outcome_prices: list[Decimal] = field(default_factory=list)
    active: bool = True
    closed: bool = False

    @property
    def is_open(self) -> bool:
        return self.active and not self.closed

    @property
    def is_yes_no(self) -> bool:
        return (
            len(self.outcomes) == 2
            and self.outcomes[0].lower() == "yes"
            and self.outcomes[1].lower() == "no"
        )

    @property
    def label(self) -> str:
        return self.group_item_title or self.question

    def yes_prices(self) -> dict[str, Decimal]:
        """Target id -> yes-price. Binary markets keep their id; others expand per outcome."""
        if not self.is_open:
            return {}
        if self.is_yes_no:
            if not self.outcome_prices:
                return {}
            return {self.id: self.outcome_prices[0]}
        return {
            f"{self.id}_{i}": price
            for i, price in enumerate(self.outcome_prices[: len(self.outcomes)])
        }


def is_no_target(market_id: str) -> bool:
    return market_id.endswith(NO_SUFFIX)


def base_market_id(market_id: str) -> str:
    """Strip the "_no" suffix: "123_no" -> "123", "123_2_no" -> "123_2"."""
    return market_id[: -len(NO_SUFFIX)] if is_no_target(market_id) else market_id


def effective_price(yes_prices: dict[str, Decimal], market_id: str) -> Decimal | None:
    """Price for an order/position target, or None when the market is absent.

    A direct entry wins; otherwise a "_no" target is priced at 1 - yes of its base.
    """
    if market_id in yes_prices:
        return yes_prices[market_id]
    if is_no_target(market_id):
        yes = yes_prices.get(base_market_id(market_id))
        if yes is not None:
            return ONE - yes
    return None
