"""Rebalance Engine — своп к целевому соотношению перед депозитом.

Состояния:
- BALANCED: доля quote стороны в dead-band [0.48, 0.52], своп не нужен
- NEEDS_QUOTE_IN / NEEDS_BASE_IN: недовзвешенная сторона вносится свопом
- SWAPPED: выход свопа получен (симуляцией или исполнением)
- LIQUIDITY_PRICED: депозит оценён против пост-своп балансов
- EXECUTED: обе ноги исполнены атомарно

Доля считается по балансам, оценённым курсом оракула: LP-ratio оценка по
построению всегда равна весу quote стороны и дисбаланс не отражает.
Обе ноги (своп и депозит) оцениваются против одного и того же
симулированного пост-своп состояния.
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional

from src.core.config import RebalanceConfig
from src.core.domain.plans import DepositPlan, RebalancePlan, RebalanceState
from src.core.domain.pool_state import PoolBalances
from src.core.errors import ExpectedSharesViolation, InvariantViolation, PoolNotLiquid
from src.core.math.fixed_point import ONE, ZERO, Fixed64x64
from src.core.math.integer_math import WAD, validate_positive
from src.curve.pool import FXPool
from src.ledger.vault import BalanceLedger

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: Dict[RebalanceState, FrozenSet[RebalanceState]] = {
    RebalanceState.BALANCED: frozenset({RebalanceState.LIQUIDITY_PRICED}),
    RebalanceState.NEEDS_QUOTE_IN: frozenset({RebalanceState.SWAPPED}),
    RebalanceState.NEEDS_BASE_IN: frozenset({RebalanceState.SWAPPED}),
    RebalanceState.SWAPPED: frozenset({RebalanceState.LIQUIDITY_PRICED}),
    RebalanceState.LIQUIDITY_PRICED: frozenset({RebalanceState.EXECUTED}),
    RebalanceState.EXECUTED: frozenset(),
}


@dataclass(frozen=True)
class PoolRatio:
    """Оценка пула по курсу оракула."""

    base_numeraire: Fixed64x64
    quote_numeraire: Fixed64x64
    total: Fixed64x64
    quote_ratio: Fixed64x64


class RebalanceEngine:
    """Определение минимального свопа и оценка депозита после него.

    Dead-band и цель задаются RebalanceConfig (1e18 scale):
    - lower_band ≤ quote_ratio ≤ upper_band → BALANCED
    - quote_ratio < lower_band → NEEDS_QUOTE_IN
    - quote_ratio > upper_band → NEEDS_BASE_IN
    """

    def __init__(self, config: Optional[RebalanceConfig] = None):
        self.config = config or RebalanceConfig()
        self._lower = Fixed64x64.divu(self.config.lower_band, WAD)
        self._upper = Fixed64x64.divu(self.config.upper_band, WAD)
        self._target = Fixed64x64.divu(self.config.target_ratio, WAD)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    @staticmethod
    def transition(plan: RebalancePlan, new_state: RebalanceState) -> RebalancePlan:
        """Переход плана в новое состояние (только разрешённые переходы)."""
        if new_state not in ALLOWED_TRANSITIONS[plan.state]:
            raise InvariantViolation(
                f"illegal rebalance transition {plan.state.value} → {new_state.value}"
            )
        return plan.model_copy(update={"state": new_state})

    # -------------------------------------------------------------------------
    # Ratio
    # -------------------------------------------------------------------------

    def pool_ratio(self, pool: FXPool, balances: PoolBalances) -> PoolRatio:
        """Доля quote стороны в numeraire по курсу оракула.

        Raises:
            PoolNotLiquid: Если суммарная оценка пула равна нулю
        """
        base_numeraire = pool.base_assimilator.view_numeraire_balance(balances)
        quote_numeraire = pool.quote_assimilator.view_numeraire_balance(balances)
        total = base_numeraire + quote_numeraire
        if not total.is_positive():
            raise PoolNotLiquid(f"pool {pool.pool_id} has zero numeraire liquidity")
        return PoolRatio(
            base_numeraire=base_numeraire,
            quote_numeraire=quote_numeraire,
            total=total,
            quote_ratio=quote_numeraire.div(total),
        )

    def calculate_swap_amount(self, pool: FXPool, balances: PoolBalances) -> RebalancePlan:
        """Своп, возвращающий долю quote стороны ровно к target_ratio.

        Внутри dead-band возвращается BALANCED с нулевой суммой. Иначе
        asset_in — недовзвешенная сторона, сумма — raw эквивалент дефицита
        total * target - side (по курсу оракула).
        """
        ratio = self.pool_ratio(pool, balances)

        if self._lower <= ratio.quote_ratio <= self._upper:
            logger.debug(
                f"Pool {pool.pool_id} balanced: quote_ratio={ratio.quote_ratio.to_decimal():.6f}"
            )
            return RebalancePlan(state=RebalanceState.BALANCED)

        if ratio.quote_ratio < self._lower:
            deficit = ratio.total.mul(self._target) - ratio.quote_numeraire
            assimilator = pool.quote_assimilator
            state = RebalanceState.NEEDS_QUOTE_IN
        else:
            deficit = ratio.total.mul(ONE - self._target) - ratio.base_numeraire
            assimilator = pool.base_assimilator
            state = RebalanceState.NEEDS_BASE_IN

        if deficit <= ZERO:
            return RebalancePlan(state=RebalanceState.BALANCED)

        amount_in = assimilator.view_raw_amount(deficit)
        if amount_in == 0:
            return RebalancePlan(state=RebalanceState.BALANCED)

        logger.info(
            f"Pool {pool.pool_id} {state.value}: quote_ratio={ratio.quote_ratio.to_decimal():.6f}, "
            f"swap_in={amount_in} {assimilator.token.symbol}"
        )
        return RebalancePlan(
            state=state,
            target_asset_in=assimilator.token,
            asset_in_index=pool.token_index(assimilator.token),
            swap_amount_in_raw=amount_in,
        )

    # -------------------------------------------------------------------------
    # Swap leg
    # -------------------------------------------------------------------------

    def quote_swap_output(
        self, ledger: BalanceLedger, pool: FXPool, plan: RebalancePlan
    ) -> RebalancePlan:
        """Read-only симуляция выхода свопа через ledger.

        BALANCED план возвращается без изменений.
        """
        if not plan.needs_swap():
            return plan

        token_in = plan.target_asset_in
        token_out = pool.quote_token if token_in.address == pool.base_token.address else pool.base_token
        amount_out = ledger.simulate_swap(pool.pool_id, token_in, token_out, plan.swap_amount_in_raw)
        swapped = self.transition(plan, RebalanceState.SWAPPED)
        return swapped.model_copy(update={"swap_amount_out_raw": amount_out})

    @staticmethod
    def post_swap_balances(
        pool: FXPool, balances: PoolBalances, plan: RebalancePlan
    ) -> PoolBalances:
        """Балансы пула так, как если бы своп уже был исполнен.

        Raises:
            BaseBalanceViolation / QuoteBalanceViolation: Если сторона ушла бы в минус
        """
        if not plan.needs_swap():
            return balances
        if plan.target_asset_in.address == pool.base_token.address:
            return balances.adjusted(plan.swap_amount_in_raw, -plan.swap_amount_out_raw)
        return balances.adjusted(-plan.swap_amount_out_raw, plan.swap_amount_in_raw)

    # -------------------------------------------------------------------------
    # Liquidity leg
    # -------------------------------------------------------------------------

    def plan_rebalanced_deposit(
        self,
        pool: FXPool,
        balances: PoolBalances,
        total_supply: int,
        deposit: Fixed64x64,
        plan: RebalancePlan,
    ) -> DepositPlan:
        """Оценка депозита против симулированного пост-своп состояния.

        Args:
            pool: Пул
            balances: Балансы до свопа (свежие из ledger)
            total_supply: Supply shares
            deposit: Депозит в numeraire
            plan: План свопа (BALANCED или SWAPPED)

        Raises:
            AmountMustBePositive: Если deposit <= 0
            PoolNotLiquid: Если пул пуст (первый депозит этим engine не поддерживается)
        """
        validate_positive(deposit.raw, "deposit")
        if plan.needs_swap() and plan.state != RebalanceState.SWAPPED:
            raise InvariantViolation(
                f"deposit cannot be priced before swap output is known (state={plan.state.value})"
            )

        post_swap = self.post_swap_balances(pool, balances, plan)
        if pool.liquidity(post_swap).is_zero():
            raise PoolNotLiquid(f"pool {pool.pool_id} has zero gross liquidity")

        return pool.on_join(deposit, post_swap, total_supply)


def require_min_shares(actual_shares: int, min_shares: int) -> None:
    """Raises ExpectedSharesViolation, если выпущено меньше min_shares."""
    if actual_shares < min_shares:
        raise ExpectedSharesViolation(
            f"minted {actual_shares} shares, below expected minimum {min_shares}"
        )
