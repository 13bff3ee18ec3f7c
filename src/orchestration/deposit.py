"""
DepositService — swap-then-deposit в FX пул

Операции:
- quote_rebalanced_deposit: read-only котировка со slippage envelope
- execute_rebalanced_deposit: атомарное исполнение свопа и депозита

Котировка никогда не переиспользуется при исполнении: execute заново
читает балансы и строит план. Вызывающая сторона защищается от дрейфа
цены через min_shares / max_base / max_quote из котировки. Потолки
ограничивают чистый расход по каждому токену за обе ноги:
вход свопа + сумма депозита - выход свопа.
"""

import logging
from typing import Dict, Optional

from src.core.config import EngineConfig
from src.core.contracts import validate_contract
from src.core.domain.plans import (
    DepositPlan,
    RebalancedDepositQuote,
    RebalancedDepositResult,
    RebalancePlan,
    RebalanceState,
)
from src.core.domain.token import Token, require_address
from src.core.errors import MaxAmountViolation
from src.core.math.fixed_point import Fixed64x64
from src.core.math.integer_math import WAD, bps_down, bps_up, validate_bps, validate_positive
from src.curve.pool import FXPool
from src.ledger.guard import ReentrancyGuard, non_reentrant
from src.ledger.vault import BalanceLedger, read_pool_balances
from src.rebalance.engine import RebalanceEngine, require_min_shares

logger = logging.getLogger(__name__)


def numeraire_from_wad(amount: int) -> Fixed64x64:
    """Депозит в 18-decimal единицах → numeraire 64.64."""
    validate_positive(amount, "deposit_numeraire")
    return Fixed64x64.divu(amount, WAD)


def counter_token(pool: FXPool, token: Token) -> Token:
    return pool.quote_token if token.address == pool.base_token.address else pool.base_token


def swap_flows(pool: FXPool, plan: RebalancePlan) -> Dict[str, int]:
    """Поток свопа по адресу токена: вход вызывающей стороны (+), выход (-)."""
    flows = {pool.base_token.address: 0, pool.quote_token.address: 0}
    if plan.needs_swap():
        token_in = plan.target_asset_in
        flows[token_in.address] += plan.swap_amount_in_raw
        flows[counter_token(pool, token_in).address] -= plan.swap_amount_out_raw
    return flows


class DepositService:
    """Операционная поверхность swap-then-deposit."""

    def __init__(
        self,
        ledger: BalanceLedger,
        engine: Optional[RebalanceEngine] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.ledger = ledger
        self.config = config or EngineConfig()
        self.engine = engine or RebalanceEngine(self.config.rebalance)
        self._guard = ReentrancyGuard()

    def _price(self, pool: FXPool, deposit: Fixed64x64) -> tuple[RebalancePlan, DepositPlan]:
        """Оценка обеих ног против одного симулированного состояния."""
        balances = read_pool_balances(self.ledger, pool)
        total_supply = self.ledger.total_supply(pool.pool_id)

        swap_plan = self.engine.calculate_swap_amount(pool, balances)
        swap_plan = self.engine.quote_swap_output(self.ledger, pool, swap_plan)
        deposit_plan = self.engine.plan_rebalanced_deposit(
            pool, balances, total_supply, deposit, swap_plan
        )
        validate_contract(deposit_plan)
        return self.engine.transition(swap_plan, RebalanceState.LIQUIDITY_PRICED), deposit_plan

    def quote_rebalanced_deposit(
        self, pool_id: str, deposit_numeraire: int, slippage_bps: int
    ) -> RebalancedDepositQuote:
        """
        Read-only котировка swap-then-deposit.

        max_base / max_quote покрывают сумму депозита и, для актива свопа,
        вход свопа. Выход свопа в потолке не учитывается.

        Args:
            pool_id: Пул
            deposit_numeraire: Депозит в numeraire (18 decimals)
            slippage_bps: Допуск: сужает min_shares и расширяет max_base/max_quote

        Returns:
            RebalancedDepositQuote(min_shares, max_base, max_quote, swap_asset, swap_amount_raw)
        """
        validate_bps(slippage_bps)
        deposit = numeraire_from_wad(deposit_numeraire)
        pool = self.ledger.pool(pool_id)

        swap_plan, deposit_plan = self._price(pool, deposit)
        swap_in = {pool.base_token.address: 0, pool.quote_token.address: 0}
        if swap_plan.needs_swap():
            swap_in[swap_plan.target_asset_in.address] = swap_plan.swap_amount_in_raw

        quote = RebalancedDepositQuote(
            min_shares=bps_down(deposit_plan.expected_shares, slippage_bps),
            max_base=bps_up(
                deposit_plan.base_token_amount + swap_in[pool.base_token.address], slippage_bps
            ),
            max_quote=bps_up(
                deposit_plan.quote_token_amount + swap_in[pool.quote_token.address], slippage_bps
            ),
            swap_asset=swap_plan.target_asset_in,
            swap_amount_raw=swap_plan.swap_amount_in_raw,
        )
        validate_contract(quote)
        return quote

    @non_reentrant
    def execute_rebalanced_deposit(
        self,
        sender: str,
        pool_id: str,
        deposit_numeraire: int,
        max_base: int,
        max_quote: int,
        min_shares: int,
    ) -> RebalancedDepositResult:
        """
        Атомарное исполнение: своп (если нужен) и депозит.

        max_base / max_quote ограничивают чистый расход sender по токену за
        обе ноги. При любой ошибке (включая SlippageViolation после мутаций)
        ledger откатывается целиком.

        Raises:
            ExpectedSharesViolation: Если выпущено меньше min_shares
            MaxAmountViolation: Если расход по токену превышает max_base / max_quote
        """
        sender = require_address(sender, "sender")
        deposit = numeraire_from_wad(deposit_numeraire)
        pool = self.ledger.pool(pool_id)
        ceilings = {pool.base_token.address: max_base, pool.quote_token.address: max_quote}

        with self.ledger.transaction():
            swap_plan, deposit_plan = self._price(pool, deposit)
            flows = swap_flows(pool, swap_plan)

            if swap_plan.needs_swap():
                token_in = swap_plan.target_asset_in
                if swap_plan.swap_amount_in_raw > ceilings[token_in.address]:
                    raise MaxAmountViolation(
                        f"swap requires {swap_plan.swap_amount_in_raw} {token_in.symbol}, "
                        f"above max {ceilings[token_in.address]}"
                    )
                self.ledger.execute_swap(
                    sender,
                    pool_id,
                    token_in,
                    counter_token(pool, token_in),
                    swap_plan.swap_amount_in_raw,
                    min_out=swap_plan.swap_amount_out_raw,
                )

            # Депозиту остаётся потолок за вычетом чистого потока свопа
            shares, amounts = self.ledger.join(
                sender,
                pool_id,
                [ceilings[t.address] - flows[t.address] for t in pool.tokens],
                deposit,
            )
            require_min_shares(shares, min_shares)
            executed = self.engine.transition(swap_plan, RebalanceState.EXECUTED)

        spent = {t.address: a + flows[t.address] for t, a in zip(pool.tokens, amounts)}
        logger.info(
            f"Rebalanced deposit {pool_id}: sender={sender} shares={shares} "
            f"expected={deposit_plan.expected_shares} swap_in={executed.swap_amount_in_raw}"
        )
        return RebalancedDepositResult(
            state=executed.state,
            shares_minted=shares,
            base_spent=spent[pool.base_token.address],
            quote_spent=spent[pool.quote_token.address],
            swap_amount_in_raw=executed.swap_amount_in_raw,
            swap_amount_out_raw=executed.swap_amount_out_raw,
        )
