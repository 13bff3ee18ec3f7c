"""
MigrationService — перенос LP позиции между пулами с одинаковыми токенами

Поток execute_migration (одна транзакция ledger):
1. exit 100% позиции вызывающей стороны из старого пула
2. оценка депозита в новый пул по выведенным суммам с буфером 99%
3. join в новый пул; остаток (dust) остаётся у вызывающей стороны
4. проверка min_shares

Совпадение токенов проверяется до любого чтения балансов.
"""

import logging
from typing import Optional, Tuple

from src.core.config import EngineConfig
from src.core.contracts import validate_contract
from src.core.domain.plans import DepositPlan, MigrationQuote, MigrationResult
from src.core.domain.pool_state import PoolBalances
from src.core.domain.token import require_address
from src.core.errors import (
    BaseBalanceViolation,
    QuoteBalanceViolation,
    TokenMismatch,
)
from src.core.math.fixed_point import Fixed64x64, min_fixed
from src.core.math.integer_math import BPS_DENOMINATOR, mul_div, validate_positive
from src.curve.pool import FXPool
from src.ledger.guard import ReentrancyGuard, non_reentrant
from src.ledger.vault import BalanceLedger, read_pool_balances
from src.rebalance.engine import require_min_shares

logger = logging.getLogger(__name__)


class MigrationService:
    """Операционная поверхность миграции позиции."""

    def __init__(self, ledger: BalanceLedger, config: Optional[EngineConfig] = None):
        self.ledger = ledger
        self.config = config or EngineConfig()
        self._guard = ReentrancyGuard()

    def _pools(self, old_pool_id: str, new_pool_id: str) -> Tuple[FXPool, FXPool]:
        old_pool = self.ledger.pool(old_pool_id)
        new_pool = self.ledger.pool(new_pool_id)
        if not old_pool.same_tokens(new_pool):
            raise TokenMismatch(
                f"pools {old_pool_id} ({old_pool.base_token.symbol}/{old_pool.quote_token.symbol}) "
                f"and {new_pool_id} ({new_pool.base_token.symbol}/{new_pool.quote_token.symbol}) "
                "hold different tokens"
            )
        return old_pool, new_pool

    def _deposit_capacity(
        self, pool: FXPool, balances: PoolBalances, base_raw: int, quote_raw: int
    ) -> Fixed64x64:
        """Максимальный numeraire депозит, покрываемый суммами base_raw / quote_raw.

        Пустой пул оценивается курсом оракула и весами. Иначе депозит
        ограничен меньшей из долей base_raw / base_balance и
        quote_raw / quote_balance от gross liquidity.
        """
        liquidity = pool.liquidity(balances)

        if liquidity.is_zero():
            by_base = pool.base_assimilator.view_numeraire_amount(base_raw).div(
                pool.weights.base_fraction()
            )
            by_quote = pool.quote_assimilator.view_numeraire_amount(quote_raw).div(
                pool.weights.quote_fraction()
            )
            return min_fixed(by_base, by_quote)

        by_base = Fixed64x64(mul_div(liquidity.total.raw, base_raw, balances.base_raw))
        by_quote = Fixed64x64(mul_div(liquidity.total.raw, quote_raw, balances.quote_raw))
        return min_fixed(by_base, by_quote)

    def _plan_new_deposit(self, pool: FXPool, base_raw: int, quote_raw: int) -> DepositPlan:
        """План депозита выведенных сумм в новый пул с буфером."""
        balances = read_pool_balances(self.ledger, pool)
        total_supply = self.ledger.total_supply(pool.pool_id)

        capacity = self._deposit_capacity(pool, balances, base_raw, quote_raw)
        buffer_bps = self.config.migration.deposit_buffer_bps
        deposit = Fixed64x64(capacity.raw * buffer_bps // BPS_DENOMINATOR)

        plan = pool.on_join(deposit, balances, total_supply)
        if plan.base_token_amount > base_raw:
            raise BaseBalanceViolation(
                f"migration deposit needs {plan.base_token_amount} base, exit yields {base_raw}"
            )
        if plan.quote_token_amount > quote_raw:
            raise QuoteBalanceViolation(
                f"migration deposit needs {plan.quote_token_amount} quote, exit yields {quote_raw}"
            )
        validate_contract(plan)
        return plan

    def quote_migration(
        self, old_pool_id: str, new_pool_id: str, lp_balance: int
    ) -> MigrationQuote:
        """
        Read-only котировка миграции lp_balance shares из старого пула в новый.

        Returns:
            MigrationQuote(min_shares, base_delta, quote_delta), где delta — dust,
            возвращаемый вызывающей стороне

        Raises:
            TokenMismatch: Если пулы держат разные токены (до чтения балансов)
        """
        old_pool, new_pool = self._pools(old_pool_id, new_pool_id)
        validate_positive(lp_balance, "lp_balance")

        withdraw = old_pool.on_exit(
            lp_balance,
            read_pool_balances(self.ledger, old_pool),
            self.ledger.total_supply(old_pool_id),
        )
        plan = self._plan_new_deposit(
            new_pool, withdraw.base_token_amount, withdraw.quote_token_amount
        )
        quote = MigrationQuote(
            min_shares=plan.expected_shares,
            base_delta=withdraw.base_token_amount - plan.base_token_amount,
            quote_delta=withdraw.quote_token_amount - plan.quote_token_amount,
        )
        validate_contract(quote)
        return quote

    @non_reentrant
    def execute_migration(
        self,
        sender: str,
        old_pool_id: str,
        new_pool_id: str,
        min_shares: int,
        min_base: int,
        min_quote: int,
    ) -> MigrationResult:
        """
        Атомарный перенос всей позиции sender из старого пула в новый.

        min_base / min_quote ограничивают выплату при exit, min_shares —
        выпуск в новом пуле. Любое нарушение откатывает обе ноги.
        """
        old_pool, new_pool = self._pools(old_pool_id, new_pool_id)
        sender = require_address(sender, "sender")

        with self.ledger.transaction():
            shares_burned = self.ledger.shares_of(old_pool_id, sender)
            validate_positive(shares_burned, "lp_balance")

            floors = {old_pool.base_token.address: min_base, old_pool.quote_token.address: min_quote}
            amounts = self.ledger.exit(
                sender,
                old_pool_id,
                [floors[t.address] for t in old_pool.tokens],
                shares_burned,
            )
            received = dict(zip([t.address for t in old_pool.tokens], amounts))
            base_out = received[old_pool.base_token.address]
            quote_out = received[old_pool.quote_token.address]

            plan = self._plan_new_deposit(new_pool, base_out, quote_out)
            ceilings = {new_pool.base_token.address: base_out, new_pool.quote_token.address: quote_out}
            shares_minted, joined = self.ledger.join(
                sender,
                new_pool_id,
                [ceilings[t.address] for t in new_pool.tokens],
                plan.deposit_numeraire,
            )
            require_min_shares(shares_minted, min_shares)

        spent = dict(zip([t.address for t in new_pool.tokens], joined))
        result = MigrationResult(
            shares_burned=shares_burned,
            shares_minted=shares_minted,
            base_returned=base_out - spent[new_pool.base_token.address],
            quote_returned=quote_out - spent[new_pool.quote_token.address],
        )
        logger.info(
            f"Migration {old_pool_id} → {new_pool_id}: sender={sender} "
            f"burned={result.shares_burned} minted={result.shares_minted} "
            f"dust=({result.base_returned}, {result.quote_returned})"
        )
        return result
