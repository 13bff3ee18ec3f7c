"""
BalanceLedger — внешний ledger токенов и LP shares

Engine не владеет балансами: токены пулов, счета участников и supply
shares хранятся в ledger. Протокол BalanceLedger описывает границу
взаимодействия; InMemoryVault — реализация для симуляций и тестов.

Атомарность составных операций:
transaction() открывает staged копию состояния. Все мутации внутри
применяются к staged копии; при нормальном выходе копия фиксируется
(commit), при ошибке отбрасывается. Live состояние до commit не меняется.
"""

import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from src.core.domain.pool_state import PoolBalances
from src.core.domain.token import Token, require_address
from src.core.errors import (
    InputError,
    InsufficientLedgerBalance,
    MaxAmountViolation,
    MinAmountViolation,
    UnknownPool,
)
from src.core.math.fixed_point import Fixed64x64
from src.core.math.integer_math import validate_non_negative, validate_positive
from src.curve.pool import FXPool

logger = logging.getLogger(__name__)


# =============================================================================
# PROTOCOL
# =============================================================================


@runtime_checkable
class BalanceLedger(Protocol):
    """Граница взаимодействия engine с ledger."""

    def register_pool(self, pool: FXPool) -> None:
        ...

    def pool(self, pool_id: str) -> FXPool:
        ...

    def get_pool_tokens(self, pool_id: str) -> List[Token]:
        ...

    def get_pool_balances(self, pool_id: str) -> Tuple[List[Token], List[int]]:
        ...

    def total_supply(self, pool_id: str) -> int:
        ...

    def shares_of(self, pool_id: str, holder: str) -> int:
        ...

    def simulate_swap(self, pool_id: str, token_in: Token, token_out: Token, amount: int) -> int:
        ...

    def execute_swap(
        self,
        sender: str,
        pool_id: str,
        token_in: Token,
        token_out: Token,
        amount: int,
        min_out: int = 0,
    ) -> int:
        ...

    def join(
        self,
        sender: str,
        pool_id: str,
        max_amounts: Sequence[int],
        deposit_numeraire: Fixed64x64,
    ) -> Tuple[int, List[int]]:
        ...

    def exit(
        self,
        sender: str,
        pool_id: str,
        min_amounts: Sequence[int],
        shares: int,
    ) -> List[int]:
        ...

    def transaction(self):
        ...


def read_pool_balances(ledger: BalanceLedger, pool: FXPool) -> PoolBalances:
    """Свежие балансы пула из ledger (никогда не кэшируются)."""
    tokens, balances = ledger.get_pool_balances(pool.pool_id)
    return PoolBalances.from_ledger(tokens, balances, pool.base_token, pool.quote_token)


# =============================================================================
# IN-MEMORY VAULT
# =============================================================================


@dataclass
class VaultState:
    """Мутируемое состояние vault (копируется целиком при staging)."""

    # pool_id → token address → raw
    pool_balances: Dict[str, Dict[str, int]] = field(default_factory=dict)
    # holder → token address → raw
    accounts: Dict[str, Dict[str, int]] = field(default_factory=dict)
    # pool_id → holder → shares
    shares: Dict[str, Dict[str, int]] = field(default_factory=dict)
    # pool_id → total supply
    total_supply: Dict[str, int] = field(default_factory=dict)


class InMemoryVault:
    """In-memory ledger с атомарными транзакциями (stage → commit)."""

    def __init__(self):
        self._pools: Dict[str, FXPool] = {}
        self._state = VaultState()
        self._staged: Optional[VaultState] = None

    @property
    def _active(self) -> VaultState:
        return self._staged if self._staged is not None else self._state

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        Атомарная граница составной операции.

        Вложенные вызовы присоединяются к внешней транзакции.
        """
        if self._staged is not None:
            yield
            return

        self._staged = copy.deepcopy(self._state)
        try:
            yield
        except Exception:
            logger.info("Vault transaction rolled back")
            raise
        else:
            self._state = self._staged
            logger.debug("Vault transaction committed")
        finally:
            self._staged = None

    # -------------------------------------------------------------------------
    # Registration / accounts
    # -------------------------------------------------------------------------

    def register_pool(self, pool: FXPool) -> None:
        """
        Raises:
            InputError: Если пул уже зарегистрирован или открыта транзакция
        """
        if self._staged is not None:
            raise InputError(f"cannot register pool {pool.pool_id} inside a transaction")
        if pool.pool_id in self._pools:
            raise InputError(f"pool {pool.pool_id} already registered")
        self._pools[pool.pool_id] = pool
        state = self._active
        state.pool_balances[pool.pool_id] = {t.address: 0 for t in pool.tokens}
        state.shares[pool.pool_id] = {}
        state.total_supply[pool.pool_id] = 0
        logger.info(
            f"Pool registered: {pool.pool_id} "
            f"({pool.base_token.symbol}/{pool.quote_token.symbol})"
        )

    def pool(self, pool_id: str) -> FXPool:
        try:
            return self._pools[pool_id]
        except KeyError:
            raise UnknownPool(f"pool {pool_id} is not registered") from None

    def mint(self, holder: str, token: Token, amount: int) -> None:
        """Зачисление токенов на счёт участника (faucet для симуляций)."""
        validate_non_negative(amount, "amount")
        holder = require_address(holder, "holder")
        account = self._active.accounts.setdefault(holder, {})
        account[token.address] = account.get(token.address, 0) + amount

    def balance_of(self, holder: str, token: Token) -> int:
        return self._active.accounts.get(holder.lower(), {}).get(token.address, 0)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_pool_tokens(self, pool_id: str) -> List[Token]:
        return self.pool(pool_id).tokens

    def get_pool_balances(self, pool_id: str) -> Tuple[List[Token], List[int]]:
        tokens = self.get_pool_tokens(pool_id)
        balances = self._active.pool_balances[pool_id]
        return tokens, [balances[t.address] for t in tokens]

    def total_supply(self, pool_id: str) -> int:
        self.pool(pool_id)
        return self._active.total_supply[pool_id]

    def shares_of(self, pool_id: str, holder: str) -> int:
        self.pool(pool_id)
        return self._active.shares[pool_id].get(holder.lower(), 0)

    # -------------------------------------------------------------------------
    # Swaps
    # -------------------------------------------------------------------------

    def simulate_swap(self, pool_id: str, token_in: Token, token_out: Token, amount: int) -> int:
        """Read-only симуляция свопа exact-in."""
        pool = self.pool(pool_id)
        self._require_pair(pool, token_in, token_out)
        return pool.quote_swap(token_in, amount, read_pool_balances(self, pool))

    def execute_swap(
        self,
        sender: str,
        pool_id: str,
        token_in: Token,
        token_out: Token,
        amount: int,
        min_out: int = 0,
    ) -> int:
        pool = self.pool(pool_id)
        self._require_pair(pool, token_in, token_out)
        sender = require_address(sender, "sender")

        amount_out = pool.quote_swap(token_in, amount, read_pool_balances(self, pool))
        if amount_out < min_out:
            raise MinAmountViolation(f"swap output {amount_out} below min_out {min_out}")

        self._debit(sender, token_in, amount)
        self._pool_credit(pool_id, token_in, amount)
        self._pool_debit(pool_id, token_out, amount_out)
        self._credit(sender, token_out, amount_out)

        logger.info(
            f"Swap {pool_id}: {amount} {token_in.symbol} → {amount_out} {token_out.symbol} "
            f"(sender={sender})"
        )
        return amount_out

    # -------------------------------------------------------------------------
    # Join / exit
    # -------------------------------------------------------------------------

    def join(
        self,
        sender: str,
        pool_id: str,
        max_amounts: Sequence[int],
        deposit_numeraire: Fixed64x64,
    ) -> Tuple[int, List[int]]:
        """
        Депозит в пул: пул вычисляет shares и суммы по текущим балансам.

        Args:
            sender: Депозитор
            pool_id: Пул
            max_amounts: Потолки сумм в каноническом порядке токенов
            deposit_numeraire: Депозит в numeraire

        Returns:
            (shares, amounts в каноническом порядке)

        Raises:
            InputError: Если max_amounts не содержит ровно одно значение на токен
            MaxAmountViolation: Если требуемая сумма превышает потолок
        """
        pool = self.pool(pool_id)
        sender = require_address(sender, "sender")
        self._require_per_token(pool, max_amounts, "max_amounts")
        state = self._active

        plan = pool.on_join(
            deposit_numeraire,
            read_pool_balances(self, pool),
            state.total_supply[pool_id],
        )
        amounts = self._ordered(pool, plan.base_token_amount, plan.quote_token_amount)
        for token, amount, ceiling in zip(pool.tokens, amounts, max_amounts):
            if amount > ceiling:
                raise MaxAmountViolation(
                    f"join requires {amount} {token.symbol}, above max {ceiling}"
                )

        for token, amount in zip(pool.tokens, amounts):
            self._debit(sender, token, amount)
            self._pool_credit(pool_id, token, amount)

        holders = state.shares[pool_id]
        holders[sender] = holders.get(sender, 0) + plan.expected_shares
        state.total_supply[pool_id] += plan.expected_shares

        logger.info(f"Join {pool_id}: sender={sender} shares={plan.expected_shares} amounts={amounts}")
        return plan.expected_shares, amounts

    def exit(
        self,
        sender: str,
        pool_id: str,
        min_amounts: Sequence[int],
        shares: int,
    ) -> List[int]:
        """
        Вывод из пула: сжигание shares и выплата пропорциональной доли.

        Raises:
            InputError: Если min_amounts не содержит ровно одно значение на токен
            InsufficientLedgerBalance: Если у sender недостаточно shares
            MinAmountViolation: Если выплата ниже минимума
        """
        pool = self.pool(pool_id)
        sender = require_address(sender, "sender")
        self._require_per_token(pool, min_amounts, "min_amounts")
        validate_positive(shares, "shares")
        state = self._active

        holders = state.shares[pool_id]
        held = holders.get(sender, 0)
        if held < shares:
            raise InsufficientLedgerBalance(f"{sender} holds {held} shares, exit requests {shares}")

        plan = pool.on_exit(shares, read_pool_balances(self, pool), state.total_supply[pool_id])
        amounts = self._ordered(pool, plan.base_token_amount, plan.quote_token_amount)
        for token, amount, floor in zip(pool.tokens, amounts, min_amounts):
            if amount < floor:
                raise MinAmountViolation(f"exit pays {amount} {token.symbol}, below min {floor}")

        holders[sender] = held - shares
        state.total_supply[pool_id] -= shares
        for token, amount in zip(pool.tokens, amounts):
            self._pool_debit(pool_id, token, amount)
            self._credit(sender, token, amount)

        logger.info(f"Exit {pool_id}: sender={sender} shares={shares} amounts={amounts}")
        return amounts

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _ordered(pool: FXPool, base_amount: int, quote_amount: int) -> List[int]:
        by_address = {
            pool.base_token.address: base_amount,
            pool.quote_token.address: quote_amount,
        }
        return [by_address[t.address] for t in pool.tokens]

    @staticmethod
    def _require_per_token(pool: FXPool, amounts: Sequence[int], name: str) -> None:
        if len(amounts) != len(pool.tokens):
            raise InputError(
                f"{name} must have {len(pool.tokens)} entries, got {len(amounts)}"
            )

    @staticmethod
    def _require_pair(pool: FXPool, token_in: Token, token_out: Token) -> None:
        pool.token_index(token_in)
        pool.token_index(token_out)
        if token_in.address == token_out.address:
            raise InputError("token_in and token_out must differ")

    def _debit(self, holder: str, token: Token, amount: int) -> None:
        account = self._active.accounts.setdefault(holder, {})
        held = account.get(token.address, 0)
        if held < amount:
            raise InsufficientLedgerBalance(
                f"{holder} holds {held} {token.symbol}, needs {amount}"
            )
        account[token.address] = held - amount

    def _credit(self, holder: str, token: Token, amount: int) -> None:
        account = self._active.accounts.setdefault(holder, {})
        account[token.address] = account.get(token.address, 0) + amount

    def _pool_debit(self, pool_id: str, token: Token, amount: int) -> None:
        balances = self._active.pool_balances[pool_id]
        if balances[token.address] < amount:
            raise InsufficientLedgerBalance(
                f"pool {pool_id} holds {balances[token.address]} {token.symbol}, needs {amount}"
            )
        balances[token.address] -= amount

    def _pool_credit(self, pool_id: str, token: Token, amount: int) -> None:
        self._active.pool_balances[pool_id][token.address] += amount
