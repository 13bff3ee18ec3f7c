"""
Token — Модель ERC20-подобного токена пула

Immutable Pydantic модель. Адрес нормализуется к lowercase, так что
каноническое упорядочивание ledger (по возрастанию адреса) совпадает со
строковым сравнением.
"""

from typing import Final

from pydantic import BaseModel, Field, field_validator

from src.core.errors import ZeroAddress


ZERO_ADDRESS: Final[str] = "0x" + "0" * 40

# Максимум decimals, поддерживаемый конверсиями assimilator
MAX_TOKEN_DECIMALS: Final[int] = 36


class Token(BaseModel):
    """
    Токен пула.

    Attributes:
        address: Адрес (0x + 40 hex), lowercase
        symbol: Тикер (например, 'XSGD', 'USDC')
        decimals: Количество десятичных знаков raw-единиц
    """

    address: str = Field(..., pattern=r"^0x[0-9a-fA-F]{40}$", description="Адрес токена")
    symbol: str = Field(..., min_length=1, description="Тикер токена")
    decimals: int = Field(..., ge=0, le=MAX_TOKEN_DECIMALS, description="Decimals raw-единиц")

    model_config = {"frozen": True}

    @field_validator("address")
    @classmethod
    def normalize_address(cls, v: str) -> str:
        return v.lower()

    @property
    def decimals_multiplier(self) -> int:
        """10**decimals — множитель raw-единиц."""
        return 10**self.decimals

    def sort_key(self) -> int:
        """Ключ канонического порядка токенов в ledger."""
        return int(self.address, 16)


def require_address(address: str, name: str = "address") -> str:
    """
    Проверка, что адрес ненулевой.

    Raises:
        ZeroAddress: Если адрес пустой или нулевой
    """
    if not address or address.lower() == ZERO_ADDRESS:
        raise ZeroAddress(f"{name} must be a non-zero address")
    return address.lower()


def require_token(token: Token, name: str = "token") -> Token:
    require_address(token.address, name)
    return token
