# services/myriad/model.py
import re
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Tuple

UINT256_MAX = 2**256 - 1

# Gas limit = estimate * 120 / 100, rounded up
GAS_BUFFER_NUMERATOR = 120
GAS_BUFFER_DENOMINATOR = 100

_DECIMAL_RE = re.compile(r"^(-)?(\d*)(?:\.(\d*))?$")


class Action(str, Enum):
    BUY = "buy"
    SELL = "sell"
    CLAIM_WINNINGS = "claimWinnings"


@dataclass(frozen=True)
class InvocationArgs:
    action: Action
    private_key: str = field(repr=False)
    market_id: int
    outcome_id: Optional[int] = None
    value: Optional[int] = None
    min_shares: Optional[int] = None
    max_shares: Optional[int] = None


@dataclass(frozen=True)
class TokenInfo:
    decimals: int
    symbol: str
    name: str


@dataclass(frozen=True)
class UserPosition:
    liquidity: int
    outcome_shares: Tuple[int, ...]


@dataclass(frozen=True)
class GasPlan:
    estimated_gas: int
    gas_price: int

    @property
    def gas_limit(self) -> int:
        """Estimate plus a 20% buffer, rounded up."""
        return -(-self.estimated_gas * GAS_BUFFER_NUMERATOR // GAS_BUFFER_DENOMINATOR)


@dataclass(frozen=True)
class TransactionOutcome:
    tx_hash: str
    block_number: int
    gas_used: int


def format_units(value: int, decimals: int) -> str:
    """
    Converts an integer amount of base units into a human-readable decimal string.
    Always keeps at least one fractional digit, e.g. (1500000, 6) -> "1.5", (5, 0) -> "5.0".
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")
    sign = "-" if value < 0 else ""
    whole, frac = divmod(abs(int(value)), 10**decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0") if decimals else ""
    return f"{sign}{whole}.{frac_str or '0'}"


def parse_units(text: str, decimals: int) -> int:
    """Converts a decimal string such as "1.5" into base units for the given decimal count."""
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")
    match = _DECIMAL_RE.match(text.strip()) if isinstance(text, str) else None
    if not match or not (match.group(2) or match.group(3)):
        raise ValueError(f"Invalid decimal amount: {text!r}")

    sign, whole, frac = match.group(1), match.group(2) or "0", match.group(3) or ""
    if len(frac) > decimals:
        if frac[decimals:].strip("0"):
            raise ValueError(f"Amount {text!r} has more than {decimals} decimal places")
        frac = frac[:decimals]

    amount = int(whole) * 10**decimals + int(frac.ljust(decimals, "0") or "0")
    return -amount if sign else amount
