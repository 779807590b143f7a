import logging
from contextlib import contextmanager
from typing import List, Optional

import pytest

from services.myriad.model import GasPlan, TokenInfo, TransactionOutcome, UserPosition

USER_ADDRESS = "0x1111111111111111111111111111111111111111"
MARKET_ADDRESS = "0x3e0f5F8F5FB043aBFA475C0308417Bf72c463289"

USDC = TokenInfo(decimals=6, symbol="USDC", name="USD Coin")


class FakeCall:
    """Stands in for an unsent web3 contract function."""

    def __init__(self, name: str, *args):
        self.name = name
        self.args = args

    def __repr__(self) -> str:
        return f"FakeCall({self.name}, {self.args})"


class FakeChain:
    def __init__(self, estimated_gas: int = 100_000, gas_price: int = 25_000_000_000):
        self.address = USER_ADDRESS
        self.estimated_gas = estimated_gas
        self.gas_price = gas_price
        self.estimated: List[FakeCall] = []
        self.sent: List[FakeCall] = []
        self.fail_on: Optional[str] = None

    def get_native_balance(self) -> int:
        return 10**17

    def contract(self, address: str, abi: list):
        return address

    def plan_gas(self, function_call) -> GasPlan:
        self.estimated.append(function_call)
        if self.fail_on == function_call.name:
            raise RuntimeError(f"execution reverted: {function_call.name}")
        return GasPlan(estimated_gas=self.estimated_gas, gas_price=self.gas_price)

    def send_transaction(self, function_call, gas_plan, label="Transaction") -> TransactionOutcome:
        self.sent.append(function_call)
        return TransactionOutcome(
            tx_hash=f"0x{len(self.sent):064x}",
            block_number=1000 + len(self.sent),
            gas_used=gas_plan.estimated_gas,
        )


class FakeToken:
    def __init__(self, balance: int = 0, allowance: int = 0, token_info: TokenInfo = USDC):
        self.address = "0x84a71ccd554cc1b02749b35d22f684cc8ec987e1"
        self.balance = balance
        self.current_allowance = allowance
        self.token_info = token_info
        self.allowance_reads = 0

    def balance_of(self, owner: str) -> int:
        return self.balance

    def allowance(self, owner: str, spender: str) -> int:
        self.allowance_reads += 1
        return self.current_allowance

    def approve(self, spender: str, amount: int) -> FakeCall:
        return FakeCall("approve", spender, amount)

    def fetch_token_info(self) -> TokenInfo:
        return self.token_info


class FakeMarket:
    def __init__(self, position: Optional[UserPosition] = None):
        self.address = MARKET_ADDRESS
        self.position = position or UserPosition(liquidity=0, outcome_shares=(0, 0))
        self.shares_error: Optional[Exception] = None

    def buy(self, market_id, outcome_id, min_shares, value) -> FakeCall:
        return FakeCall("buy", market_id, outcome_id, min_shares, value)

    def sell(self, market_id, outcome_id, value, max_shares) -> FakeCall:
        return FakeCall("sell", market_id, outcome_id, value, max_shares)

    def claim_winnings(self, market_id) -> FakeCall:
        return FakeCall("claimWinnings", market_id)

    def get_user_market_shares(self, market_id, user_address) -> UserPosition:
        if self.shares_error:
            raise self.shares_error
        return self.position


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def market() -> FakeMarket:
    return FakeMarket()


@contextmanager
def bare_root_logger():
    """Runs the block with no root handlers so setup_logging installs its own."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    root.handlers.clear()
    try:
        yield root
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
