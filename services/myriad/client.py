# services/myriad/client.py
import logging
from web3.contract import Contract

from .model import UserPosition

log = logging.getLogger(__name__)


class MyriadClient:
    """Typed wrapper over the PredictionMarketV3_4 contract methods this tool uses."""

    def __init__(self, myriad_contract: Contract):
        self.contract = myriad_contract

    @property
    def address(self) -> str:
        return self.contract.address

    def buy(self, market_id: int, outcome_id: int, min_shares: int, value: int):
        return self.contract.functions.buy(market_id, outcome_id, min_shares, value)

    def sell(self, market_id: int, outcome_id: int, value: int, max_shares: int):
        return self.contract.functions.sell(market_id, outcome_id, value, max_shares)

    def claim_winnings(self, market_id: int):
        return self.contract.functions.claimWinnings(market_id)

    def get_user_market_shares(self, market_id: int, user_address: str) -> UserPosition:
        liquidity, outcomes = self.contract.functions.getUserMarketShares(market_id, user_address).call()
        return UserPosition(liquidity=int(liquidity), outcome_shares=tuple(int(s) for s in outcomes))
