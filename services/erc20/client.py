# services/erc20/client.py
import logging
import concurrent.futures
from web3.contract import Contract

from services.myriad.model import TokenInfo

log = logging.getLogger(__name__)


class ERC20Client:
    def __init__(self, contract: Contract):
        self.contract = contract

    @property
    def address(self) -> str:
        return self.contract.address

    def decimals(self) -> int:
        return int(self.contract.functions.decimals().call())

    def symbol(self) -> str:
        return self.contract.functions.symbol().call()

    def name(self) -> str:
        return self.contract.functions.name().call()

    def balance_of(self, owner: str) -> int:
        return self.contract.functions.balanceOf(owner).call()

    def allowance(self, owner: str, spender: str) -> int:
        return self.contract.functions.allowance(owner, spender).call()

    def approve(self, spender: str, amount: int):
        """Returns the unsent approve call; submission goes through ChainClient."""
        return self.contract.functions.approve(spender, amount)

    def fetch_token_info(self) -> TokenInfo:
        """
        Reads decimals, symbol and name concurrently and joins them.
        """
        try:
            with concurrent.futures.ThreadPoolExecutor(max_workers=3) as executor:
                decimals_future = executor.submit(self.decimals)
                symbol_future = executor.submit(self.symbol)
                name_future = executor.submit(self.name)
                return TokenInfo(
                    decimals=decimals_future.result(),
                    symbol=symbol_future.result(),
                    name=name_future.result(),
                )
        except Exception as e:
            log.error(f"Error getting token info: {e}")
            raise
