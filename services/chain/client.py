# services/chain/client.py
import logging
from web3 import Web3
from web3.contract import Contract

from services.myriad.model import GasPlan, TransactionOutcome

log = logging.getLogger(__name__)

DEFAULT_RECEIPT_TIMEOUT = 120


class TransactionFailedError(RuntimeError):
    """Raised when a mined transaction reports a failed status."""

    def __init__(self, tx_hash: str, block_number: int):
        super().__init__(f"Transaction {tx_hash} reverted on-chain in block {block_number}")
        self.tx_hash = tx_hash
        self.block_number = block_number


class ChainClient:
    """
    Signer-bound access to an EVM node: balance and fee reads, gas estimation,
    and the build -> sign -> send -> wait cycle for contract calls.
    """

    def __init__(self, w3: Web3, account, receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT):
        self.w3 = w3
        self.account = account
        self.receipt_timeout = receipt_timeout

    @classmethod
    def connect(cls, rpc_url: str, private_key: str, receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT) -> "ChainClient":
        w3 = Web3(Web3.HTTPProvider(rpc_url))
        if not w3.is_connected():
            raise ConnectionError(f"Failed to connect to the RPC URL: {rpc_url}")

        account = w3.eth.account.from_key(private_key)
        log.info(f"Connected to: {rpc_url}")
        log.info(f"Wallet address: {account.address}")
        return cls(w3, account, receipt_timeout)

    @property
    def address(self) -> str:
        return self.account.address

    def get_native_balance(self) -> int:
        return self.w3.eth.get_balance(self.address)

    def get_gas_price(self) -> int:
        return self.w3.eth.gas_price

    def contract(self, address: str, abi: list) -> Contract:
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    def plan_gas(self, function_call) -> GasPlan:
        """Estimates gas for an unsent contract call and pairs it with the current gas price."""
        estimated_gas = function_call.estimate_gas({'from': self.address})
        return GasPlan(estimated_gas=int(estimated_gas), gas_price=int(self.get_gas_price()))

    def send_transaction(self, function_call, gas_plan: GasPlan, label: str = "Transaction") -> TransactionOutcome:
        """
        Builds, signs and broadcasts a contract call using the given gas plan,
        then blocks until the node reports a receipt.

        Raises:
            TransactionFailedError: the transaction was mined but reverted.
            web3.exceptions.TimeExhausted: no receipt within the receipt timeout.
        """
        tx = function_call.build_transaction({
            'from': self.address,
            'nonce': self.w3.eth.get_transaction_count(self.address),
            'gas': gas_plan.gas_limit,
            'gasPrice': gas_plan.gas_price,
        })
        signed_tx = self.w3.eth.account.sign_transaction(tx, private_key=self.account.key)
        tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        tx_hash_hex = self.w3.to_hex(tx_hash)
        log.info(f"{label} sent: {tx_hash_hex}")

        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        if receipt['status'] != 1:
            raise TransactionFailedError(tx_hash_hex, receipt['blockNumber'])

        return TransactionOutcome(
            tx_hash=tx_hash_hex,
            block_number=receipt['blockNumber'],
            gas_used=receipt['gasUsed'],
        )
