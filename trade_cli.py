# trade_cli.py
import os
import re
import sys
import logging
import argparse
from typing import List, Optional
from dotenv import load_dotenv
from web3 import Web3

from config import ConfigError, load_config, load_contract_abis, setup_logging
from notifications.discord import DiscordNotifier
from services.chain.client import ChainClient
from services.erc20.client import ERC20Client
from services.myriad.client import MyriadClient
from services.myriad.model import UINT256_MAX, Action, InvocationArgs
from trade_executor import run_action

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

_UINT_RE = re.compile(r"[0-9]+")

EPILOG = """\
Required Environment Variables:
  RPC_URL              RPC endpoint (e.g. https://polygon-rpc.com)
  CONTRACT_ADDRESS     Smart contract address
  ERC20_TOKEN_ADDRESS  ERC20 token address (for payments)

Examples:
  myriad-trade buy 0x1234... 1 0 1000000000000000000
  myriad-trade sell 0x1234... 1 0 500000000000000000
  myriad-trade claimWinnings 0x1234... 1
"""


class UsageError(Exception):
    def __init__(self, message: str, usage: str):
        super().__init__(message)
        self.usage = usage


class _ArgumentParser(argparse.ArgumentParser):
    """Raises UsageError instead of exiting so the caller decides the exit code."""

    def error(self, message):
        raise UsageError(message, self.format_usage())


def uint256(text: str) -> int:
    if not _UINT_RE.fullmatch(text):
        raise argparse.ArgumentTypeError(f"{text!r} is not an unsigned integer")
    value = int(text)
    if value > UINT256_MAX:
        raise argparse.ArgumentTypeError(f"{text} does not fit in uint256")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="myriad-trade",
        description="Buy, sell or claim winnings on the Myriad prediction market contract.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    actions = parser.add_subparsers(dest="action", metavar="action")
    actions.required = True

    buy = actions.add_parser(Action.BUY.value, help="buy outcome shares")
    buy.add_argument("private_key", metavar="privateKey")
    buy.add_argument("market_id", metavar="marketId", type=uint256)
    buy.add_argument("outcome_id", metavar="outcomeId", type=uint256)
    buy.add_argument("value", type=uint256, help="amount to spend, in token base units")
    buy.add_argument("min_shares", metavar="minShares", type=uint256, nargs="?", default=0)

    sell = actions.add_parser(Action.SELL.value, help="sell outcome shares")
    sell.add_argument("private_key", metavar="privateKey")
    sell.add_argument("market_id", metavar="marketId", type=uint256)
    sell.add_argument("outcome_id", metavar="outcomeId", type=uint256)
    sell.add_argument("value", type=uint256, help="amount to receive, in token base units")
    sell.add_argument("max_shares", metavar="maxShares", type=uint256, nargs="?", default=UINT256_MAX)

    claim = actions.add_parser(Action.CLAIM_WINNINGS.value, help="claim winnings from a resolved market")
    claim.add_argument("private_key", metavar="privateKey")
    claim.add_argument("market_id", metavar="marketId", type=uint256)

    return parser


def parse_arguments(argv: Optional[List[str]] = None) -> InvocationArgs:
    ns = build_parser().parse_args(argv)
    return InvocationArgs(
        action=Action(ns.action),
        private_key=ns.private_key,
        market_id=ns.market_id,
        outcome_id=getattr(ns, "outcome_id", None),
        value=getattr(ns, "value", None),
        min_shares=getattr(ns, "min_shares", None),
        max_shares=getattr(ns, "max_shares", None),
    )


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))

    try:
        args = parse_arguments(argv)
    except UsageError as e:
        sys.stderr.write(e.usage)
        sys.stderr.write(f"error: {e}\n")
        return EXIT_USAGE

    try:
        config = load_config()
        market_abi, erc20_abi = load_contract_abis(config)
    except ConfigError as e:
        log.error(f"❌ Error: {e}")
        return EXIT_FAILURE

    notifier = DiscordNotifier(config.discord_webhook_url) if config.discord_webhook_url else None

    try:
        chain = ChainClient.connect(config.rpc_url, args.private_key, config.receipt_timeout)
        log.info(f"Wallet balance: {Web3.from_wei(chain.get_native_balance(), 'ether')} ETH")

        market = MyriadClient(chain.contract(config.contract_address, market_abi))
        token = ERC20Client(chain.contract(config.erc20_token_address, erc20_abi))
        log.info(f"Contract address: {market.address}")
        log.info(f"Token address: {token.address}")

        outcome = run_action(args, chain, market, token)
    except Exception as e:
        log.error("Action failed! ❌")
        log.error(f"Error: {e}")
        log.debug("Failure details", exc_info=True)
        if notifier:
            notifier.notify_trade_failed(args.action.value, args.market_id, str(e))
        return EXIT_FAILURE

    if notifier:
        notifier.notify_trade_executed(args.action.value, args.market_id, outcome)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
