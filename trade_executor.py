# trade_executor.py
import logging
from typing import Optional
from web3 import Web3

from services.chain.client import ChainClient
from services.erc20.client import ERC20Client
from services.myriad.client import MyriadClient
from services.myriad.model import (
    Action,
    InvocationArgs,
    TokenInfo,
    TransactionOutcome,
    UserPosition,
    format_units,
)

log = logging.getLogger(__name__)


class InsufficientBalanceError(ValueError):
    pass


def _gwei(wei: int) -> str:
    return f"{Web3.from_wei(wei, 'gwei')}"


def _submit(chain: ChainClient, function_call, label: str = "Transaction", gas_label: str = "Estimated gas") -> TransactionOutcome:
    """Estimate gas -> submit with buffered limit -> wait for the receipt."""
    gas_plan = chain.plan_gas(function_call)
    log.info(f"{gas_label}: {gas_plan.estimated_gas}")
    log.info(f"Gas price: {_gwei(gas_plan.gas_price)} gwei")

    outcome = chain.send_transaction(function_call, gas_plan, label=label)
    log.info(f"{label} confirmed in block: {outcome.block_number}")
    return outcome


# ==============================================================================
# ALLOWANCE
# ==============================================================================

def check_and_approve(chain: ChainClient, token: ERC20Client, token_info: TokenInfo,
                      spender_address: str, amount: int) -> Optional[TransactionOutcome]:
    """
    Approves `spender_address` for exactly `amount` when the current allowance is lower.
    Returns the approval outcome, or None if the existing allowance already covers it.

    Check and approve are two separate calls, so another spender of the same
    allowance can change it in between.
    """
    symbol, decimals = token_info.symbol, token_info.decimals
    try:
        log.info(f"Checking {symbol} allowance...")
        current_allowance = token.allowance(chain.address, spender_address)
        log.info(f"Current allowance: {format_units(current_allowance, decimals)} {symbol}")
        log.info(f"Required amount: {format_units(amount, decimals)} {symbol}")

        if current_allowance >= amount:
            log.info("✅ Sufficient allowance already exists.")
            return None

        log.info(f"Insufficient allowance. Approving {format_units(amount, decimals)} {symbol}...")
        outcome = _submit(chain, token.approve(spender_address, amount),
                          label="Approval transaction", gas_label="Approval gas estimate")
        log.info("✅ Approval successful!")
        return outcome
    except Exception as e:
        log.error(f"Error checking/approving allowance: {e}")
        raise


# ==============================================================================
# ACTIONS
# ==============================================================================

def execute_buy(chain: ChainClient, market: MyriadClient, token: ERC20Client, token_info: TokenInfo,
                market_id: int, outcome_id: int, value: int, min_shares: int) -> TransactionOutcome:
    symbol, decimals = token_info.symbol, token_info.decimals
    try:
        log.info("Executing buy:")
        log.info(f"  Market ID: {market_id}")
        log.info(f"  Outcome ID: {outcome_id}")
        log.info(f"  Value: {format_units(value, decimals)} {symbol}")
        log.info(f"  Min Shares: {min_shares}")

        balance = token.balance_of(chain.address)
        log.info(f"{symbol} balance: {format_units(balance, decimals)} {symbol}")
        if balance < value:
            raise InsufficientBalanceError(
                f"Insufficient {symbol} balance. Required: {format_units(value, decimals)}, "
                f"Available: {format_units(balance, decimals)}"
            )

        check_and_approve(chain, token, token_info, market.address, value)

        outcome = _submit(chain, market.buy(market_id, outcome_id, min_shares, value))
        log.info(f"Gas used: {outcome.gas_used}")
        return outcome
    except Exception as e:
        log.error(f"Error executing buy: {e}")
        raise


def execute_sell(chain: ChainClient, market: MyriadClient, token_info: TokenInfo,
                 market_id: int, outcome_id: int, value: int, max_shares: int) -> TransactionOutcome:
    # Share sufficiency is enforced by the contract itself.
    try:
        log.info("Executing sell:")
        log.info(f"  Market ID: {market_id}")
        log.info(f"  Outcome ID: {outcome_id}")
        log.info(f"  Value: {format_units(value, token_info.decimals)} {token_info.symbol}")
        log.info(f"  Max Shares: {max_shares}")

        outcome = _submit(chain, market.sell(market_id, outcome_id, value, max_shares))
        log.info(f"Gas used: {outcome.gas_used}")
        return outcome
    except Exception as e:
        log.error(f"Error executing sell: {e}")
        raise


def execute_claim_winnings(chain: ChainClient, market: MyriadClient, market_id: int) -> TransactionOutcome:
    try:
        log.info("Executing claimWinnings:")
        log.info(f"  Market ID: {market_id}")

        outcome = _submit(chain, market.claim_winnings(market_id))
        log.info(f"Gas used: {outcome.gas_used}")
        return outcome
    except Exception as e:
        log.error(f"Error executing claimWinnings: {e}")
        raise


# ==============================================================================
# REPORTING
# ==============================================================================

def report_user_shares(market: MyriadClient, token_info: TokenInfo,
                       market_id: int, user_address: str) -> Optional[UserPosition]:
    """Logs the user's position in a market. Read failures are logged and yield None."""
    try:
        position = market.get_user_market_shares(market_id, user_address)
    except Exception as e:
        log.error(f"Error getting user shares: {e}")
        return None

    decimals, symbol = token_info.decimals, token_info.symbol
    log.info(f"User shares for market {market_id}:")
    log.info(f"  Liquidity: {format_units(position.liquidity, decimals)} {symbol}")
    log.info(f"  Outcome shares: {', '.join(format_units(s, decimals) for s in position.outcome_shares)}")
    return position


def run_action(args: InvocationArgs, chain: ChainClient, market: MyriadClient, token: ERC20Client) -> TransactionOutcome:
    """Runs one invocation: token metadata, position before, the action, position after."""
    token_info = token.fetch_token_info()
    log.info(f"Token: {token_info.name} ({token_info.symbol})")
    log.info(f"Decimals: {token_info.decimals}")

    report_user_shares(market, token_info, args.market_id, chain.address)
    log.info("---")

    if args.action is Action.BUY:
        outcome = execute_buy(chain, market, token, token_info,
                              args.market_id, args.outcome_id, args.value, args.min_shares)
    elif args.action is Action.SELL:
        outcome = execute_sell(chain, market, token_info,
                               args.market_id, args.outcome_id, args.value, args.max_shares)
    elif args.action is Action.CLAIM_WINNINGS:
        outcome = execute_claim_winnings(chain, market, args.market_id)
    else:
        raise ValueError(f"Unknown action: {args.action}")

    log.info("---")
    report_user_shares(market, token_info, args.market_id, chain.address)
    log.info("Action completed successfully! ✅")
    return outcome
