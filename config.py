import os
import sys
import json
import logging
from pathlib import Path
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple
from web3 import Web3

from services.chain.client import DEFAULT_RECEIPT_TIMEOUT

log = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

# --- ABI Files ---
DEFAULT_ABI_DIR = Path(__file__).resolve().parent / "contracts"
MARKET_ABI_FILE = "PredictionMarketV3_4.json"
ERC20_ABI_FILE = "ERC20.json"

REQUIRED_VARIABLES = {
    "RPC_URL": "https://your-rpc-endpoint.com",
    "CONTRACT_ADDRESS": "0xYourContractAddress...",
    "ERC20_TOKEN_ADDRESS": "0xYourTokenAddress...",
}


class ConfigError(Exception):
    """Missing or invalid startup configuration (environment or ABI files)."""


@dataclass(frozen=True)
class Config:
    rpc_url: str
    contract_address: str
    erc20_token_address: str
    abi_dir: Path = DEFAULT_ABI_DIR
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT
    discord_webhook_url: Optional[str] = None


class _BelowLevelFilter(logging.Filter):
    def __init__(self, level: int):
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.level


def setup_logging(level: str = "INFO"):
    """Status output goes to stdout, warnings and errors to stderr."""
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.addFilter(_BelowLevelFilter(logging.WARNING))
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[stdout_handler, stderr_handler],
    )


def load_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    """
    Resolves the RPC endpoint and contract addresses from the environment.
    Call load_dotenv() beforehand to pick up a .env file.
    """
    env = os.environ if environ is None else environ

    values = {}
    for name, example in REQUIRED_VARIABLES.items():
        value = (env.get(name) or "").strip()
        if not value:
            raise ConfigError(
                f"{name} environment variable is required\n"
                f'Set it with: export {name}="{example}"'
            )
        values[name] = value

    for name in ("CONTRACT_ADDRESS", "ERC20_TOKEN_ADDRESS"):
        if not Web3.is_address(values[name]):
            raise ConfigError(f"{name} is not a valid address: {values[name]}")

    raw_timeout = env.get("TX_RECEIPT_TIMEOUT")
    try:
        receipt_timeout = float(raw_timeout) if raw_timeout else DEFAULT_RECEIPT_TIMEOUT
    except ValueError:
        raise ConfigError(f"TX_RECEIPT_TIMEOUT must be a number of seconds, got {raw_timeout!r}")
    if receipt_timeout <= 0:
        raise ConfigError(f"TX_RECEIPT_TIMEOUT must be positive, got {raw_timeout!r}")

    abi_dir = env.get("ABI_DIR")
    return Config(
        rpc_url=values["RPC_URL"],
        contract_address=values["CONTRACT_ADDRESS"],
        erc20_token_address=values["ERC20_TOKEN_ADDRESS"],
        abi_dir=Path(abi_dir) if abi_dir else DEFAULT_ABI_DIR,
        receipt_timeout=receipt_timeout,
        discord_webhook_url=env.get("DISCORD_WEBHOOK_URL") or None,
    )


def load_abi(path: Path) -> list:
    """Reads a contract artifact of the form {"abi": [...]} and returns the abi list."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            artifact = json.load(f)
    except FileNotFoundError:
        raise ConfigError(f"ABI file not found: {path}")
    except (OSError, ValueError) as e:
        raise ConfigError(f"Error reading ABI file {path}: {e}")

    abi = artifact.get("abi") if isinstance(artifact, dict) else None
    if not isinstance(abi, list):
        raise ConfigError(f"ABI file {path} has no 'abi' array")
    return abi


def load_contract_abis(config: Config) -> Tuple[list, list]:
    """Returns (market_abi, erc20_abi) from the configured ABI directory."""
    market_abi = load_abi(config.abi_dir / MARKET_ABI_FILE)
    erc20_abi = load_abi(config.abi_dir / ERC20_ABI_FILE)
    log.debug(f"Loaded ABIs from {config.abi_dir}")
    return market_abi, erc20_abi
