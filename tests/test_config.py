import json
from pathlib import Path

import pytest

from config import (
    DEFAULT_ABI_DIR,
    DEFAULT_RECEIPT_TIMEOUT,
    ConfigError,
    load_abi,
    load_config,
    load_contract_abis,
)

VALID_ENV = {
    "RPC_URL": "https://api.mainnet.abs.xyz",
    "CONTRACT_ADDRESS": "0x3e0f5F8F5FB043aBFA475C0308417Bf72c463289",
    "ERC20_TOKEN_ADDRESS": "0x84a71ccd554cc1b02749b35d22f684cc8ec987e1",
}


def test_load_config_reads_required_values() -> None:
    cfg = load_config(VALID_ENV)
    assert cfg.rpc_url == VALID_ENV["RPC_URL"]
    assert cfg.contract_address == VALID_ENV["CONTRACT_ADDRESS"]
    assert cfg.erc20_token_address == VALID_ENV["ERC20_TOKEN_ADDRESS"]
    assert cfg.abi_dir == DEFAULT_ABI_DIR
    assert cfg.receipt_timeout == DEFAULT_RECEIPT_TIMEOUT
    assert cfg.discord_webhook_url is None


@pytest.mark.parametrize("missing", ["RPC_URL", "CONTRACT_ADDRESS", "ERC20_TOKEN_ADDRESS"])
def test_load_config_requires_each_variable(missing: str) -> None:
    env = {k: v for k, v in VALID_ENV.items() if k != missing}
    with pytest.raises(ConfigError, match=f"{missing} environment variable is required"):
        load_config(env)


def test_load_config_treats_blank_as_missing() -> None:
    with pytest.raises(ConfigError, match="RPC_URL"):
        load_config({**VALID_ENV, "RPC_URL": "   "})


def test_load_config_rejects_invalid_address() -> None:
    with pytest.raises(ConfigError, match="CONTRACT_ADDRESS is not a valid address"):
        load_config({**VALID_ENV, "CONTRACT_ADDRESS": "0x1234"})


def test_load_config_optional_values(tmp_path: Path) -> None:
    cfg = load_config({
        **VALID_ENV,
        "ABI_DIR": str(tmp_path),
        "TX_RECEIPT_TIMEOUT": "300",
        "DISCORD_WEBHOOK_URL": "https://discord.com/api/webhooks/1/abc",
    })
    assert cfg.abi_dir == tmp_path
    assert cfg.receipt_timeout == 300.0
    assert cfg.discord_webhook_url == "https://discord.com/api/webhooks/1/abc"


@pytest.mark.parametrize("timeout", ["soon", "0", "-5"])
def test_load_config_rejects_bad_receipt_timeout(timeout: str) -> None:
    with pytest.raises(ConfigError, match="TX_RECEIPT_TIMEOUT"):
        load_config({**VALID_ENV, "TX_RECEIPT_TIMEOUT": timeout})


def test_load_abi_returns_abi_array(tmp_path: Path) -> None:
    path = tmp_path / "Token.json"
    path.write_text(json.dumps({"abi": [{"type": "function", "name": "decimals"}]}), encoding="utf-8")
    assert load_abi(path) == [{"type": "function", "name": "decimals"}]


def test_load_abi_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="ABI file not found"):
        load_abi(tmp_path / "nope.json")


@pytest.mark.parametrize("content", ["{not json", "[]", '{"abi": {}}', '{"bytecode": "0x"}'])
def test_load_abi_malformed(tmp_path: Path, content: str) -> None:
    path = tmp_path / "Bad.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_abi(path)


def test_bundled_abis_expose_the_methods_used() -> None:
    market_abi, erc20_abi = load_contract_abis(load_config(VALID_ENV))
    market_names = {entry.get("name") for entry in market_abi}
    erc20_names = {entry.get("name") for entry in erc20_abi}
    assert {"buy", "sell", "claimWinnings", "getUserMarketShares"} <= market_names
    assert {"decimals", "symbol", "name", "balanceOf", "allowance", "approve"} <= erc20_names


def test_load_abi_non_utf8_file_is_a_config_error(tmp_path: Path) -> None:
    path = tmp_path / "Binary.json"
    path.write_bytes(b'\xff{"abi": []}')
    with pytest.raises(ConfigError, match="Error reading ABI file"):
        load_abi(path)


def test_config_and_chain_client_share_receipt_timeout() -> None:
    from services.chain import client as chain_client

    assert DEFAULT_RECEIPT_TIMEOUT is chain_client.DEFAULT_RECEIPT_TIMEOUT


def test_bundled_abis_are_packaged_beside_config() -> None:
    tomllib = pytest.importorskip("tomllib")
    pyproject = Path(__file__).resolve().parent.parent / "pyproject.toml"
    setuptools_cfg = tomllib.loads(pyproject.read_text(encoding="utf-8"))["tool"]["setuptools"]

    assert "config" in setuptools_cfg["py-modules"]
    assert "contracts" in setuptools_cfg["packages"]
    assert setuptools_cfg["package-data"]["contracts"] == ["*.json"]
    assert DEFAULT_ABI_DIR == Path(__file__).resolve().parent.parent / "contracts"
