# tests/test_config.py

from __future__ import annotations

from decimal import Decimal

import pytest

from task_agent.config import REQUIRED_ENV, load_settings
from task_agent.errors import ConfigInvalid, ConfigMissing

BASE_ENV = {
    "PRIVATE_KEY": "1,2,3",
    "RECIPIENT_PUBLIC_KEY": "recipient",
    "RAYDIUM_POOL_ID": "pool",
    "BASE_TOKEN_MINT": "base",
    "QUOTE_TOKEN_MINT": "quote",
}


def test_defaults() -> None:
    s = load_settings(dict(BASE_ENV))

    assert s.rpc_url == "https://api.devnet.solana.com"
    assert s.commitment == "confirmed"
    assert s.db_path == "agent.db"
    assert s.poll_interval == 10
    assert s.seed_example_tasks is True
    assert s.seed_transfer_amount == Decimal("0.01")
    assert s.dex_base_amount == Decimal("0.001")
    assert s.dex_quote_amount == Decimal("0")
    assert s.dex_slippage == Decimal("0.01")
    assert s.dex_fixed_side == "in"


def test_overrides() -> None:
    env = dict(BASE_ENV, POLL_INTERVAL="3", SEED_EXAMPLE_TASKS="no", SOLANA_RPC_URL="http://127.0.0.1:8899",
               RAYDIUM_API_URL="https://example.test/", DEX_FIXED_SIDE="OUT")

    s = load_settings(env)

    assert s.poll_interval == 3
    assert s.seed_example_tasks is False
    assert s.rpc_url == "http://127.0.0.1:8899"
    assert s.raydium_api_url == "https://example.test"
    assert s.dex_fixed_side == "out"


def test_first_missing_variable_is_reported() -> None:
    env = dict(BASE_ENV)
    del env["RAYDIUM_POOL_ID"]
    del env["QUOTE_TOKEN_MINT"]

    with pytest.raises(ConfigMissing) as exc:
        load_settings(env)

    assert exc.value.var == "RAYDIUM_POOL_ID"
    assert str(exc.value) == "Raydium pool ID not found in .env file"


@pytest.mark.parametrize("var", [name for name, _ in REQUIRED_ENV])
def test_empty_value_counts_as_missing(var: str) -> None:
    env = dict(BASE_ENV, **{var: ""})

    with pytest.raises(ConfigMissing) as exc:
        load_settings(env)

    assert exc.value.var == var


@pytest.mark.parametrize(
    "var, value",
    [("POLL_INTERVAL", "ten"), ("SOLANA_RPC_TIMEOUT_SEC", "8s"), ("DEX_SLIPPAGE", "abc"), ("DEX_BASE_AMOUNT", "NaN")],
)
def test_unparseable_number_names_the_variable(var: str, value: str) -> None:
    env = dict(BASE_ENV, **{var: value})

    with pytest.raises(ConfigInvalid) as exc:
        load_settings(env)

    assert exc.value.var == var
    assert var in str(exc.value)
