import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from dotenv import load_dotenv

from .errors import ConfigInvalid, ConfigMissing

load_dotenv()

# (env var, diagnostic printed when it is absent)
REQUIRED_ENV = [
    ("PRIVATE_KEY", "Private key not found in .env file"),
    ("RECIPIENT_PUBLIC_KEY", "Recipient public key not found in .env file"),
    ("RAYDIUM_POOL_ID", "Raydium pool ID not found in .env file"),
    ("BASE_TOKEN_MINT", "Base token mint not found in .env file"),
    ("QUOTE_TOKEN_MINT", "Quote token mint not found in .env file"),
]


def _env_bool(env, name: str, default: str) -> bool:
    return env.get(name, default).lower() in ("1", "true", "yes", "on")


def _env_int(env, name: str, default: str) -> int:
    value = env.get(name, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigInvalid(name, value) from None


def _env_decimal(env, name: str, default: str) -> Decimal:
    value = env.get(name, default)
    try:
        parsed = Decimal(value)
    except (TypeError, ValueError, InvalidOperation):
        raise ConfigInvalid(name, value) from None
    if not parsed.is_finite():
        raise ConfigInvalid(name, value)
    return parsed


@dataclass(frozen=True)
class Settings:
    # Mandatory
    private_key: str
    recipient_public_key: str
    raydium_pool_id: str
    base_token_mint: str
    quote_token_mint: str

    # Solana
    rpc_url: str = "https://api.devnet.solana.com"
    commitment: str = "confirmed"
    rpc_timeout_sec: int = 8
    confirm_timeout_sec: int = 60

    # Polling & storage
    db_path: str = "agent.db"
    poll_interval: int = 10
    seed_example_tasks: bool = True
    seed_transfer_amount: Decimal = Decimal("0.01")

    # DEX trade (example amounts, token units)
    dex_base_amount: Decimal = Decimal("0.001")
    dex_quote_amount: Decimal = Decimal("0")
    dex_slippage: Decimal = Decimal("0.01")
    dex_fixed_side: str = "in"
    raydium_api_url: str = "https://api-v3.raydium.io"
    raydium_trade_api_url: str = "https://transaction-v1.raydium.io"
    raydium_http_timeout_sec: int = 15


def load_settings(env=None) -> Settings:
    """Build Settings from the environment (or the given mapping).

    Raises ConfigMissing for the first mandatory variable that is unset or empty
    and ConfigInvalid for a numeric setting that does not parse.
    """
    if env is None:
        env = os.environ
    for var, message in REQUIRED_ENV:
        if not env.get(var):
            raise ConfigMissing(var, message)

    return Settings(
        private_key=env["PRIVATE_KEY"].strip(),
        recipient_public_key=env["RECIPIENT_PUBLIC_KEY"].strip(),
        raydium_pool_id=env["RAYDIUM_POOL_ID"].strip(),
        base_token_mint=env["BASE_TOKEN_MINT"].strip(),
        quote_token_mint=env["QUOTE_TOKEN_MINT"].strip(),
        rpc_url=env.get("SOLANA_RPC_URL", "https://api.devnet.solana.com"),
        commitment=env.get("SOLANA_COMMITMENT", "confirmed"),
        rpc_timeout_sec=_env_int(env, "SOLANA_RPC_TIMEOUT_SEC", "8"),  # per-call soft timeout safeguard
        confirm_timeout_sec=_env_int(env, "SOLANA_CONFIRM_TIMEOUT_SEC", "60"),
        db_path=env.get("TASK_DB_PATH", "agent.db"),
        poll_interval=_env_int(env, "POLL_INTERVAL", "10"),
        seed_example_tasks=_env_bool(env, "SEED_EXAMPLE_TASKS", "true"),
        seed_transfer_amount=_env_decimal(env, "SEED_TRANSFER_AMOUNT", "0.01"),
        dex_base_amount=_env_decimal(env, "DEX_BASE_AMOUNT", "0.001"),
        dex_quote_amount=_env_decimal(env, "DEX_QUOTE_AMOUNT", "0"),
        dex_slippage=_env_decimal(env, "DEX_SLIPPAGE", "0.01"),
        dex_fixed_side=env.get("DEX_FIXED_SIDE", "in").lower(),
        raydium_api_url=env.get("RAYDIUM_API_URL", "https://api-v3.raydium.io").rstrip("/"),
        raydium_trade_api_url=env.get("RAYDIUM_TRADE_API_URL", "https://transaction-v1.raydium.io").rstrip("/"),
        raydium_http_timeout_sec=_env_int(env, "RAYDIUM_HTTP_TIMEOUT_SEC", "15"),
    )
