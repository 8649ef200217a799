# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from task_agent.config import Settings
from task_agent.executor import TaskExecutor
from task_agent.task_store import TaskStore

from .fakes import FakeDex, FakeSolanaClient

WSOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


@pytest.fixture()
def keypair() -> Keypair:
    return Keypair()


@pytest.fixture()
def recipient() -> str:
    return str(Pubkey.new_unique())


@pytest.fixture()
def settings(tmp_path: Path, keypair: Keypair, recipient: str) -> Settings:
    return Settings(
        private_key=",".join(str(b) for b in bytes(keypair)),
        recipient_public_key=recipient,
        raydium_pool_id=str(Pubkey.new_unique()),
        base_token_mint=WSOL_MINT,
        quote_token_mint=USDC_MINT,
        db_path=str(tmp_path / "agent.db"),
        poll_interval=0,
    )


@pytest.fixture()
def store(settings: Settings):
    s = TaskStore(settings.db_path)
    s.init_db()
    yield s
    s.close()


@pytest.fixture()
def solana() -> FakeSolanaClient:
    return FakeSolanaClient()


@pytest.fixture()
def dex(settings: Settings) -> FakeDex:
    return FakeDex(settings.raydium_pool_id, settings.base_token_mint, settings.quote_token_mint)


@pytest.fixture()
def executor(store, solana, keypair, settings, dex) -> TaskExecutor:
    return TaskExecutor(store, solana, keypair, settings, dex_factory=lambda _settings: dex)
