# tests/test_scripts.py

from __future__ import annotations

import json
from pathlib import Path

from solders.keypair import Keypair
from solders.pubkey import Pubkey

import generate_wallet
import task_viewer
from task_agent.models import DEX_TRADE, PENDING, TRANSFER
from task_agent.solana_client import load_keypair
from task_agent.task_store import TaskStore


def test_generate_wallet_prints_usable_keypair(capsys) -> None:
    assert generate_wallet.main([]) == 0

    lines = capsys.readouterr().out.splitlines()
    public = lines[0].split(": ", 1)[1]
    private = lines[1].split(": ", 1)[1]
    assert lines[2] == "IMPORTANT: Store the private key securely!"
    assert str(load_keypair(private).pubkey()) == public


def test_generate_wallet_writes_and_never_overwrites(tmp_path: Path) -> None:
    out = tmp_path / "kp.json"

    assert generate_wallet.main(["--outfile", str(out)]) == 0
    secret = json.loads(out.read_text())
    assert len(secret) == 64
    Keypair.from_bytes(bytes(secret))

    before = out.read_text()
    assert generate_wallet.main(["--outfile", str(out)]) == 2
    assert out.read_text() == before


def test_task_viewer_enqueues_and_lists(tmp_path: Path, capsys) -> None:
    db = str(tmp_path / "agent.db")
    to = str(Pubkey.new_unique())

    assert task_viewer.main(["--db", db, "--add-transfer", to, "0.5"]) == 0
    assert task_viewer.main(["--db", db, "--add-dex-trade"]) == 0
    assert task_viewer.main(["--db", db, "--status", PENDING]) == 0

    out = capsys.readouterr().out
    assert "Pending Tasks" in out
    store = TaskStore(db)
    store.init_db()
    try:
        tasks = store.get_pending_tasks()
    finally:
        store.close()
    assert [(t.kind, t.payload) for t in tasks] == [(TRANSFER, {"to": to, "amount": 0.5}), (DEX_TRADE, {})]


def test_task_viewer_rejects_bad_transfer(tmp_path: Path) -> None:
    db = tmp_path / "agent.db"

    assert task_viewer.main(["--db", str(db), "--add-transfer", "nope", "1"]) == 1


def test_task_viewer_requires_existing_db(tmp_path: Path) -> None:
    assert task_viewer.main(["--db", str(tmp_path / "missing.db")]) == 1
    assert not (tmp_path / "missing.db").exists()
