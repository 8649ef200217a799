import json
import os
import queue
import threading
from decimal import Decimal, InvalidOperation
from typing import Optional

from solana.exceptions import SolanaRpcException
from solana.rpc.api import Client
from solana.rpc.commitment import Commitment
from solana.rpc.core import RPCException, UnconfirmedTxError
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.instruction import Instruction as TransactionInstruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey as PublicKey
from solders.signature import Signature
from solders.transaction import Transaction, VersionedTransaction

from .errors import InvalidAddress, NetworkError, TransactionRejected

LAMPORTS_PER_SOL = 1_000_000_000


def parse_public_key(value) -> PublicKey:
    """Parse a base58 address, raising InvalidAddress when it is malformed."""
    if isinstance(value, PublicKey):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidAddress(value, "empty or not a string")
    try:
        return PublicKey.from_string(value.strip())
    except ValueError as e:
        raise InvalidAddress(value, str(e)) from e


def sol_to_lamports(amount) -> int:
    """Convert a whole-SOL amount to lamports without float rounding."""
    try:
        lamports = (Decimal(str(amount)) * LAMPORTS_PER_SOL).to_integral_value()
    except (InvalidOperation, ValueError) as e:
        raise TransactionRejected(f"Invalid amount: {amount!r}") from e
    if not lamports.is_finite() or lamports <= 0:
        raise TransactionRejected(f"Invalid amount: {amount!r}")
    return int(lamports)


def format_sol(lamports: int) -> str:
    return str(Decimal(int(lamports)) / LAMPORTS_PER_SOL)


def _secret_bytes(secret: str) -> bytes:
    secret = secret.strip()
    if os.path.isfile(secret):
        with open(secret, "r") as f:
            data = json.load(f)
        if isinstance(data, list):
            return bytes(data)
        raise ValueError("Unsupported keypair format; expected JSON array of ints")
    if secret.startswith("["):
        return bytes(json.loads(secret))
    if "," in secret:
        return bytes(int(b) for b in secret.split(","))
    raise ValueError("Unsupported private key format")


def load_keypair(secret: str) -> Keypair:
    """Keypair from comma-separated bytes, a JSON array, a keypair file or base58.

    Only a secret that is none of the byte forms is read as base58, so a
    malformed byte list reports its own error.
    """
    s = secret.strip()
    if os.path.isfile(s) or s.startswith("[") or "," in s:
        return Keypair.from_bytes(_secret_bytes(s))
    return Keypair.from_base58_string(s)


def _rpc_call(method, *args, timeout: Optional[float] = None, **kwargs):
    """Run an RPC client method in a thread with timeout to avoid hangs.

    Transport failures and timeouts surface as NetworkError, RPC error
    responses as TransactionRejected.
    """
    if timeout is None:
        timeout = 8
    q: "queue.Queue[tuple[bool, object]]" = queue.Queue(maxsize=1)

    def _runner():
        try:
            res = method(*args, **kwargs)
            q.put((True, res))
        except Exception as e:
            q.put((False, e))

    th = threading.Thread(target=_runner, daemon=True)
    th.start()
    try:
        ok, val = q.get(timeout=timeout)
    except queue.Empty:
        raise NetworkError(f"RPC call timeout after {timeout}s: {getattr(method, '__name__', method)}")
    if ok:
        return val
    if isinstance(val, RPCException):
        raise TransactionRejected(f"RPC rejected {getattr(method, '__name__', method)}: {val}") from val
    if isinstance(val, (SolanaRpcException, UnconfirmedTxError, OSError)):
        raise NetworkError(f"RPC {getattr(method, '__name__', method)} failed: {val}") from val
    raise val


class SolanaClient:
    """Single connection handle to the Solana RPC endpoint."""

    def __init__(self, rpc_url: str, commitment: str = "confirmed", rpc_timeout: float = 8,
                 confirm_timeout: float = 60, client: Client | None = None):
        self.rpc_url = rpc_url
        self.commitment = Commitment(commitment)
        self.rpc_timeout = rpc_timeout
        self.confirm_timeout = confirm_timeout
        self._client = client if client is not None else Client(rpc_url, commitment=self.commitment)

    @classmethod
    def from_settings(cls, settings) -> "SolanaClient":
        return cls(
            settings.rpc_url,
            commitment=settings.commitment,
            rpc_timeout=settings.rpc_timeout_sec,
            confirm_timeout=settings.confirm_timeout_sec,
        )

    def get_balance(self, pubkey: PublicKey) -> int:
        """Return the balance of ``pubkey`` in lamports."""
        resp = _rpc_call(self._client.get_balance, pubkey, timeout=self.rpc_timeout)
        return int(resp.value)

    def _latest_blockhash(self) -> Hash:
        resp = _rpc_call(self._client.get_latest_blockhash, timeout=self.rpc_timeout)
        bh = getattr(getattr(resp, "value", None), "blockhash", None)
        if bh is None:
            raise NetworkError(f"Failed to fetch recent blockhash: {resp}")
        return bh

    def send_transaction(self, tx, signers: list[Keypair]) -> str:
        """Sign and submit ``tx``; return the signature string.

        ``tx`` is either a list of instructions (sent as a legacy transaction
        paid by the first signer) or an unsigned VersionedTransaction.
        """
        if not signers:
            raise TransactionRejected("At least one signer is required")
        if isinstance(tx, VersionedTransaction):
            signed = VersionedTransaction(tx.message, signers)
        else:
            instructions: list[TransactionInstruction] = list(tx)
            signed = Transaction.new_signed_with_payer(
                instructions, signers[0].pubkey(), signers, self._latest_blockhash()
            )
        send_resp = _rpc_call(
            self._client.send_raw_transaction,
            bytes(signed),
            opts=TxOpts(preflight_commitment=self.commitment),
            timeout=self.rpc_timeout,
        )
        sig = getattr(send_resp, "value", None)
        if sig is None:
            raise TransactionRejected(f"Failed to send tx, unexpected response: {send_resp}")
        return str(sig)

    def confirm_transaction(self, signature: str):
        """Block until ``signature`` reaches the configured commitment."""
        resp = _rpc_call(
            self._client.confirm_transaction,
            Signature.from_string(signature),
            commitment=self.commitment,
            timeout=self.confirm_timeout,
        )
        statuses = getattr(resp, "value", None) or []
        status = statuses[0] if statuses else None
        if status is not None and status.err is not None:
            raise TransactionRejected(f"Transaction {signature} failed on chain: {status.err}")
        return resp
