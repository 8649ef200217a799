"""Raydium DEX integration over Raydium's public REST API.

Pool metadata comes from the v3 API (``/pools/info/ids``); swaps are quoted
and built by the trade API (``/compute/swap-base-*`` then
``/transaction/swap-base-*``), which returns base64 serialized versioned
transactions. Quotes that do not route through the configured pool are refused.
The caller signs and submits the transactions through SolanaClient.
"""
import base64
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List

import requests
from solders.pubkey import Pubkey as PublicKey
from solders.transaction import VersionedTransaction

from .errors import DexError

TOKEN_PROGRAM_ID = PublicKey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
ASSOCIATED_TOKEN_PROGRAM_ID = PublicKey.from_string("ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL")
WSOL_MINT = "So11111111111111111111111111111111111111112"


def get_associated_token_address(*, owner: PublicKey, mint: PublicKey,
                                 token_program: PublicKey = TOKEN_PROGRAM_ID) -> PublicKey:
    seeds = [bytes(owner), bytes(token_program), bytes(mint)]
    ata, _ = PublicKey.find_program_address(seeds, ASSOCIATED_TOKEN_PROGRAM_ID)
    return ata


def to_base_units(amount, decimals: int) -> int:
    try:
        return int((Decimal(str(amount)) * (Decimal(10) ** int(decimals))).to_integral_value())
    except (InvalidOperation, ValueError, TypeError) as e:
        raise DexError(f"Invalid token amount: {amount!r}") from e


class RaydiumClient:
    def __init__(self, api_url: str = "https://api-v3.raydium.io",
                 trade_api_url: str = "https://transaction-v1.raydium.io",
                 timeout: float = 15, session: requests.Session | None = None):
        self.api_url = api_url.rstrip("/")
        self.trade_api_url = trade_api_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    @classmethod
    def from_settings(cls, settings) -> "RaydiumClient":
        return cls(
            settings.raydium_api_url,
            settings.raydium_trade_api_url,
            timeout=settings.raydium_http_timeout_sec,
        )

    def _unwrap(self, resp, what: str):
        try:
            resp.raise_for_status()
            body = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise DexError(f"Raydium {what} failed: {e}") from e
        if not isinstance(body, dict) or not body.get("success"):
            msg = body.get("msg") if isinstance(body, dict) else body
            raise DexError(f"Raydium {what} unsuccessful: {msg}")
        return body

    def _get(self, url: str, params: Dict[str, Any], what: str):
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise DexError(f"Raydium {what} failed: {e}") from e
        return self._unwrap(resp, what)

    def _post(self, url: str, payload: Dict[str, Any], what: str):
        try:
            resp = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise DexError(f"Raydium {what} failed: {e}") from e
        return self._unwrap(resp, what)

    ## Pool metadata

    def _first_by_id(self, path: str, pool_id: str, what: str) -> Dict[str, Any]:
        data = self._get(f"{self.api_url}{path}", {"ids": pool_id}, what).get("data")
        items = data if isinstance(data, list) else []
        for item in items:
            if isinstance(item, dict) and item.get("id") == pool_id:
                return item
        raise DexError(f"Raydium pool {pool_id} not found")

    def get_pool_info(self, pool_id: str) -> Dict[str, Any]:
        """Pool info (type, mintA/mintB with decimals, price, tvl)."""
        return self._first_by_id("/pools/info/ids", pool_id, "pool info")

    def get_priority_fee(self) -> int:
        """Suggested compute unit price (micro lamports); 0 when unavailable."""
        try:
            data = self._get(f"{self.api_url}/main/auto-fee", {}, "priority fee").get("data")
            return int(((data or {}).get("default") or {}).get("h") or 0)
        except (DexError, TypeError, ValueError) as e:
            print(f"[raydium] priority fee unavailable, using 0: {e}")
            return 0

    ## Swaps

    def make_swap_transaction(self, *, pool_info: Dict[str, Any], owner: PublicKey,
                              base_mint: str, quote_mint: str, base_amount, quote_amount,
                              fixed_side: str = "in", slippage=Decimal("0.01")) -> List[VersionedTransaction]:
        """Quote and build a swap of base_mint into quote_mint through Raydium.

        fixed_side="in" spends exactly ``base_amount`` of the base token;
        fixed_side="out" receives exactly ``quote_amount`` of the quote token.
        Returns the unsigned transactions in submission order.
        """
        mints = {}
        for side in ("mintA", "mintB"):
            m = pool_info.get(side) or {}
            if m.get("address"):
                mints[m["address"]] = m
        if base_mint not in mints or quote_mint not in mints:
            raise DexError(f"Pool {pool_info.get('id')} does not trade {base_mint}/{quote_mint}")
        if fixed_side not in ("in", "out"):
            raise DexError(f"Unsupported fixed side: {fixed_side!r}")

        if fixed_side == "in":
            amount = to_base_units(base_amount, mints[base_mint].get("decimals", 0))
        else:
            amount = to_base_units(quote_amount, mints[quote_mint].get("decimals", 0))
        if amount <= 0:
            raise DexError(f"Swap amount must be positive (fixed side {fixed_side})")

        slippage_bps = int((Decimal(str(slippage)) * 10000).to_integral_value())
        route = f"swap-base-{fixed_side}"
        compute = self._get(
            f"{self.trade_api_url}/compute/{route}",
            {
                "inputMint": base_mint,
                "outputMint": quote_mint,
                "amount": str(amount),
                "slippageBps": str(slippage_bps),
                "txVersion": "V0",
            },
            "swap quote",
        )
        quote = compute.get("data") or {}
        pool_id = pool_info.get("id")
        route_pools = [step.get("poolId") for step in quote.get("routePlan") or [] if isinstance(step, dict)]
        if not pool_id or pool_id not in route_pools:
            raise DexError(f"Raydium quote routed via {route_pools}, not configured pool {pool_id}")

        payload: Dict[str, Any] = {
            "computeUnitPriceMicroLamports": str(self.get_priority_fee()),
            "swapResponse": compute,
            "txVersion": "V0",
            "wallet": str(owner),
            "wrapSol": base_mint == WSOL_MINT,
            "unwrapSol": quote_mint == WSOL_MINT,
        }
        if base_mint != WSOL_MINT:
            payload["inputAccount"] = str(self._token_account(owner, mints[base_mint]))
        if quote_mint != WSOL_MINT:
            payload["outputAccount"] = str(self._token_account(owner, mints[quote_mint]))

        data = self._post(f"{self.trade_api_url}/transaction/{route}", payload, "swap transaction").get("data")
        txs = []
        for item in data or []:
            raw = (item or {}).get("transaction")
            if not raw:
                continue
            try:
                txs.append(VersionedTransaction.from_bytes(base64.b64decode(raw)))
            except ValueError as e:
                raise DexError(f"Raydium returned an undecodable transaction: {e}") from e
        if not txs:
            raise DexError("Raydium returned no swap transaction")
        return txs

    def _token_account(self, owner: PublicKey, mint_info: Dict[str, Any]) -> PublicKey:
        program = mint_info.get("programId")
        token_program = PublicKey.from_string(program) if program else TOKEN_PROGRAM_ID
        return get_associated_token_address(
            owner=owner, mint=PublicKey.from_string(mint_info["address"]), token_program=token_program
        )
