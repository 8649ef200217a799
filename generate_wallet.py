#!/usr/bin/env python3
r"""
Generate a fresh Solana keypair and print both halves.

The private key is printed as a comma-separated byte list, which is the
format PRIVATE_KEY expects in .env:

    python generate_wallet.py
    # optionally also write a solana-keygen style JSON file
    python generate_wallet.py --outfile agent-keypair.json

After generation, set in .env of the agent:
    PRIVATE_KEY=<printed private key>
"""
import json
import os
import sys
from argparse import ArgumentParser

from solders.keypair import Keypair


def generate(outfile: str | None = None) -> int:
    keypair = Keypair()
    secret = bytes(keypair)

    print("Public Key:", keypair.pubkey())
    print("Private Key:", ",".join(str(b) for b in secret))
    print("IMPORTANT: Store the private key securely!")

    if outfile:
        if os.path.exists(outfile):
            print(f"ERROR: {outfile} already exists; refusing to overwrite", file=sys.stderr)
            return 2
        with open(outfile, "w") as f:
            json.dump(list(secret), f)
        try:
            os.chmod(outfile, 0o600)
        except OSError:
            pass
        print(f"Keypair written to {outfile}")
    return 0


def main(argv: list[str] | None = None) -> int:
    ap = ArgumentParser(description="Generate a Solana keypair for the task agent")
    ap.add_argument("--outfile", default=None, help="Also write the secret key as a JSON int array to this path")
    args = ap.parse_args(argv)
    return generate(args.outfile)


if __name__ == "__main__":
    sys.exit(main())
