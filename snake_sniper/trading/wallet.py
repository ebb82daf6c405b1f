"""Signer loading. Runs once at startup; any failure here is fatal."""

import base58
from solders.keypair import Keypair

from snake_sniper.errors import SignerLoadError


def load_signer(private_key: str) -> Keypair:
    """Load a Keypair from a base58 encoded 64-byte secret key."""
    if not private_key:
        raise SignerLoadError("No SOLANA_PRIVATE_KEY configured", step="startup")
    try:
        # Keypair.from_base58_string panics on bad input, decode it ourselves
        raw = base58.b58decode(private_key.strip())
        return Keypair.from_bytes(raw)
    except Exception as e:
        # Don't echo the key back into logs
        raise SignerLoadError(f"SOLANA_PRIVATE_KEY is not a valid keypair: {type(e).__name__}",
                              step="startup") from e
