"""
Transaction Finalizer - Where a winning roll becomes a claim on chain.

The game service hands us a fully built transaction as base58 text. We
never construct anything ourselves. We only:
1. Decode it
2. Work out which wire format it is (v0 or legacy), once
3. Sign it, legacy only (v0 transactions come back from the service ready)
4. Send it with preflight on and wait for "confirmed"

Nothing here retries a submission. Sending the same claim twice is worse
than losing a round, so that call belongs to whoever has the context.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import base58
from solana.rpc.api import Client
from solana.rpc.commitment import Confirmed
from solana.rpc.core import RPCException, UnconfirmedTxError
from solana.rpc.types import TxOpts
from solders.message import MessageV0
from solders.signature import Signature
from solders.transaction import Transaction, VersionedTransaction

from snake_sniper.errors import (
    ConfirmationTimeoutError,
    DecodeError,
    SigningError,
    SubmissionRejectedError,
)

SUBMIT_OPTS = TxOpts(
    skip_preflight=False,
    preflight_commitment=Confirmed,
    max_retries=3,
)


class TransactionKind(Enum):
    VERSIONED = "versioned"
    LEGACY = "legacy"


@dataclass
class DecodedTransaction:
    kind: TransactionKind
    transaction: Union[VersionedTransaction, Transaction]

    @property
    def needs_signature(self) -> bool:
        return self.kind == TransactionKind.LEGACY


@dataclass
class FinalizationResult:
    signature: str
    kind: TransactionKind
    confirmed: bool = True


def decode_transaction(encoded: str) -> DecodedTransaction:
    """Resolve base58 text to exactly one of the two wire formats.

    A buffer only counts as versioned when it carries a v0 message. The
    versioned parser happily reads legacy messages too, so anything else
    falls through to the legacy parser.
    """
    if not encoded:
        raise DecodeError("Empty transaction payload", step="submitting", payload=encoded)

    try:
        raw = base58.b58decode(encoded.strip())
    except ValueError as e:
        raise DecodeError(f"Transaction is not valid base58: {e}",
                          step="submitting", payload=encoded) from e

    versioned_error = None
    try:
        versioned = VersionedTransaction.from_bytes(raw)
        if isinstance(versioned.message, MessageV0):
            return DecodedTransaction(TransactionKind.VERSIONED, versioned)
    except Exception as e:
        versioned_error = e

    try:
        legacy = Transaction.from_bytes(raw)
    except Exception as e:
        raise DecodeError(
            f"Transaction is neither versioned ({versioned_error or 'not v0'}) "
            f"nor legacy ({e})",
            step="submitting", payload=encoded,
        ) from e

    return DecodedTransaction(TransactionKind.LEGACY, legacy)


class TransactionFinalizer:
    """
    Signs (when needed), submits and confirms service-built transactions.

    Owns the signer for the life of the process.
    """

    def __init__(self, client: Client, signer):
        self.client = client
        self.signer = signer

    @classmethod
    def from_config(cls, config, signer) -> "TransactionFinalizer":
        return cls(Client(config.solana.rpc_url, timeout=config.game.http_timeout), signer)

    def finalize(self, encoded: str) -> FinalizationResult:
        decoded = decode_transaction(encoded)
        if decoded.needs_signature:
            self._sign_legacy(decoded.transaction)

        signature = self._submit(decoded)
        self._confirm(signature)
        return FinalizationResult(signature=str(signature), kind=decoded.kind)

    def signature_status(self, signature: str) -> Optional[str]:
        """
        Look up a signature we gave up waiting on.

        Returns the confirmation status ("processed", "confirmed",
        "finalized") or None if the cluster doesn't know it (yet).
        """
        sig = Signature.from_string(signature)
        resp = self.client.get_signature_statuses([sig], search_transaction_history=True)
        status = resp.value[0]
        if status is None:
            return None
        if status.err is not None:
            raise SubmissionRejectedError(f"Transaction failed on chain: {status.err}",
                                          signature=signature, step="submitting")
        if status.confirmation_status is None:
            return None
        return _status_name(status.confirmation_status)

    def _sign_legacy(self, tx: Transaction):
        try:
            tx.partial_sign([self.signer], tx.message.recent_blockhash)
        except Exception as e:
            raise SigningError(f"Could not sign legacy transaction: {e}",
                               step="submitting") from e

    def _submit(self, decoded: DecodedTransaction) -> Signature:
        try:
            resp = self.client.send_raw_transaction(bytes(decoded.transaction), opts=SUBMIT_OPTS)
        except RPCException as e:
            raise SubmissionRejectedError(f"RPC rejected {decoded.kind.value} transaction: {e}",
                                          step="submitting") from e
        return resp.value

    def _confirm(self, signature: Signature):
        try:
            resp = self.client.confirm_transaction(signature, commitment=Confirmed)
        except UnconfirmedTxError as e:
            raise ConfirmationTimeoutError(f"Not confirmed in time: {e}",
                                           signature=str(signature), step="submitting") from e
        except Exception as e:
            # Already broadcast, so it may still land. Hand back the signature.
            raise ConfirmationTimeoutError(f"Lost track of confirmation: {type(e).__name__}: {e}",
                                           signature=str(signature), step="submitting") from e

        status = resp.value[0] if resp.value else None
        if status is not None and status.err is not None:
            raise SubmissionRejectedError(f"Transaction failed on chain: {status.err}",
                                          signature=str(signature), step="submitting")


def _status_name(confirmation_status) -> str:
    # solders TransactionConfirmationStatus prints as "TransactionConfirmationStatus.Confirmed"
    return str(confirmation_status).rsplit(".", 1)[-1].lower()
