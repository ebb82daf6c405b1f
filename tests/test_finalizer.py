"""Tests for transaction decoding, conditional signing and submission."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import base58
import pytest
from solana.rpc.core import RPCException, UnconfirmedTxError
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import Message, MessageV0
from solders.signature import Signature
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction, VersionedTransaction

from snake_sniper.errors import (
    ConfirmationTimeoutError,
    DecodeError,
    SigningError,
    SubmissionRejectedError,
)
from snake_sniper.trading.finalizer import (
    SUBMIT_OPTS,
    TransactionFinalizer,
    TransactionKind,
    decode_transaction,
)

BLOCKHASH = Hash.new_unique()


def _transfer_ix(payer):
    return transfer(TransferParams(
        from_pubkey=payer.pubkey(), to_pubkey=Keypair().pubkey(), lamports=1_000,
    ))


def _legacy_b58(payer):
    message = Message.new_with_blockhash([_transfer_ix(payer)], payer.pubkey(), BLOCKHASH)
    return base58.b58encode(bytes(Transaction.new_unsigned(message))).decode()


def _versioned_b58(payer):
    message = MessageV0.try_compile(payer.pubkey(), [_transfer_ix(payer)], [], BLOCKHASH)
    return base58.b58encode(bytes(VersionedTransaction(message, [payer]))).decode()


def _client(signature=None, err=None):
    client = MagicMock()
    client.send_raw_transaction.return_value = SimpleNamespace(value=signature or Signature.new_unique())
    client.confirm_transaction.return_value = SimpleNamespace(value=[SimpleNamespace(err=err)])
    return client


def _sent_bytes(client):
    return client.send_raw_transaction.call_args.args[0]


class TestDecodeTransaction:
    def test_versioned(self):
        decoded = decode_transaction(_versioned_b58(Keypair()))
        assert decoded.kind == TransactionKind.VERSIONED
        assert not decoded.needs_signature

    def test_legacy(self):
        decoded = decode_transaction(_legacy_b58(Keypair()))
        assert decoded.kind == TransactionKind.LEGACY
        assert decoded.needs_signature

    def test_invalid_base58(self):
        with pytest.raises(DecodeError):
            decode_transaction("0OIl not base58")

    def test_empty(self):
        with pytest.raises(DecodeError):
            decode_transaction("")

    def test_garbage_under_both_formats(self):
        with pytest.raises(DecodeError):
            decode_transaction(base58.b58encode(b"\xff\xff\xff").decode())


class TestFinalize:
    def test_versioned_is_sent_as_is(self):
        payer = Keypair()
        encoded = _versioned_b58(payer)
        client = _client()

        result = TransactionFinalizer(client, Keypair()).finalize(encoded)

        assert result.kind == TransactionKind.VERSIONED
        assert result.confirmed
        assert _sent_bytes(client) == base58.b58decode(encoded)

    def test_legacy_gets_signed(self):
        signer = Keypair()
        encoded = _legacy_b58(signer)
        client = _client()

        result = TransactionFinalizer(client, signer).finalize(encoded)

        assert result.kind == TransactionKind.LEGACY
        sent = Transaction.from_bytes(_sent_bytes(client))
        assert sent.signatures[0] != Signature.default()
        assert sent.signatures[0] == signer.sign_message(bytes(sent.message))

    def test_submission_options(self):
        signature = Signature.new_unique()
        client = _client(signature=signature)

        result = TransactionFinalizer(client, Keypair()).finalize(_versioned_b58(Keypair()))

        opts = client.send_raw_transaction.call_args.kwargs["opts"]
        assert opts is SUBMIT_OPTS
        assert opts.skip_preflight is False
        assert opts.max_retries == 3
        client.confirm_transaction.assert_called_once()
        assert client.confirm_transaction.call_args.args[0] == signature
        assert result.signature == str(signature)

    def test_legacy_signer_not_required(self):
        client = _client()
        with pytest.raises(SigningError):
            TransactionFinalizer(client, Keypair()).finalize(_legacy_b58(Keypair()))
        client.send_raw_transaction.assert_not_called()

    def test_decode_error_sends_nothing(self):
        client = _client()
        with pytest.raises(DecodeError):
            TransactionFinalizer(client, Keypair()).finalize("not-base58!")
        client.send_raw_transaction.assert_not_called()

    def test_rpc_rejection(self):
        client = _client()
        client.send_raw_transaction.side_effect = RPCException("preflight failed")
        with pytest.raises(SubmissionRejectedError):
            TransactionFinalizer(client, Keypair()).finalize(_versioned_b58(Keypair()))
        assert client.send_raw_transaction.call_count == 1

    def test_confirmation_timeout_keeps_signature(self):
        signature = Signature.new_unique()
        client = _client(signature=signature)
        client.confirm_transaction.side_effect = UnconfirmedTxError("timed out")

        with pytest.raises(ConfirmationTimeoutError) as exc:
            TransactionFinalizer(client, Keypair()).finalize(_versioned_b58(Keypair()))

        assert exc.value.signature == str(signature)
        assert client.send_raw_transaction.call_count == 1

    def test_transport_failure_while_confirming_keeps_signature(self):
        signature = Signature.new_unique()
        client = _client(signature=signature)
        client.confirm_transaction.side_effect = ConnectionError("connection reset")

        with pytest.raises(ConfirmationTimeoutError) as exc:
            TransactionFinalizer(client, Keypair()).finalize(_versioned_b58(Keypair()))

        assert exc.value.signature == str(signature)
        assert client.send_raw_transaction.call_count == 1

    def test_on_chain_error(self):
        client = _client(err="InstructionError")
        with pytest.raises(SubmissionRejectedError):
            TransactionFinalizer(client, Keypair()).finalize(_versioned_b58(Keypair()))


class TestSignatureStatus:
    def _status_client(self, status):
        client = MagicMock()
        client.get_signature_statuses.return_value = SimpleNamespace(value=[status])
        return client

    def test_unknown(self):
        client = self._status_client(None)
        finalizer = TransactionFinalizer(client, Keypair())
        assert finalizer.signature_status(str(Signature.new_unique())) is None

    def test_confirmed(self):
        status = SimpleNamespace(err=None, confirmation_status="TransactionConfirmationStatus.Confirmed")
        finalizer = TransactionFinalizer(self._status_client(status), Keypair())
        assert finalizer.signature_status(str(Signature.new_unique())) == "confirmed"

    def test_failed_on_chain(self):
        status = SimpleNamespace(err="InsufficientFunds", confirmation_status=None)
        finalizer = TransactionFinalizer(self._status_client(status), Keypair())
        with pytest.raises(SubmissionRejectedError):
            finalizer.signature_status(str(Signature.new_unique()))
