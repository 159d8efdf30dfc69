# Copyright (C) 2018-2025 The multisig-utils developers
#
# This file is part of multisig-utils
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of multisig-utils, including this file, may be copied, modified,
# propagated, or distributed except according to the terms contained in the
# LICENSE file.

import logging
import struct
from typing import Callable, Optional, Sequence, Union

from multisigutils.addresses import address_to_script_pub_key
from multisigutils.constants import (
    DEFAULT_TX_SEQUENCE,
    DEFAULT_TX_LOCKTIME,
    MULTISIG_TX_VERSION,
    P2SH,
    P2SH_P2WSH,
    P2WSH,
    SIGHASH_ALL,
    SIGHASH_ALL_HEX,
)
from multisigutils.inputs import MultisigTransactionInput, validate_multisig_inputs
from multisigutils.multisig import (
    MultisigDescriptor,
    generate_multisig_from_raw,
    multisig_address_type,
    multisig_public_keys,
    multisig_redeem_script,
    multisig_required_signers,
    multisig_witness_script,
)
from multisigutils.outputs import TransactionOutput, validate_outputs
from multisigutils.script import Script
from multisigutils.signatures import signature_no_sighash_type, signing_public_key
from multisigutils.utils import (
    b_to_h,
    encode_varint,
    h_to_b,
    parse_compact_size,
    prepend_compact_size,
    sha256d,
)


logger = logging.getLogger(__name__)


class TxInput:
    """Represents a transaction input.

    A transaction input requires a transaction id of a UTXO and the index of
    that UTXO.

    Attributes
    ----------
    txid : str
        the transaction id as a hex string (little-endian as displayed by
        tools)
    txout_index : int
        the index of the UTXO that we want to spend
    script_sig : Script
        the script that satisfies the locking conditions (aka unlocking script)
    sequence : bytes
        the input sequence (for timelocks, RBF, etc.)

    Methods
    -------
    to_bytes()
        serializes TxInput to bytes
    copy()
        creates a copy of the object (classmethod)
    from_raw()
        instantiates object from raw input bytes (staticmethod)
    """

    def __init__(
        self,
        txid: str,
        txout_index: int,
        script_sig: Optional[Script] = None,
        sequence: Union[str, bytes] = DEFAULT_TX_SEQUENCE,
    ) -> None:
        """See TxInput description"""

        self.txid = txid
        self.txout_index = txout_index
        self.script_sig = script_sig if script_sig is not None else Script([])

        if isinstance(sequence, str):
            self.sequence = h_to_b(sequence)
        else:
            self.sequence = sequence

    def to_bytes(self) -> bytes:
        """Serializes to bytes"""

        # txids are displayed in little-endian so reverse them back to
        # internal byte order; note struct "<" is little-endian
        txid_bytes = h_to_b(self.txid)[::-1]
        txout_bytes = struct.pack("<L", self.txout_index)
        script_sig_bytes = self.script_sig.to_bytes()

        return (
            txid_bytes
            + txout_bytes
            + prepend_compact_size(script_sig_bytes)
            + self.sequence
        )

    @staticmethod
    def from_raw(rawtx: bytes, cursor: int = 0) -> tuple["TxInput", int]:
        """Parses a TxInput starting at cursor, returns it and the new cursor"""

        txid, vout = struct.unpack_from("<32sI", rawtx, cursor)
        cursor += 36

        script_size, size = parse_compact_size(rawtx[cursor:])
        cursor += size
        script_sig = Script.from_raw(rawtx[cursor : cursor + script_size])
        cursor += script_size

        sequence = rawtx[cursor : cursor + 4]
        cursor += 4

        return TxInput(b_to_h(txid[::-1]), vout, script_sig, sequence), cursor

    @classmethod
    def copy(cls, txin: "TxInput") -> "TxInput":
        """Deep copy of TxInput"""

        return cls(txin.txid, txin.txout_index, Script.copy(txin.script_sig), txin.sequence)

    def __str__(self) -> str:
        return str(
            {
                "txid": self.txid,
                "txout_index": self.txout_index,
                "script_sig": self.script_sig,
                "sequence": self.sequence.hex(),
            }
        )

    def __repr__(self) -> str:
        return self.__str__()


class TxWitnessInput:
    """A list of the witness items required to satisfy the locking conditions
       of a segwit input (aka witness stack).

    Attributes
    ----------
    stack : list
        the witness items (hex str) list

    Methods
    -------
    to_bytes()
        returns a serialized byte version of the witness items list
    copy()
        creates a copy of the object (classmethod)
    """

    def __init__(self, stack: list[str]) -> None:
        """See description"""

        self.stack = stack

    def to_bytes(self) -> bytes:
        """Converts to bytes, item count first"""

        stack_bytes = encode_varint(len(self.stack))
        for item in self.stack:
            stack_bytes += prepend_compact_size(h_to_b(item))
        return stack_bytes

    @classmethod
    def copy(cls, txwin: "TxWitnessInput") -> "TxWitnessInput":
        """Deep copy of TxWitnessInput"""

        return cls(list(txwin.stack))

    def __str__(self) -> str:
        return str({"witness_items": self.stack})

    def __repr__(self) -> str:
        return self.__str__()


class TxOutput:
    """Represents a transaction output

    Attributes
    ----------
    amount : int
        the value we want to send to this output in satoshis
    script_pubkey : Script
        the script that will lock this amount

    Methods
    -------
    to_bytes()
        serializes TxOutput to bytes
    copy()
        creates a copy of the object (classmethod)
    from_raw()
        instantiates object from raw output bytes (staticmethod)
    """

    def __init__(self, amount: int, script_pubkey: Script) -> None:
        """See TxOutput description"""

        if not isinstance(amount, int):
            raise TypeError("Amount needs to be in satoshis as an integer")

        self.amount = amount
        self.script_pubkey = script_pubkey

    def to_bytes(self) -> bytes:
        """Serializes to bytes"""

        amount_bytes = struct.pack("<q", self.amount)
        return amount_bytes + prepend_compact_size(self.script_pubkey.to_bytes())

    @staticmethod
    def from_raw(rawtx: bytes, cursor: int = 0) -> tuple["TxOutput", int]:
        """Parses a TxOutput starting at cursor, returns it and the new cursor"""

        (amount,) = struct.unpack_from("<q", rawtx, cursor)
        cursor += 8

        script_size, size = parse_compact_size(rawtx[cursor:])
        cursor += size
        script_pubkey = Script.from_raw(rawtx[cursor : cursor + script_size])
        cursor += script_size

        return TxOutput(amount, script_pubkey), cursor

    @classmethod
    def copy(cls, txout: "TxOutput") -> "TxOutput":
        """Deep copy of TxOutput"""

        return cls(txout.amount, Script.copy(txout.script_pubkey))

    def __str__(self) -> str:
        return str({"amount": self.amount, "script_pubkey": self.script_pubkey})

    def __repr__(self) -> str:
        return self.__str__()


class Transaction:
    """Represents a transaction

    Attributes
    ----------
    inputs : list (TxInput)
        A list of all the transaction inputs
    outputs : list (TxOutput)
        A list of all the transaction outputs
    locktime : bytes
        The transaction's locktime parameter
    version : bytes
        The transaction version
    witnesses : list (TxWitnessInput)
        The witness stacks, one per input (empty stacks for non-segwit inputs)

    Methods
    -------
    to_bytes(include_witness=True)
        serializes Transaction to bytes
    to_hex()
        converts result of to_bytes to hexadecimal string
    from_raw()
        instantiates a Transaction from serialized raw hexadecimal data
        (staticmethod)
    copy()
        creates a copy of the object (classmethod)
    get_txid()
        calculates txid and returns it
    set_witness(txin_index, stack)
        sets the witness stack of an input
    has_segwit()
        returns true if any input carries witness data
    get_transaction_digest(txin_index, script, sighash)
        returns the legacy digest that is signed for an input
    get_transaction_segwit_digest(txin_index, script, amount, sighash)
        returns the segwit v0 (BIP143) digest that is signed for an input
    """

    def __init__(
        self,
        inputs: Optional[list[TxInput]] = None,
        outputs: Optional[list[TxOutput]] = None,
        locktime: Union[str, bytes] = DEFAULT_TX_LOCKTIME,
        version: bytes = MULTISIG_TX_VERSION,
        witnesses: Optional[list[TxWitnessInput]] = None,
    ) -> None:
        """See Transaction description"""

        self.inputs = inputs if inputs is not None else []
        self.outputs = outputs if outputs is not None else []
        self.witnesses = witnesses if witnesses is not None else []

        # if user provided a locktime it would be as string
        if isinstance(locktime, str):
            self.locktime = h_to_b(locktime)
        else:
            self.locktime = locktime

        self.version = version

    def has_segwit(self) -> bool:
        return any(witness.stack for witness in self.witnesses)

    def set_witness(self, txin_index: int, stack: list[str]) -> None:
        """Sets the witness stack (hex items) of the input at txin_index"""

        if not 0 <= txin_index < len(self.inputs):
            raise IndexError(f"No input at index {txin_index}")
        while len(self.witnesses) < len(self.inputs):
            self.witnesses.append(TxWitnessInput([]))
        self.witnesses[txin_index] = TxWitnessInput(stack)

    def to_bytes(self, include_witness: bool = True) -> bytes:
        """Serializes transaction to bytes following the Bitcoin protocol
        serialization; marker, flag and witnesses only when there is witness
        data and include_witness is set"""

        data = self.version + encode_varint(len(self.inputs))
        for txin in self.inputs:
            data += txin.to_bytes()
        data += encode_varint(len(self.outputs))
        for txout in self.outputs:
            data += txout.to_bytes()

        if not include_witness or not self.has_segwit():
            return data + self.locktime

        # add marker and flag to indicate segwit tx
        data = self.version + b"\x00\x01" + data[len(self.version) :]
        for txin_index in range(len(self.inputs)):
            if txin_index < len(self.witnesses):
                data += self.witnesses[txin_index].to_bytes()
            else:
                data += b"\x00"
        return data + self.locktime

    def to_hex(self) -> str:
        """Serializes transaction to hex string"""

        return b_to_h(self.to_bytes())

    def serialize(self) -> str:
        """Alias for to_hex()"""

        return self.to_hex()

    def get_txid(self) -> str:
        """Calculates the transaction id (txid) and returns it"""

        # txid never commits to witness data
        return b_to_h(sha256d(self.to_bytes(include_witness=False))[::-1])

    @staticmethod
    def from_raw(rawtxhex: str) -> "Transaction":
        """
        Imports a Transaction from hexadecimal data.

        Raises
        ------
        ValueError
            if the data is not a complete transaction
        """
        rawtx = h_to_b(rawtxhex)

        version = rawtx[0:4]
        cursor = 4

        segwit = rawtx[cursor : cursor + 2] == b"\x00\x01"
        if segwit:
            cursor += 2

        n_inputs, size = parse_compact_size(rawtx[cursor:])
        cursor += size
        inputs = []
        for _ in range(n_inputs):
            txin, cursor = TxInput.from_raw(rawtx, cursor)
            inputs.append(txin)

        n_outputs, size = parse_compact_size(rawtx[cursor:])
        cursor += size
        outputs = []
        for _ in range(n_outputs):
            txout, cursor = TxOutput.from_raw(rawtx, cursor)
            outputs.append(txout)

        witnesses = []
        if segwit:
            for _ in range(n_inputs):
                n_items, size = parse_compact_size(rawtx[cursor:])
                cursor += size
                stack = []
                for _ in range(n_items):
                    item_size, size = parse_compact_size(rawtx[cursor:])
                    cursor += size
                    stack.append(b_to_h(rawtx[cursor : cursor + item_size]))
                    cursor += item_size
                witnesses.append(TxWitnessInput(stack))

        locktime = rawtx[cursor : cursor + 4]
        if len(locktime) != 4 or cursor + 4 != len(rawtx):
            raise ValueError("Invalid transaction length")

        return Transaction(inputs, outputs, locktime, version, witnesses)

    @classmethod
    def copy(cls, tx: "Transaction") -> "Transaction":
        """Deep copy of Transaction"""

        return cls(
            [TxInput.copy(txin) for txin in tx.inputs],
            [TxOutput.copy(txout) for txout in tx.outputs],
            tx.locktime,
            tx.version,
            [TxWitnessInput.copy(witness) for witness in tx.witnesses],
        )

    def get_transaction_digest(
        self, txin_index: int, script: Script, sighash: int = SIGHASH_ALL
    ) -> bytes:
        """Returns the transaction's digest for signing a legacy input.

        The scriptSig of the input being signed is replaced with script (the
        redeem script for P2SH) and all other scriptSigs are emptied.
        Only SIGHASH_ALL is supported.
        """
        if sighash != SIGHASH_ALL:
            raise ValueError("Only SIGHASH_ALL is supported")

        tmp_tx = Transaction.copy(self)
        tmp_tx.witnesses = []
        for txin in tmp_tx.inputs:
            txin.script_sig = Script([])
        tmp_tx.inputs[txin_index].script_sig = script

        # although sighash is one byte it is hashed as a 4 byte value
        tx_for_signing = tmp_tx.to_bytes(include_witness=False)
        tx_for_signing += struct.pack("<i", sighash)

        return sha256d(tx_for_signing)

    def get_transaction_segwit_digest(
        self, txin_index: int, script: Script, amount: int, sighash: int = SIGHASH_ALL
    ) -> bytes:
        """Returns the segwit v0 transaction's digest for signing.
        https://github.com/bitcoin/bips/blob/master/bip-0143.mediawiki

        Attributes
        ----------
        txin_index : int
            The index of the input that we wish to sign
        script : Script
            The scriptCode, i.e. the witness script of the multisig
        amount : int
            The amount of the UTXO to spend (in satoshis)
        sighash : int
            Only SIGHASH_ALL is supported
        """
        if sighash != SIGHASH_ALL:
            raise ValueError("Only SIGHASH_ALL is supported")

        hash_prevouts = b""
        hash_sequence = b""
        for txin in self.inputs:
            hash_prevouts += h_to_b(txin.txid)[::-1] + struct.pack("<I", txin.txout_index)
            hash_sequence += txin.sequence
        hash_prevouts = sha256d(hash_prevouts)
        hash_sequence = sha256d(hash_sequence)

        hash_outputs = sha256d(b"".join(txout.to_bytes() for txout in self.outputs))

        txin = self.inputs[txin_index]
        tx_for_signing = (
            self.version
            + hash_prevouts
            + hash_sequence
            + h_to_b(txin.txid)[::-1]
            + struct.pack("<I", txin.txout_index)
            + prepend_compact_size(script.to_bytes())
            + struct.pack("<q", amount)
            + txin.sequence
            + hash_outputs
            + self.locktime
            + struct.pack("<i", sighash)
        )

        return sha256d(tx_for_signing)

    def __str__(self) -> str:
        return str(
            {
                "inputs": self.inputs,
                "outputs": self.outputs,
                "witnesses": self.witnesses,
                "locktime": self.locktime.hex(),
                "version": self.version.hex(),
            }
        )

    def __repr__(self) -> str:
        return self.__str__()


def unsigned_multisig_transaction(
    network: Optional[str],
    inputs: Sequence[MultisigTransactionInput],
    outputs: Sequence[TransactionOutput],
) -> Transaction:
    """Create an unsigned bitcoin transaction based on the network, inputs
    and outputs.

    Inputs and outputs keep the order they are given in.

    Raises
    ------
    ValueError
        if the inputs or outputs are invalid
    """
    error = validate_multisig_inputs(inputs)
    if error:
        raise ValueError(error)
    error = validate_outputs(network, outputs)
    if error:
        raise ValueError(error)

    tx_inputs = [TxInput(txin.txid, int(txin.index)) for txin in inputs]
    tx_outputs = [
        TxOutput(int(output.amount_sats), address_to_script_pub_key(output.address, network))
        for output in outputs
    ]
    return Transaction(tx_inputs, tx_outputs, version=MULTISIG_TX_VERSION)


def multisig_signature_hash(
    network: Optional[str],
    inputs: Sequence[MultisigTransactionInput],
    outputs: Sequence[TransactionOutput],
    input_index: int,
) -> bytes:
    """Returns the SIGHASH_ALL digest signed for the input at input_index.

    P2SH inputs use the legacy digest over the redeem script. P2WSH and
    P2SH-P2WSH inputs use the segwit v0 digest over the witness script,
    which commits to the amount of the input.

    Raises
    ------
    ValueError
        if the transaction is invalid or a segwit input has no amount
    """
    unsigned_transaction = unsigned_multisig_transaction(network, inputs, outputs)
    txin = inputs[input_index]
    multisig = txin.multisig
    assert multisig is not None

    if multisig_address_type(multisig) == P2SH:
        redeem_script = multisig_redeem_script(multisig)
        assert redeem_script is not None
        return unsigned_transaction.get_transaction_digest(input_index, redeem_script)

    if txin.amount_sats is None:
        raise ValueError(
            f"Input {input_index + 1} requires an amount ('amount_sats') to be signed."
        )
    witness_script = multisig_witness_script(multisig)
    assert witness_script is not None
    return unsigned_transaction.get_transaction_segwit_digest(
        input_index, witness_script, int(txin.amount_sats)
    )


def validate_multisig_signature(
    network: Optional[str],
    inputs: Sequence[MultisigTransactionInput],
    outputs: Sequence[TransactionOutput],
    input_index: int,
    input_signature: str,
) -> Union[str, bool]:
    """Find the public key of the multisig that produced a signature.

    Parameters
    ----------
    input_signature : str
        DER signature (hex), with or without the sighash type byte

    Returns
    -------
    str or False
        the public key (hex, as in the multisig) whose verification succeeds,
        False when the signature matches none of them

    Raises
    ------
    ValueError
        if the signature is not hex or not DER encoded, or the input cannot
        be signed
    """
    digest = multisig_signature_hash(network, inputs, outputs, input_index)
    multisig = inputs[input_index].multisig
    assert multisig is not None
    return signing_public_key(multisig_public_keys(multisig), digest, input_signature)


SignatureValidator = Callable[
    [Optional[str], Sequence[MultisigTransactionInput], Sequence[TransactionOutput], int, str],
    Union[str, bool, None],
]


def signed_multisig_transaction(
    network: Optional[str],
    inputs: Sequence[MultisigTransactionInput],
    outputs: Sequence[TransactionOutput],
    transaction_signatures: Sequence[Sequence[Optional[str]]],
    signature_validator: Optional[SignatureValidator] = None,
) -> Transaction:
    """Create a fully signed multisig transaction based on the unsigned
    transaction, inputs, and their signatures.

    Each element of transaction_signatures is the list of signatures
    (hex, one per input) produced by one signer. Which public key produced
    a signature is found by verifying it, so signer rows can be given in any
    order. The signatures of each input are placed in the order of the
    public keys of its multisig.

    Parameters
    ----------
    signature_validator : callable, optional
        returns the public key that produced a signature or a falsy value;
        defaults to validate_multisig_signature

    Raises
    ------
    ValueError
        if inputs or outputs are invalid, signatures are missing, invalid or
        duplicated
    """
    if signature_validator is None:
        signature_validator = validate_multisig_signature

    # validates inputs & outputs
    unsigned_transaction = unsigned_multisig_transaction(network, inputs, outputs)
    if not transaction_signatures:
        raise ValueError("At least one transaction signature is required.")

    for signature_index, transaction_signature in enumerate(transaction_signatures):
        if len(transaction_signature) < len(inputs):
            raise ValueError(
                f"Insufficient input signatures for transaction signature "
                f"{signature_index + 1}: require {len(inputs)}, "
                f"received {len(transaction_signature)}."
            )

    signed_transaction = Transaction.copy(unsigned_transaction)
    for input_index, txin in enumerate(inputs):
        multisig = txin.multisig
        assert multisig is not None

        input_signatures = [
            transaction_signature[input_index]
            for transaction_signature in transaction_signatures
            if transaction_signature[input_index]
        ]
        required_signatures = multisig_required_signers(multisig)
        if len(input_signatures) < required_signatures:
            raise ValueError(
                f"Insufficient signatures for input {input_index + 1}: "
                f"require {required_signatures}, received {len(input_signatures)}."
            )

        signatures_by_public_key: dict[str, str] = {}
        for input_signature in input_signatures:
            assert input_signature is not None
            try:
                public_key = signature_validator(
                    network, inputs, outputs, input_index, input_signature
                )
            except ValueError as e:
                raise ValueError(
                    f"Invalid signature for input {input_index + 1}: {input_signature} ({e})"
                ) from e
            if not public_key:
                raise ValueError(
                    f"Invalid signature for input {input_index + 1}: {input_signature}"
                )
            assert isinstance(public_key, str)
            if public_key in signatures_by_public_key:
                raise ValueError(
                    f"Duplicate signature for input {input_index + 1}: {input_signature}"
                )
            signatures_by_public_key[public_key] = input_signature

        # order by the position of the public key in the multisig script;
        # OP_CHECKMULTISIG consumes exactly required_signatures signatures
        sorted_signatures = [
            signature_no_sighash_type(signatures_by_public_key[public_key])
            for public_key in multisig_public_keys(multisig)
            if public_key in signatures_by_public_key
        ][:required_signatures]

        address_type = multisig_address_type(multisig)
        logger.debug(
            "input %d: %s, %d of %d signatures placed",
            input_index + 1,
            address_type,
            len(sorted_signatures),
            len(input_signatures),
        )

        if address_type == P2WSH:
            signed_transaction.set_witness(
                input_index, multisig_witness_field(multisig, sorted_signatures)
            )
        elif address_type == P2SH_P2WSH:
            signed_transaction.set_witness(
                input_index, multisig_witness_field(multisig, sorted_signatures)
            )
            signed_transaction.inputs[input_index].script_sig = multisig.script_sig()
        else:
            signed_transaction.inputs[input_index].script_sig = multisig_script_sig(
                multisig, sorted_signatures
            )

    return signed_transaction


def multisig_witness_field(multisig: MultisigDescriptor, sorted_signatures: list[str]) -> list[str]:
    """Returns the witness stack (hex items) spending a segwit multisig

    |  <empty> <sig1> ... <sigM> <witness script>

    The empty item is consumed by the extra pop of OP_CHECKMULTISIG.
    """
    witness_script = multisig_witness_script(multisig)
    assert witness_script is not None
    return (
        [""]
        + [f"{signature}{SIGHASH_ALL_HEX}" for signature in sorted_signatures]
        + [witness_script.to_hex()]
    )


def multisig_script_sig(multisig: MultisigDescriptor, sorted_signatures: list[str]) -> Script:
    """Returns the scriptSig spending a P2SH multisig

    |  OP_0 <sig1> ... <sigM> <redeem script>
    """
    unlocking_script = Script(
        ["OP_0"] + [f"{signature}{SIGHASH_ALL_HEX}" for signature in sorted_signatures]
    )
    redeem_script = multisig_redeem_script(multisig)
    assert redeem_script is not None
    raw_multisig = generate_multisig_from_raw(
        multisig.network, multisig_address_type(multisig), redeem_script
    )
    return raw_multisig.script_sig(unlocking_script)
