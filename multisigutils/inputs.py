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

from typing import Any, Optional, Sequence

from multisigutils.constants import MAX_TX_INDEX
from multisigutils.multisig import MultisigDescriptor
from multisigutils.utils import validate_hex


class MultisigTransactionInput:
    """An unspent multisig output to be spent.

    Attributes
    ----------
    txid : str
        the transaction id as a hex string (as displayed by tools)
    index : int
        the index of the output within that transaction
    multisig : MultisigDescriptor
        the multisig the output is locked to
    amount_sats : int, optional
        the value of the output; required to sign or verify segwit inputs
    """

    def __init__(
        self,
        txid: str,
        index: int,
        multisig: Optional[MultisigDescriptor],
        amount_sats: Optional[int] = None,
    ) -> None:
        self.txid = txid
        self.index = index
        self.multisig = multisig
        self.amount_sats = amount_sats

    def __str__(self) -> str:
        return str(
            {
                "txid": self.txid,
                "index": self.index,
                "multisig": self.multisig,
                "amount_sats": self.amount_sats,
            }
        )

    def __repr__(self) -> str:
        return self.__str__()


def validate_multisig_inputs(inputs: Optional[Sequence[MultisigTransactionInput]]) -> str:
    """Validates the inputs of a multisig transaction.

    Returns an empty string if valid or the first validation message
    """
    if not inputs:
        return "At least one input is required."

    utxo_ids = set()
    for txin in inputs:
        error = validate_multisig_input(txin)
        if error:
            return error
        utxo_id = f"{txin.txid}:{txin.index}"
        if utxo_id in utxo_ids:
            return f"Duplicate input: {utxo_id}"
        utxo_ids.add(utxo_id)

    return ""


def validate_multisig_input(txin: MultisigTransactionInput) -> str:
    if not txin.txid:
        return "Does not have a transaction ID ('txid') property."

    error = validate_transaction_id(txin.txid)
    if error:
        return error

    if txin.index is None or txin.index == "":
        return "Does not have a transaction index ('index') property."

    error = validate_transaction_index(txin.index)
    if error:
        return error

    if not txin.multisig:
        return "Does not have a multisig object ('multisig') property."

    return ""


def validate_transaction_id(txid: Optional[str]) -> str:
    if not txid:
        return "TXID cannot be blank."

    error = validate_hex(txid)
    if error:
        return f"TXID is invalid ({error})"

    if len(txid) != 64:
        return "TXID is invalid (must be 64-characters)"

    return ""


def validate_transaction_index(index: Any) -> str:
    if index is None or index == "":
        return "Index cannot be blank."

    # int() would truncate 1.5 to 1
    if isinstance(index, float) and not index.is_integer():
        return "Index is invalid"

    try:
        value = int(index)
    except (TypeError, ValueError):
        return "Index is invalid"

    if value < 0:
        return "Index cannot be negative."

    # outpoint indexes are serialized as uint32
    if value > MAX_TX_INDEX:
        return "Index is too large."

    return ""
