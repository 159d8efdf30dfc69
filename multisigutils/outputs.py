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

from multisigutils.addresses import validate_address
from multisigutils.constants import DUST_LIMIT_SATS


class TransactionOutput:
    """A payment to an address.

    Attributes
    ----------
    address : str
        the destination address
    amount_sats : int
        the amount to send in satoshis
    """

    def __init__(self, address: str, amount_sats: int) -> None:
        self.address = address
        self.amount_sats = amount_sats

    def __str__(self) -> str:
        return str({"address": self.address, "amount_sats": self.amount_sats})

    def __repr__(self) -> str:
        return self.__str__()


def validate_outputs(
    network: Optional[str],
    outputs: Optional[Sequence[TransactionOutput]],
    inputs_total_sats: Optional[int] = None,
) -> str:
    """Validates the outputs of a transaction.

    Returns an empty string if valid or the first validation message
    """
    if not outputs:
        return "At least one output is required."

    for output in outputs:
        error = validate_output(network, output, inputs_total_sats)
        if error:
            return error

    return ""


def validate_output(
    network: Optional[str],
    output: TransactionOutput,
    inputs_total_sats: Optional[int] = None,
) -> str:
    if output.amount_sats is None or output.amount_sats == "":
        return "Does not have an 'amount_sats' property."

    error = validate_output_amount(output.amount_sats, inputs_total_sats)
    if error:
        return error

    if not output.address:
        return "Does not have an 'address' property."

    error = validate_address(output.address, network)
    if error:
        return f"Invalid output address: {error}"

    return ""


def validate_output_amount(amount_sats: Any, max_sats: Optional[int] = None) -> str:
    """Validates an output amount (in satoshis) against the dust limit and,
    optionally, an upper bound"""
    try:
        amount = int(amount_sats)
    except (TypeError, ValueError):
        return "Invalid output amount."

    if amount != amount_sats and not isinstance(amount_sats, str):
        # fractional satoshis
        return "Invalid output amount."

    if amount <= 0:
        return "Output amount must be positive."

    if amount < DUST_LIMIT_SATS:
        return "Output amount is too small."

    if max_sats is not None and amount > max_sats:
        return "Output amount is too large."

    return ""
