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

from typing import Optional, Union

from multisigutils.addresses import script_to_p2sh_address, script_to_p2wsh_address
from multisigutils.constants import (
    P2SH,
    P2SH_P2WSH,
    P2WSH,
    MULTISIG_ADDRESS_TYPES,
    MAX_MULTISIG_PUBLIC_KEYS,
)
from multisigutils.keys import validate_public_key
from multisigutils.networks import network_data
from multisigutils.script import Script


class MultisigDescriptor:
    """An M-of-N multisig wallet output: threshold, ordered public keys and
    the address type its scripts are wrapped in.

    The order of the public keys is the order in the multisig script and
    thus the order signatures have to be placed in.

    Attributes
    ----------
    network : str
        mainnet or testnet
    address_type : str
        P2SH, P2SH-P2WSH or P2WSH
    required_signers : int
        the number of signatures required (M)
    public_keys : tuple
        the public keys (hex) in script order

    Methods
    -------
    multisig_script()
        returns OP_M <keys> OP_N OP_CHECKMULTISIG
    redeem_script()
        returns the script committed to by a P2SH address (None for P2WSH)
    witness_script()
        returns the script committed to by a P2WSH program (None for P2SH)
    script_pub_key()
        returns the locking script
    address()
        returns the address
    script_sig(unlocking_script)
        returns the scriptSig spending this output
    """

    def __init__(
        self,
        network: Optional[str],
        address_type: str,
        required_signers: int,
        public_keys: list[str],
    ) -> None:
        if address_type not in MULTISIG_ADDRESS_TYPES:
            raise ValueError(f"Invalid address type: {address_type}")
        if not 1 <= len(public_keys) <= MAX_MULTISIG_PUBLIC_KEYS:
            raise ValueError(
                f"A multisig requires between 1 and {MAX_MULTISIG_PUBLIC_KEYS} public keys."
            )
        if not isinstance(required_signers, int) or not (
            1 <= required_signers <= len(public_keys)
        ):
            raise ValueError(
                f"Required signers must be between 1 and {len(public_keys)}."
            )

        self.network = network_data(network).name
        self.address_type = address_type
        self.required_signers = required_signers
        self.public_keys = tuple(public_keys)

    def multisig_script(self) -> Script:
        return Script(
            [self.required_signers]
            + list(self.public_keys)
            + [len(self.public_keys), "OP_CHECKMULTISIG"]
        )

    def redeem_script(self) -> Optional[Script]:
        if self.address_type == P2SH:
            return self.multisig_script()
        if self.address_type == P2SH_P2WSH:
            # the P2SH redeem script is the P2WSH program
            return self.multisig_script().to_p2wsh_script_pub_key()
        return None

    def witness_script(self) -> Optional[Script]:
        if self.address_type in (P2WSH, P2SH_P2WSH):
            return self.multisig_script()
        return None

    def script_pub_key(self) -> Script:
        if self.address_type == P2WSH:
            return self.multisig_script().to_p2wsh_script_pub_key()
        redeem_script = self.redeem_script()
        assert redeem_script is not None
        return redeem_script.to_p2sh_script_pub_key()

    def address(self) -> str:
        if self.address_type == P2WSH:
            return script_to_p2wsh_address(self.multisig_script(), self.network)
        redeem_script = self.redeem_script()
        assert redeem_script is not None
        return script_to_p2sh_address(redeem_script, self.network)

    def script_sig(self, unlocking_script: Optional[Script] = None) -> Script:
        """Returns the scriptSig for spending an output of this multisig

        For P2SH the unlocking script (OP_0 and the signatures) is followed
        by a push of the redeem script. P2SH-P2WSH only pushes the redeem
        script since the signatures live in the witness. P2WSH has an empty
        scriptSig.
        """
        if self.address_type == P2WSH:
            return Script([])
        redeem_script = self.redeem_script()
        assert redeem_script is not None
        if self.address_type == P2SH_P2WSH:
            return Script([redeem_script.to_hex()])

        tokens = list(unlocking_script.get_script()) if unlocking_script else []
        return Script(tokens + [redeem_script.to_hex()])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MultisigDescriptor):
            return False
        return (
            self.network == other.network
            and self.address_type == other.address_type
            and self.required_signers == other.required_signers
            and self.public_keys == other.public_keys
        )

    def __str__(self) -> str:
        return str(
            {
                "network": self.network,
                "address_type": self.address_type,
                "required_signers": self.required_signers,
                "public_keys": list(self.public_keys),
            }
        )

    def __repr__(self) -> str:
        return self.__str__()


def generate_multisig_from_public_keys(
    network: Optional[str], address_type: str, required_signers: int, *public_keys: str
) -> MultisigDescriptor:
    """Creates a multisig from its public keys (kept in the given order)

    Raises
    ------
    ValueError
        if a public key is invalid or the threshold is out of range
    """
    for public_key in public_keys:
        error = validate_public_key(public_key)
        if error:
            raise ValueError(error)
    return MultisigDescriptor(network, address_type, required_signers, list(public_keys))


def generate_multisig_from_raw(
    network: Optional[str], address_type: str, raw_script: Union[str, Script]
) -> MultisigDescriptor:
    """Reconstructs a multisig from its raw multisig script

    Raises
    ------
    ValueError
        if the script is not OP_M <keys> OP_N OP_CHECKMULTISIG
    """
    script = Script.from_raw(raw_script) if isinstance(raw_script, str) else raw_script
    is_multisig, m_n = script.is_multisig()
    if not is_multisig or m_n is None:
        raise ValueError("Script is not a multisig script.")
    required_signers, total_signers = m_n
    public_keys = script.get_script()[1 : 1 + total_signers]
    return generate_multisig_from_public_keys(
        network, address_type, required_signers, *public_keys
    )


def multisig_required_signers(multisig: MultisigDescriptor) -> int:
    return multisig.required_signers


def multisig_total_signers(multisig: MultisigDescriptor) -> int:
    return len(multisig.public_keys)


def multisig_public_keys(multisig: MultisigDescriptor) -> list[str]:
    return list(multisig.public_keys)


def multisig_address_type(multisig: MultisigDescriptor) -> str:
    return multisig.address_type


def multisig_redeem_script(multisig: MultisigDescriptor) -> Optional[Script]:
    return multisig.redeem_script()


def multisig_witness_script(multisig: MultisigDescriptor) -> Optional[Script]:
    return multisig.witness_script()


def multisig_address(multisig: MultisigDescriptor) -> str:
    return multisig.address()
