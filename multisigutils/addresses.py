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

"""Encoding, decoding and validation of bitcoin addresses.

Legacy addresses are base58check encoded (P2PKH, P2SH) and segwit addresses
bech32/bech32m encoded (P2WPKH, P2WSH, P2TR).
"""

from typing import Optional

import bech32  # type: ignore

from multisigutils.constants import NETWORK_ADDRESS_STARTS
from multisigutils.networks import network_data
from multisigutils.script import Script
from multisigutils.utils import b_to_h, b58check_encode, b58check_decode, hash160


def _address_starts_message(network: str) -> str:
    starts = [f"'{start}'" for start in NETWORK_ADDRESS_STARTS[network]]
    return (
        f"Address must start with one of {', '.join(starts[:-1])}, or {starts[-1]} "
        "followed by letters or digits."
    )


def validate_address(address: str, network: Optional[str] = None) -> str:
    """Provide validation messages for an address on the given network.

    Returns an empty string if the address is valid.
    """
    params = network_data(network)

    if not address:
        return "Address cannot be blank."

    starts = NETWORK_ADDRESS_STARTS[params.name]
    if not (address.startswith(starts) or address.lower().startswith(starts[0])):
        return _address_starts_message(params.name)

    try:
        address_to_script_pub_key(address, params.name)
    except ValueError as e:
        return f"Address is invalid ({e})"

    return ""


def address_to_script_pub_key(address: str, network: Optional[str] = None) -> Script:
    """Returns the locking script (scriptPubKey) paying to address

    Raises
    ------
    ValueError
        if the address cannot be decoded for the network
    """
    params = network_data(network)

    if address.lower().startswith(params.bech32_hrp + "1"):
        witness_version, witness_program = bech32.decode(params.bech32_hrp, address)
        if witness_version is None:
            raise ValueError("invalid bech32 encoding")
        program_hex = b_to_h(bytes(witness_program))
        if witness_version == 0 and len(witness_program) in (20, 32):
            return Script(["OP_0", program_hex])
        if witness_version == 1 and len(witness_program) == 32:
            return Script(["OP_1", program_hex])
        raise ValueError("unsupported witness program")

    payload = b58check_decode(address)
    if len(payload) != 21:
        raise ValueError("invalid length")

    prefix, hash_hex = payload[:1], b_to_h(payload[1:])
    if prefix == params.p2pkh_prefix:
        return Script(
            ["OP_DUP", "OP_HASH160", hash_hex, "OP_EQUALVERIFY", "OP_CHECKSIG"]
        )
    if prefix == params.p2sh_prefix:
        return Script(["OP_HASH160", hash_hex, "OP_EQUAL"])
    raise ValueError("invalid version byte for network")


def script_to_p2sh_address(script: Script, network: Optional[str] = None) -> str:
    """Returns the P2SH address of a redeem script"""
    params = network_data(network)
    return b58check_encode(params.p2sh_prefix + hash160(script.to_bytes()))


def script_to_p2wsh_address(script: Script, network: Optional[str] = None) -> str:
    """Returns the P2WSH (bech32) address of a witness script"""
    params = network_data(network)
    program = bytes.fromhex(script.to_p2wsh_script_pub_key().script[1])
    address = bech32.encode(params.bech32_hrp, 0, list(program))
    if address is None:
        raise ValueError("Unable to encode witness program")
    return address
