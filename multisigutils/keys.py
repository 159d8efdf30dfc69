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

"""Validation of public keys and extended public keys, extended public key
conversion between the formats wallets use and public key compression.

Validation functions return an empty string when the value is valid and a
message describing the problem otherwise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ecdsa import SECP256k1, VerifyingKey  # type: ignore
from ecdsa.errors import MalformedPointError  # type: ignore
from ecdsa.numbertheory import Error as NumberTheoryError  # type: ignore

from multisigutils.bip32 import ExtendedPublicKey
from multisigutils.constants import (
    TESTNET,
    EXTENDED_PUBLIC_KEY_VERSIONS,
    EXTENDED_PUBLIC_KEY_MIN_LENGTH,
)
from multisigutils.setup import resolve_network
from multisigutils.utils import validate_hex, h_to_b, b_to_h, b58check_encode, b58check_decode


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionResult:
    """Result of an extended public key conversion.

    Attributes
    ----------
    extended_public_key : str
        the converted key if successfully converted, the original key on error
    message : str
        what the conversion did; empty when no conversion was needed
    error : str
        why the conversion failed; empty on success
    """

    extended_public_key: str
    message: str = ""
    error: str = ""


def _validate_prefix(prefix: str, prefix_type: str) -> Optional[str]:
    if prefix not in EXTENDED_PUBLIC_KEY_VERSIONS:
        return f"Invalid {prefix_type} version for extended public key conversion"
    return None


def extended_public_key_convert(
    extended_public_key: str, target_prefix: str
) -> ConversionResult:
    """Convert an extended public key between formats

    Only the 4 version bytes of the serialized key are replaced; the key
    material is kept as is.

    Parameters
    ----------
    extended_public_key : str
        the extended public key to convert
    target_prefix : str
        the target format, one of the EXTENDED_PUBLIC_KEY_VERSIONS prefixes

    Example
    -------
    |  tpub = extended_public_key_convert("xpub6CCH...", "tpub")
    |  tpub.extended_public_key  # tpubDCZv...
    |  tpub.message  # Your extended public key has been converted from xpub to tpub
    """
    target_error = _validate_prefix(target_prefix, "target")
    if target_error is not None:
        return ConversionResult(extended_public_key, error=target_error)

    source_prefix = extended_public_key[:4]
    source_error = _validate_prefix(source_prefix, "source")
    if source_error is not None:
        return ConversionResult(extended_public_key, error=source_error)

    try:
        decoded = b58check_decode(extended_public_key.strip())
    except ValueError as e:
        return ConversionResult(
            extended_public_key,
            error=f"Unable to convert extended public key: {e}",
        )

    version = h_to_b(EXTENDED_PUBLIC_KEY_VERSIONS[target_prefix])
    converted = b58check_encode(version + decoded[4:])
    logger.debug("converted extended public key from %s to %s", source_prefix, target_prefix)
    return ConversionResult(
        converted,
        message=f"Your extended public key has been converted from {source_prefix} to {target_prefix}",
    )


def _pre_extended_public_key_validation(extended_public_key: Optional[str]) -> str:
    if not extended_public_key:
        return "Extended public key cannot be blank."

    if len(extended_public_key) < EXTENDED_PUBLIC_KEY_MIN_LENGTH:
        return "Extended public key length is too short."

    return ""


def _extended_public_key_network_validation(extended_public_key: str, network: str) -> str:
    prefix = extended_public_key[:4]
    if network == TESTNET:
        if prefix not in ("xpub", "tpub"):
            return "Extended public key must begin with 'xpub' or 'tpub'."
    elif prefix != "xpub":
        return "Extended public key must begin with 'xpub'."
    return ""


def validate_extended_public_key(
    input_string: Optional[str], network: Optional[str] = None
) -> str:
    """Provide validation messages for an extended public key.

    Checks, in order, that the key is not blank, long enough, starts with
    the plain prefix of the network (xpub, or tpub on testnet) and decodes as
    a BIP32 extended public key of the network.

    Example
    -------
    |  key = "apub6CCHViYn5VzKSmKD9cK9LBDPz9wBLV7owX..."
    |  validate_extended_public_key(key, TESTNET)
    |  # Extended public key must begin with 'xpub' or 'tpub'.

    Returns an empty string if valid or the corresponding validation message
    """
    network = resolve_network(network)

    error = _pre_extended_public_key_validation(input_string)
    if error:
        return error
    assert input_string is not None

    error = _extended_public_key_network_validation(input_string, network)
    if error:
        return error

    try:
        ExtendedPublicKey.from_base58(input_string, network)
    except ValueError as e:
        return f"Invalid extended public key: {e}"

    return ""


def convert_and_validate_extended_public_key(
    extended_public_key: Optional[str], network: Optional[str] = None
) -> ConversionResult:
    """Perform conversion to xpub or tpub based on the bitcoin network

    A key that is already valid for the network is returned unchanged with
    an empty message. Otherwise it is converted to the network's prefix and
    the converted key is validated; a failed validation is reported against
    the original key.
    """
    network = resolve_network(network)
    target_prefix = "tpub" if network == TESTNET else "xpub"

    error = _pre_extended_public_key_validation(extended_public_key)
    if error:
        return ConversionResult(extended_public_key, error=error)  # type: ignore
    assert extended_public_key is not None

    if (
        not _extended_public_key_network_validation(extended_public_key, network)
        and not validate_extended_public_key(extended_public_key, network)
    ):
        return ConversionResult(extended_public_key)

    converted = extended_public_key_convert(extended_public_key, target_prefix)
    if converted.extended_public_key == extended_public_key:
        return converted

    error = validate_extended_public_key(converted.extended_public_key, network)
    if error:
        logger.debug("converted extended public key failed validation: %s", error)
        return ConversionResult(extended_public_key, error=error)
    return converted


def validate_public_key(input_string: Optional[str]) -> str:
    """Provide validation messages for a public key.

    Accepts compressed (33 bytes) and uncompressed (65 bytes) SEC encodings.

    Example
    -------
    |  validate_public_key("03b32dc780fba98db25b4b72cf2b69da228f5e10ca6aa8f46eabe7f9fe22c994ee")
    |  # '' -- valid key

    Returns an empty string if valid or the corresponding validation message
    """
    if not input_string:
        return "Public key cannot be blank."

    error = validate_hex(input_string)
    if error:
        return error

    key_bytes = h_to_b(input_string)
    if len(key_bytes) not in (33, 65):
        return f"Invalid public key length {len(key_bytes)}."

    # SEC encodings only, no hybrid (06/07) keys
    allowed_prefixes = (0x04,) if len(key_bytes) == 65 else (0x02, 0x03)
    if key_bytes[0] not in allowed_prefixes:
        return f"Invalid public key prefix {key_bytes[0]:02x}."

    try:
        VerifyingKey.from_string(
            key_bytes,
            curve=SECP256k1,
            valid_encodings=("uncompressed", "compressed"),
        )
    except (MalformedPointError, NumberTheoryError) as e:
        return f"Invalid public key {e}."

    return ""


def compress_public_key(public_key: str) -> str:
    """Compresses an uncompressed (04 prefixed) public key.

    The key is not validated; validate it with validate_public_key first.
    Hex input of any length is accepted and a key without a 65th byte
    compresses as if its Y coordinate were even.

    Example
    -------
    |  compress_public_key("04b32dc780fba98db25b4b72cf2b69da228f5e10ca6aa8f46eabe7f9fe22c994ee"
    |                      "6e43c09d025c2ad322382347ec0f69b4e78d8e23c8ff9aa0dd0cb93665ae83d5")
    |  # 03b32dc780fba98db25b4b72cf2b69da228f5e10ca6aa8f46eabe7f9fe22c994ee
    """
    public_key_bytes = h_to_b(public_key)
    # 02 even y, 03 odd y
    odd = len(public_key_bytes) > 64 and public_key_bytes[64] & 1
    prefix = b"\x03" if odd else b"\x02"
    return b_to_h(prefix + public_key_bytes[1:33])
