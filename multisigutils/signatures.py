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

"""ECDSA handling of the signatures collected for a multisig transaction.

A signer returns DER encoded ECDSA signatures without saying which of the
multisig public keys produced them. The signatures are verified against a
transaction digest to find out.
"""

import logging
from typing import Sequence, Union

from ecdsa import SECP256k1, VerifyingKey, BadSignatureError  # type: ignore
from ecdsa.der import UnexpectedDER  # type: ignore
from ecdsa.util import sigdecode_der, sigencode_string  # type: ignore

from multisigutils.utils import h_to_b, validate_hex


logger = logging.getLogger(__name__)


def signature_no_sighash_type(signature: str) -> str:
    """Removes the sighash type byte from a DER signature (hex) if present.

    The second byte of a DER signature is the length of what follows; when
    it accounts for the whole signature there is no sighash byte.
    """
    if int(signature[2:4], 16) == len(signature) // 2 - 2:
        return signature
    return signature[:-2]


def signing_public_key(
    public_keys: Sequence[str], digest: bytes, input_signature: str
) -> Union[str, bool]:
    """Find which of public_keys produced a signature over digest.

    Parameters
    ----------
    public_keys : list of str
        candidate SEC public keys (hex)
    digest : bytes
        the 32-byte transaction digest that was signed
    input_signature : str
        DER signature (hex), with or without the sighash type byte

    Returns
    -------
    str or False
        the first public key (hex, as given) whose verification succeeds,
        False when the signature matches none of them

    Raises
    ------
    ValueError
        if the signature is not hex or not DER encoded
    """
    error = validate_hex(input_signature)
    if error:
        raise ValueError(error)

    signature_der = h_to_b(signature_no_sighash_type(input_signature))
    try:
        r, s = sigdecode_der(signature_der, SECP256k1.order)
    except UnexpectedDER as e:
        raise ValueError(f"Invalid DER signature: {e}") from e
    signature = sigencode_string(r, s, SECP256k1.order)

    for public_key in public_keys:
        verifying_key = VerifyingKey.from_string(h_to_b(public_key), curve=SECP256k1)
        try:
            verifying_key.verify_digest(signature, digest)
        except BadSignatureError:
            continue
        logger.debug("signature matches public key %s", public_key)
        return public_key

    return False
