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

from typing import NamedTuple, Optional

from ecdsa import SECP256k1, VerifyingKey  # type: ignore
from ecdsa.errors import MalformedPointError  # type: ignore
from ecdsa.numbertheory import Error as NumberTheoryError  # type: ignore

from multisigutils.constants import BIP32_SERIALIZED_LENGTH
from multisigutils.networks import network_data
from multisigutils.utils import b_to_h, b58check_encode, b58check_decode


class ExtendedPublicKey(NamedTuple):
    """A deserialized BIP32 extended public key.

    |  Serialization (78 bytes, then base58check):
    |      4 bytes  -- version (network and script type)
    |      1 byte   -- depth
    |      4 bytes  -- fingerprint of the parent key
    |      4 bytes  -- child number
    |      32 bytes -- chain code
    |      33 bytes -- compressed public key

    Attributes
    ----------
    version : bytes
    depth : int
    parent_fingerprint : bytes
    child_number : bytes
    chain_code : bytes
    public_key : bytes
        the compressed SEC public key
    """

    version: bytes
    depth: int
    parent_fingerprint: bytes
    child_number: bytes
    chain_code: bytes
    public_key: bytes

    @classmethod
    def from_base58(cls, xkey: str, network: Optional[str] = None) -> "ExtendedPublicKey":
        """Deserializes an extended public key for the given network

        Raises
        ------
        ValueError
            if the checksum, length, version, depth/parent/index combination
            or the public key point is invalid
        """
        params = network_data(network)

        payload = b58check_decode(xkey)
        if len(payload) != BIP32_SERIALIZED_LENGTH:
            raise ValueError(f"Invalid buffer length: {len(payload)}")

        version = payload[0:4]
        if version != params.bip32_public:
            raise ValueError(f"Invalid network version: {b_to_h(version)}")

        depth = payload[4]
        parent_fingerprint = payload[5:9]
        child_number = payload[9:13]
        if depth == 0:
            if parent_fingerprint != b"\x00" * 4:
                raise ValueError("Invalid parent fingerprint")
            if child_number != b"\x00" * 4:
                raise ValueError("Invalid index")

        chain_code = payload[13:45]
        public_key = payload[45:78]
        if public_key[0] not in (0x02, 0x03):
            raise ValueError("Invalid public key prefix")
        try:
            VerifyingKey.from_string(public_key, curve=SECP256k1)
        except (MalformedPointError, NumberTheoryError) as e:
            raise ValueError(f"Invalid public key point ({e})") from e

        return cls(
            version=version,
            depth=depth,
            parent_fingerprint=parent_fingerprint,
            child_number=child_number,
            chain_code=chain_code,
            public_key=public_key,
        )

    def to_bytes(self) -> bytes:
        return (
            self.version
            + bytes([self.depth])
            + self.parent_fingerprint
            + self.child_number
            + self.chain_code
            + self.public_key
        )

    def to_base58(self) -> str:
        return b58check_encode(self.to_bytes())
