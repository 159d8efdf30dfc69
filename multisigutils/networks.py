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

"""Bitcoin network parameters.

Only the two networks a multisig coordinator deals with are known: mainnet
and testnet. Operations that accept a ``network`` argument use the network
configured with :func:`multisigutils.setup.setup` when it is omitted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from multisigutils.constants import (
    MAINNET,
    TESTNET,
    NETWORK_BIP32_PUBLIC_VERSIONS,
    NETWORK_P2PKH_PREFIXES,
    NETWORK_P2SH_PREFIXES,
    NETWORK_SEGWIT_PREFIXES,
)
from multisigutils.setup import resolve_network

NETWORKS = (MAINNET, TESTNET)


@dataclass(frozen=True)
class NetworkData:
    """Parameter set of a network.

    Attributes
    ----------
    name : str
        mainnet or testnet
    bip32_public : bytes
        the 4 version bytes of a BIP32 extended public key
    p2pkh_prefix : bytes
        version byte of P2PKH addresses
    p2sh_prefix : bytes
        version byte of P2SH addresses
    bech32_hrp : str
        human readable part of segwit addresses
    """

    name: str
    bip32_public: bytes
    p2pkh_prefix: bytes
    p2sh_prefix: bytes
    bech32_hrp: str


def network_data(network: Optional[str] = None) -> NetworkData:
    """Returns the parameters of the network (or of the configured one)

    Raises
    ------
    ValueError
        if the network is not known
    """
    name = resolve_network(network)
    return NetworkData(
        name=name,
        bip32_public=NETWORK_BIP32_PUBLIC_VERSIONS[name],
        p2pkh_prefix=NETWORK_P2PKH_PREFIXES[name],
        p2sh_prefix=NETWORK_P2SH_PREFIXES[name],
        bech32_hrp=NETWORK_SEGWIT_PREFIXES[name],
    )
