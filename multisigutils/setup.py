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

from typing import Optional

NETWORK = "mainnet"
networks = {"mainnet", "testnet"}


def setup(network: str = "mainnet") -> str:
    """Setup the default network used when an operation is not given one.

    Args:
        network: The network to use (mainnet, testnet)
    """
    global NETWORK
    if network not in networks:
        raise ValueError(f"Unknown network: {network}")
    NETWORK = network
    return NETWORK


def get_network() -> str:
    global NETWORK
    return NETWORK


def resolve_network(network: Optional[str] = None) -> str:
    """Returns the given network or the configured default one"""
    if network is None:
        return get_network()
    if network not in networks:
        raise ValueError(f"Unknown network: {network}")
    return network


def is_mainnet() -> bool:
    global NETWORK
    if NETWORK == "mainnet":
        return True
    else:
        return False


def is_testnet() -> bool:
    global NETWORK
    if NETWORK == "testnet":
        return True
    else:
        return False
