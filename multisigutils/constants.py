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

MAINNET = "mainnet"
TESTNET = "testnet"

NETWORK_BIP32_PUBLIC_VERSIONS = {
    "mainnet": b"\x04\x88\xb2\x1e",
    "testnet": b"\x04\x35\x87\xcf",
}

NETWORK_P2PKH_PREFIXES = {
    "mainnet": b"\x00",
    "testnet": b"\x6f",
}

NETWORK_P2SH_PREFIXES = {
    "mainnet": b"\x05",
    "testnet": b"\xc4",
}

NETWORK_SEGWIT_PREFIXES = {
    "mainnet": "bc",
    "testnet": "tb",
}

# first characters an address may start with on each network
NETWORK_ADDRESS_STARTS = {
    "mainnet": ("bc1", "1", "3"),
    "testnet": ("tb1", "m", "n", "2"),
}


# Version bytes of every extended public key format in use by wallets. The
# upper-case variants are the multisig (SLIP-132) flavours.
EXTENDED_PUBLIC_KEY_VERSIONS = {
    "xpub": "0488b21e",
    "ypub": "049d7cb2",
    "zpub": "04b2430c",
    "Ypub": "0295b43f",
    "Zpub": "02aa7ed3",
    "tpub": "043587cf",
    "upub": "044a5262",
    "vpub": "045f1cf6",
    "Upub": "024289ef",
    "Vpub": "02575483",
}

# base58check of a 78 byte BIP32 payload is at least this long
EXTENDED_PUBLIC_KEY_MIN_LENGTH = 111
BIP32_SERIALIZED_LENGTH = 78


# Multisig address types
P2SH = "P2SH"
P2SH_P2WSH = "P2SH-P2WSH"
P2WSH = "P2WSH"

MULTISIG_ADDRESS_TYPES = (P2SH, P2SH_P2WSH, P2WSH)

# OP_CHECKMULTISIG is limited to 20 keys but P2SH redeem scripts to 520
# bytes, i.e. 15 compressed keys
MAX_MULTISIG_PUBLIC_KEYS = 15


# Constants related to transaction signature types
SIGHASH_ALL = 0x01

# the single byte appended to signatures placed in unlocking scripts
SIGHASH_ALL_HEX = "01"


DEFAULT_TX_LOCKTIME = b"\x00\x00\x00\x00"
DEFAULT_TX_SEQUENCE = b"\xff\xff\xff\xff"
MAX_TX_INDEX = 0xFFFFFFFF

# multisig transactions are assembled as version 1
MULTISIG_TX_VERSION = b"\x01\x00\x00\x00"


# Monetary constants
DUST_LIMIT_SATS = 546
