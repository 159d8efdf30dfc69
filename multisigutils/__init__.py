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

__version__ = "0.1.0"

from multisigutils.setup import setup, get_network

from multisigutils.constants import MAINNET, TESTNET, P2SH, P2SH_P2WSH, P2WSH

from multisigutils.keys import (
    ConversionResult,
    validate_public_key,
    compress_public_key,
    extended_public_key_convert,
    validate_extended_public_key,
    convert_and_validate_extended_public_key,
)

from multisigutils.script import Script

from multisigutils.multisig import (
    MultisigDescriptor,
    generate_multisig_from_public_keys,
    generate_multisig_from_raw,
)

from multisigutils.inputs import MultisigTransactionInput

from multisigutils.outputs import TransactionOutput

from multisigutils.transactions import (
    Transaction,
    TxInput,
    TxOutput,
    TxWitnessInput,
    unsigned_multisig_transaction,
    signed_multisig_transaction,
    validate_multisig_signature,
)

__all__ = [
    'setup',
    'get_network',
    'MAINNET',
    'TESTNET',
    'P2SH',
    'P2SH_P2WSH',
    'P2WSH',
    'ConversionResult',
    'validate_public_key',
    'compress_public_key',
    'extended_public_key_convert',
    'validate_extended_public_key',
    'convert_and_validate_extended_public_key',
    'Script',
    'MultisigDescriptor',
    'generate_multisig_from_public_keys',
    'generate_multisig_from_raw',
    'MultisigTransactionInput',
    'TransactionOutput',
    'Transaction',
    'TxInput',
    'TxOutput',
    'TxWitnessInput',
    'unsigned_multisig_transaction',
    'signed_multisig_transaction',
    'validate_multisig_signature',
]
