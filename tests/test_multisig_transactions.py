# Copyright (C) 2018-2025 The multisig-utils developers
#
# This file is part of multisig-utils
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of multisig-utils, including this file, may be copied,
# modified, propagated, or distributed except according to the terms contained
# in the LICENSE file.


import unittest

from multisigutils.setup import setup
from multisigutils.constants import MAINNET, TESTNET, P2SH, P2SH_P2WSH, P2WSH
from multisigutils.inputs import MultisigTransactionInput
from multisigutils.multisig import generate_multisig_from_public_keys
from multisigutils.outputs import TransactionOutput
from multisigutils.script import Script
from multisigutils.transactions import (
    Transaction,
    unsigned_multisig_transaction,
    signed_multisig_transaction,
)

from tests.multisig_test_helpers import signing_key, public_key_hex, sign_input


TXID = "6233aca9f2d6165da2d7b4e35d73b039a22b53f58ce5af87dddee7682be937ea"
OTHER_TXID = "65f4d69c91a8de54dc11096eaa315e84ef91a389d1d1c17a691b72095100a3a4"


class TestUnsignedMultisigTransaction(unittest.TestCase):
    def setUp(self):
        setup("testnet")
        self.multisig = generate_multisig_from_public_keys(
            TESTNET,
            P2WSH,
            2,
            "02d82c9860e36f15d7b72aa59e29347f951277c21cd4d34822acdeeadbcff8a546",
            "03a2fef1829e0742b89c218c51898d9e7cb9d51201ba2bf9d9e9214ebb6af32708",
        )
        self.inputs = [MultisigTransactionInput(TXID, 0, self.multisig, 970000)]
        self.outputs = [TransactionOutput("n4bkvTyU1dVdzsrhWBqBw8fEMbHjJvtmJR", 960000)]

    def tearDown(self):
        setup("mainnet")

    def test_unsigned(self):
        tx = unsigned_multisig_transaction(TESTNET, self.inputs, self.outputs)
        self.assertEqual(
            tx.to_hex(),
            "0100000001ea37e92b68e7dedd87afe58cf5532ba239b0735de3b4d7a25d16d6f2a9ac3362"
            "0000000000ffffffff0100a60e00000000001976a914fd337ad3bf81e086d96a68e1f8d6a0"
            "a510f8c24a88ac00000000",
        )

    def test_order_is_kept(self):
        inputs = [
            MultisigTransactionInput(OTHER_TXID, "2", self.multisig),
            MultisigTransactionInput(TXID, 0, self.multisig),
        ]
        outputs = [
            TransactionOutput(
                "tb1q89t0jucv7un4qq85u0a0tkc9qkepvg3vra72r00msx58wqplewfsfrlunx", "1000"
            ),
            TransactionOutput("n4bkvTyU1dVdzsrhWBqBw8fEMbHjJvtmJR", 2000),
        ]
        tx = unsigned_multisig_transaction(None, inputs, outputs)
        self.assertEqual(tx.version, b"\x01\x00\x00\x00")
        self.assertEqual([txin.txid for txin in tx.inputs], [OTHER_TXID, TXID])
        self.assertEqual([txin.txout_index for txin in tx.inputs], [2, 0])
        self.assertEqual([txout.amount for txout in tx.outputs], [1000, 2000])
        self.assertEqual(tx.outputs[0].script_pubkey, self.multisig.script_pub_key())
        for txin in tx.inputs:
            self.assertEqual(txin.script_sig, Script([]))
        self.assertFalse(tx.has_segwit())

    def test_invalid_inputs(self):
        with self.assertRaises(ValueError) as cm:
            unsigned_multisig_transaction(TESTNET, [], self.outputs)
        self.assertEqual(str(cm.exception), "At least one input is required.")

        inputs = self.inputs + [MultisigTransactionInput(TXID, 0, self.multisig)]
        with self.assertRaises(ValueError) as cm:
            unsigned_multisig_transaction(TESTNET, inputs, self.outputs)
        self.assertEqual(str(cm.exception), f"Duplicate input: {TXID}:0")

    def test_index_out_of_range(self):
        inputs = [MultisigTransactionInput(TXID, 2**32, self.multisig, 970000)]
        with self.assertRaises(ValueError) as cm:
            unsigned_multisig_transaction(TESTNET, inputs, self.outputs)
        self.assertEqual(str(cm.exception), "Index is too large.")

        inputs = [MultisigTransactionInput(TXID, 1.5, self.multisig, 970000)]
        with self.assertRaises(ValueError) as cm:
            unsigned_multisig_transaction(TESTNET, inputs, self.outputs)
        self.assertEqual(str(cm.exception), "Index is invalid")

    def test_invalid_outputs(self):
        with self.assertRaises(ValueError) as cm:
            unsigned_multisig_transaction(TESTNET, self.inputs, [])
        self.assertEqual(str(cm.exception), "At least one output is required.")

        with self.assertRaises(ValueError) as cm:
            unsigned_multisig_transaction(
                TESTNET,
                self.inputs,
                [TransactionOutput("n4bkvTyU1dVdzsrhWBqBw8fEMbHjJvtmJR", 100)],
            )
        self.assertEqual(str(cm.exception), "Output amount is too small.")

    def test_output_on_other_network(self):
        with self.assertRaises(ValueError) as cm:
            unsigned_multisig_transaction(MAINNET, self.inputs, self.outputs)
        self.assertTrue(str(cm.exception).startswith("Invalid output address: "))


class TestSignedMultisigTransaction(unittest.TestCase):
    def setUp(self):
        self.sk1 = signing_key(101)
        self.sk2 = signing_key(202)
        self.sk3 = signing_key(303)
        self.public_keys = [public_key_hex(sk) for sk in (self.sk1, self.sk2, self.sk3)]
        self.outputs = [
            TransactionOutput("n4bkvTyU1dVdzsrhWBqBw8fEMbHjJvtmJR", 960000),
        ]

    def inputs_for(self, *address_types):
        inputs = []
        for index, address_type in enumerate(address_types):
            multisig = generate_multisig_from_public_keys(
                TESTNET, address_type, 2, *self.public_keys
            )
            inputs.append(MultisigTransactionInput(TXID, index, multisig, 970000))
        return inputs

    def signatures_of(self, sk, inputs):
        return [
            sign_input(sk, TESTNET, inputs, self.outputs, input_index)
            for input_index in range(len(inputs))
        ]

    def test_index_out_of_range(self):
        inputs = self.inputs_for(P2WSH)
        signatures = [self.signatures_of(self.sk1, inputs)]
        inputs[0].index = 2**32
        with self.assertRaises(ValueError) as cm:
            signed_multisig_transaction(TESTNET, inputs, self.outputs, signatures)
        self.assertEqual(str(cm.exception), "Index is too large.")

    def test_p2wsh(self):
        inputs = self.inputs_for(P2WSH)
        s1 = self.signatures_of(self.sk1, inputs)
        s3 = self.signatures_of(self.sk3, inputs)

        tx = signed_multisig_transaction(TESTNET, inputs, self.outputs, [s3, s1])
        witness_script = inputs[0].multisig.witness_script()
        self.assertEqual(
            tx.witnesses[0].stack, ["", s1[0], s3[0], witness_script.to_hex()]
        )
        self.assertEqual(tx.inputs[0].script_sig, Script([]))
        self.assertTrue(tx.to_hex().startswith("010000000001"))

    def test_p2sh_p2wsh(self):
        inputs = self.inputs_for(P2SH_P2WSH)
        s2 = self.signatures_of(self.sk2, inputs)
        s3 = self.signatures_of(self.sk3, inputs)

        tx = signed_multisig_transaction(TESTNET, inputs, self.outputs, [s3, s2])
        multisig = inputs[0].multisig
        self.assertEqual(
            tx.witnesses[0].stack,
            ["", s2[0], s3[0], multisig.witness_script().to_hex()],
        )
        self.assertEqual(
            tx.inputs[0].script_sig, Script([multisig.redeem_script().to_hex()])
        )

    def test_p2sh(self):
        inputs = self.inputs_for(P2SH)
        s1 = self.signatures_of(self.sk1, inputs)
        s2 = self.signatures_of(self.sk2, inputs)

        tx = signed_multisig_transaction(TESTNET, inputs, self.outputs, [s2, s1])
        self.assertEqual(
            tx.inputs[0].script_sig.get_script(),
            ["OP_0", s1[0], s2[0], inputs[0].multisig.redeem_script().to_hex()],
        )
        self.assertFalse(tx.has_segwit())

        # parses back to the same unlocking script
        parsed = Transaction.from_raw(tx.to_hex())
        self.assertEqual(parsed.inputs[0].script_sig, tx.inputs[0].script_sig)
        self.assertEqual(parsed.to_hex(), tx.to_hex())

    def test_signer_order_does_not_matter(self):
        inputs = self.inputs_for(P2WSH, P2SH)
        s1 = self.signatures_of(self.sk1, inputs)
        s2 = self.signatures_of(self.sk2, inputs)
        first = signed_multisig_transaction(TESTNET, inputs, self.outputs, [s1, s2])
        second = signed_multisig_transaction(TESTNET, inputs, self.outputs, [s2, s1])
        self.assertEqual(first.to_hex(), second.to_hex())

    def test_mixed_inputs(self):
        inputs = self.inputs_for(P2WSH, P2SH, P2SH_P2WSH)
        s1 = self.signatures_of(self.sk1, inputs)
        s3 = self.signatures_of(self.sk3, inputs)

        tx = signed_multisig_transaction(TESTNET, inputs, self.outputs, [s1, s3])
        self.assertEqual(tx.witnesses[0].stack[1:3], [s1[0], s3[0]])
        self.assertEqual(tx.inputs[0].script_sig, Script([]))
        self.assertEqual(tx.witnesses[1].stack, [])
        self.assertEqual(tx.inputs[1].script_sig.get_script()[:3], ["OP_0", s1[1], s3[1]])
        self.assertEqual(tx.witnesses[2].stack[1:3], [s1[2], s3[2]])
        self.assertEqual(Transaction.from_raw(tx.to_hex()).to_hex(), tx.to_hex())

    def test_extra_signatures_are_trimmed(self):
        inputs = self.inputs_for(P2WSH)
        s1 = self.signatures_of(self.sk1, inputs)
        s2 = self.signatures_of(self.sk2, inputs)
        s3 = self.signatures_of(self.sk3, inputs)

        tx = signed_multisig_transaction(TESTNET, inputs, self.outputs, [s3, s2, s1])
        stack = tx.witnesses[0].stack
        self.assertEqual(len(stack), 4)
        self.assertEqual(stack[1:3], [s1[0], s2[0]])

    def test_signatures_without_sighash_byte(self):
        inputs = self.inputs_for(P2SH)
        s1 = [sign_input(self.sk1, TESTNET, inputs, self.outputs, 0, sighash=False)]
        s2 = self.signatures_of(self.sk2, inputs)

        tx = signed_multisig_transaction(TESTNET, inputs, self.outputs, [s1, s2])
        self.assertEqual(tx.inputs[0].script_sig.get_script()[1], s1[0] + "01")

    def test_missing_signature_in_row(self):
        inputs = self.inputs_for(P2WSH, P2WSH)
        s1 = self.signatures_of(self.sk1, inputs)
        s2 = self.signatures_of(self.sk2, inputs)
        s3 = self.signatures_of(self.sk3, inputs)

        # the second signer skipped the first input
        tx = signed_multisig_transaction(
            TESTNET, inputs, self.outputs, [s1, ["", s2[1]], s3]
        )
        self.assertEqual(tx.witnesses[0].stack[1:3], [s1[0], s3[0]])
        self.assertEqual(tx.witnesses[1].stack[1:3], [s1[1], s2[1]])

    def test_no_signatures(self):
        inputs = self.inputs_for(P2WSH)
        with self.assertRaises(ValueError) as cm:
            signed_multisig_transaction(TESTNET, inputs, self.outputs, [])
        self.assertEqual(
            str(cm.exception), "At least one transaction signature is required."
        )

    def test_short_signature_row(self):
        inputs = self.inputs_for(P2WSH, P2SH)
        s1 = self.signatures_of(self.sk1, inputs)
        s2 = self.signatures_of(self.sk2, inputs)
        with self.assertRaises(ValueError) as cm:
            signed_multisig_transaction(TESTNET, inputs, self.outputs, [s1, s2[:1]])
        self.assertEqual(
            str(cm.exception),
            "Insufficient input signatures for transaction signature 2: require 2, received 1.",
        )

    def test_insufficient_signatures(self):
        inputs = self.inputs_for(P2WSH, P2SH)
        s1 = self.signatures_of(self.sk1, inputs)
        s2 = self.signatures_of(self.sk2, inputs)
        with self.assertRaises(ValueError) as cm:
            signed_multisig_transaction(
                TESTNET, inputs, self.outputs, [s1, [s2[0], None]]
            )
        self.assertEqual(
            str(cm.exception), "Insufficient signatures for input 2: require 2, received 1."
        )

    def test_invalid_signature(self):
        inputs = self.inputs_for(P2WSH)
        s1 = self.signatures_of(self.sk1, inputs)
        outsider = self.signatures_of(signing_key(404), inputs)
        with self.assertRaises(ValueError) as cm:
            signed_multisig_transaction(TESTNET, inputs, self.outputs, [s1, outsider])
        self.assertEqual(
            str(cm.exception), f"Invalid signature for input 1: {outsider[0]}"
        )

    def test_malformed_signature(self):
        inputs = self.inputs_for(P2WSH)
        s1 = self.signatures_of(self.sk1, inputs)
        with self.assertRaises(ValueError) as cm:
            signed_multisig_transaction(TESTNET, inputs, self.outputs, [s1, ["deadbeef"]])
        self.assertTrue(
            str(cm.exception).startswith("Invalid signature for input 1: deadbeef (")
        )

    def test_duplicate_signature(self):
        inputs = self.inputs_for(P2WSH)
        s1 = self.signatures_of(self.sk1, inputs)
        with self.assertRaises(ValueError) as cm:
            signed_multisig_transaction(TESTNET, inputs, self.outputs, [s1, list(s1)])
        self.assertEqual(str(cm.exception), f"Duplicate signature for input 1: {s1[0]}")

    def test_invalid_inputs(self):
        with self.assertRaises(ValueError) as cm:
            signed_multisig_transaction(TESTNET, [], self.outputs, [["aa"]])
        self.assertEqual(str(cm.exception), "At least one input is required.")

    def test_segwit_input_without_amount(self):
        inputs = self.inputs_for(P2WSH)
        s1 = self.signatures_of(self.sk1, inputs)
        s2 = self.signatures_of(self.sk2, inputs)
        inputs[0].amount_sats = None
        with self.assertRaises(ValueError) as cm:
            signed_multisig_transaction(TESTNET, inputs, self.outputs, [s1, s2])
        self.assertEqual(
            str(cm.exception),
            f"Invalid signature for input 1: {s1[0]} "
            "(Input 1 requires an amount ('amount_sats') to be signed.)",
        )


class TestSignatureValidator(unittest.TestCase):
    """The signature verification can be swapped for another implementation"""

    def setUp(self):
        self.public_keys = [public_key_hex(signing_key(n)) for n in (101, 202, 303)]
        self.outputs = [TransactionOutput("n4bkvTyU1dVdzsrhWBqBw8fEMbHjJvtmJR", 960000)]
        multisig = generate_multisig_from_public_keys(TESTNET, P2SH, 2, *self.public_keys)
        self.inputs = [
            MultisigTransactionInput(TXID, 0, multisig),
            MultisigTransactionInput(TXID, 1, multisig),
        ]
        # DER signatures with r = signer + 1 and s = input index + 1, plus sighash
        self.signatures = {
            (signer, input_index): f"30060201{signer + 1:02x}0201{input_index + 1:02x}01"
            for signer in range(3)
            for input_index in range(2)
        }
        self.calls = []

    def validator(self, network, inputs, outputs, input_index, signature):
        self.calls.append((network, input_index, signature))
        for (signer, index), known in self.signatures.items():
            if known == signature and index == input_index:
                return self.public_keys[signer]
        return False

    def test_custom_validator(self):
        rows = [
            [self.signatures[(2, 0)], self.signatures[(2, 1)]],
            [self.signatures[(0, 0)], self.signatures[(0, 1)]],
        ]
        tx = signed_multisig_transaction(
            TESTNET, self.inputs, self.outputs, rows, signature_validator=self.validator
        )
        for input_index in range(2):
            self.assertEqual(
                tx.inputs[input_index].script_sig.get_script()[:3],
                [
                    "OP_0",
                    self.signatures[(0, input_index)],
                    self.signatures[(2, input_index)],
                ],
            )
        self.assertEqual(len(self.calls), 4)
        self.assertEqual(self.calls[0], (TESTNET, 0, self.signatures[(2, 0)]))

    def test_validator_rejects(self):
        rows = [
            [self.signatures[(1, 0)], self.signatures[(1, 1)]],
            # signature of input 0 given for input 1
            [self.signatures[(0, 0)], self.signatures[(0, 0)]],
        ]
        with self.assertRaises(ValueError) as cm:
            signed_multisig_transaction(
                TESTNET, self.inputs, self.outputs, rows, signature_validator=self.validator
            )
        self.assertEqual(
            str(cm.exception), f"Invalid signature for input 2: {self.signatures[(0, 0)]}"
        )

    def test_validator_errors_are_reported(self):
        def failing_validator(network, inputs, outputs, input_index, signature):
            raise ValueError("verification unavailable")

        rows = [[self.signatures[(0, 0)], self.signatures[(0, 1)]]] * 2
        with self.assertRaises(ValueError) as cm:
            signed_multisig_transaction(
                TESTNET, self.inputs, self.outputs, rows, signature_validator=failing_validator
            )
        self.assertEqual(
            str(cm.exception),
            f"Invalid signature for input 1: {self.signatures[(0, 0)]} (verification unavailable)",
        )


if __name__ == "__main__":
    unittest.main()
