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
from multisigutils.multisig import (
    MultisigDescriptor,
    generate_multisig_from_public_keys,
    generate_multisig_from_raw,
    multisig_required_signers,
    multisig_total_signers,
    multisig_public_keys,
    multisig_address_type,
    multisig_redeem_script,
    multisig_witness_script,
    multisig_address,
)
from multisigutils.script import Script


class TestMultisigDescriptor(unittest.TestCase):
    def setUp(self):
        setup("testnet")
        self.pk1 = "02d82c9860e36f15d7b72aa59e29347f951277c21cd4d34822acdeeadbcff8a546"
        self.pk2 = "03a2fef1829e0742b89c218c51898d9e7cb9d51201ba2bf9d9e9214ebb6af32708"
        self.multisig_hex = "5221" + self.pk1 + "21" + self.pk2 + "52ae"
        self.p2wsh_program = (
            "3956f9730cf7275000f4e3faf5db0505b216222c1f7ca1bdfb81a877003fcb93"
        )

    def tearDown(self):
        setup("mainnet")

    def test_p2wsh(self):
        multisig = generate_multisig_from_public_keys(TESTNET, P2WSH, 2, self.pk1, self.pk2)
        self.assertEqual(multisig.multisig_script().to_hex(), self.multisig_hex)
        self.assertEqual(multisig_witness_script(multisig).to_hex(), self.multisig_hex)
        self.assertIsNone(multisig_redeem_script(multisig))
        self.assertEqual(
            multisig.script_pub_key().to_hex(), "0020" + self.p2wsh_program
        )
        self.assertEqual(
            multisig_address(multisig),
            "tb1q89t0jucv7un4qq85u0a0tkc9qkepvg3vra72r00msx58wqplewfsfrlunx",
        )
        self.assertEqual(multisig.script_sig(), Script([]))

    def test_p2sh_p2wsh(self):
        multisig = generate_multisig_from_public_keys(
            TESTNET, P2SH_P2WSH, 2, self.pk1, self.pk2
        )
        self.assertEqual(multisig_witness_script(multisig).to_hex(), self.multisig_hex)
        self.assertEqual(
            multisig_redeem_script(multisig).to_hex(), "0020" + self.p2wsh_program
        )
        self.assertEqual(
            multisig.script_pub_key(),
            multisig_redeem_script(multisig).to_p2sh_script_pub_key(),
        )
        self.assertTrue(multisig_address(multisig).startswith("2"))
        self.assertEqual(
            multisig.script_sig().to_hex(), "22" + "0020" + self.p2wsh_program
        )

    def test_p2sh(self):
        multisig = generate_multisig_from_public_keys(MAINNET, P2SH, 1, self.pk1, self.pk2)
        redeem_script = multisig_redeem_script(multisig)
        self.assertEqual(redeem_script.to_hex(), "5121" + self.pk1 + "21" + self.pk2 + "52ae")
        self.assertIsNone(multisig_witness_script(multisig))
        self.assertEqual(multisig.script_pub_key(), redeem_script.to_p2sh_script_pub_key())
        self.assertTrue(multisig_address(multisig).startswith("3"))

        signature = "30" + "aa" * 70
        script_sig = multisig.script_sig(Script(["OP_0", signature]))
        self.assertEqual(
            script_sig.get_script(), ["OP_0", signature, redeem_script.to_hex()]
        )

    def test_accessors(self):
        multisig = generate_multisig_from_public_keys(TESTNET, P2WSH, 1, self.pk2, self.pk1)
        self.assertEqual(multisig_required_signers(multisig), 1)
        self.assertEqual(multisig_total_signers(multisig), 2)
        # script order is the given order
        self.assertEqual(multisig_public_keys(multisig), [self.pk2, self.pk1])
        self.assertEqual(multisig_address_type(multisig), P2WSH)

    def test_default_network(self):
        multisig = MultisigDescriptor(None, P2WSH, 2, [self.pk1, self.pk2])
        self.assertEqual(multisig.network, TESTNET)
        self.assertTrue(multisig.address().startswith("tb1"))

    def test_from_raw(self):
        multisig = generate_multisig_from_raw(TESTNET, P2WSH, self.multisig_hex)
        self.assertEqual(
            multisig,
            generate_multisig_from_public_keys(TESTNET, P2WSH, 2, self.pk1, self.pk2),
        )
        from_script = generate_multisig_from_raw(
            TESTNET, P2SH, Script.from_raw(self.multisig_hex)
        )
        self.assertEqual(multisig_public_keys(from_script), [self.pk1, self.pk2])

    def test_from_raw_not_multisig(self):
        with self.assertRaises(ValueError) as cm:
            generate_multisig_from_raw(
                TESTNET, P2SH, "76a914fd337ad3bf81e086d96a68e1f8d6a0a510f8c24a88ac"
            )
        self.assertEqual(str(cm.exception), "Script is not a multisig script.")

    def test_invalid_public_key(self):
        with self.assertRaises(ValueError) as cm:
            generate_multisig_from_public_keys(TESTNET, P2WSH, 1, self.pk1, "aaaa")
        self.assertEqual(str(cm.exception), "Invalid public key length 2.")

    def test_hybrid_public_key(self):
        hybrid = (
            "07b32dc780fba98db25b4b72cf2b69da228f5e10ca6aa8f46eabe7f9fe22c994ee"
            "6e43c09d025c2ad322382347ec0f69b4e78d8e23c8ff9aa0dd0cb93665ae83d5"
        )
        with self.assertRaises(ValueError) as cm:
            generate_multisig_from_public_keys(TESTNET, P2WSH, 1, self.pk1, hybrid)
        self.assertEqual(str(cm.exception), "Invalid public key prefix 07.")

    def test_invalid_parameters(self):
        with self.assertRaises(ValueError):
            MultisigDescriptor(TESTNET, "P2PKH", 1, [self.pk1])
        with self.assertRaises(ValueError):
            MultisigDescriptor(TESTNET, P2WSH, 3, [self.pk1, self.pk2])
        with self.assertRaises(ValueError):
            MultisigDescriptor(TESTNET, P2WSH, 0, [self.pk1, self.pk2])
        with self.assertRaises(ValueError):
            MultisigDescriptor(TESTNET, P2WSH, 1, [])
        with self.assertRaises(ValueError):
            MultisigDescriptor(TESTNET, P2WSH, 1, [self.pk1] * 16)
        with self.assertRaises(ValueError):
            MultisigDescriptor("regtest", P2WSH, 1, [self.pk1])

    def test_fifteen_keys(self):
        multisig = MultisigDescriptor(TESTNET, P2SH, 15, [self.pk1] * 15)
        script = multisig.multisig_script()
        self.assertEqual(script.is_multisig(), (True, (15, 15)))
        self.assertEqual(script.to_bytes()[-2:], b"\x5f\xae")


if __name__ == "__main__":
    unittest.main()
