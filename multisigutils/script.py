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

import copy
import hashlib
import struct
from typing import Any, Optional, Union

from multisigutils.utils import b_to_h, h_to_b, hash160


# Bitcoin's op codes used by the standard multisig and payment scripts.
# Complete list at: https://en.bitcoin.it/wiki/Script
OP_CODES = {
    # constants
    "OP_0": b"\x00",
    "OP_FALSE": b"\x00",
    "OP_PUSHDATA1": b"\x4c",
    "OP_PUSHDATA2": b"\x4d",
    "OP_PUSHDATA4": b"\x4e",
    "OP_1": b"\x51",
    "OP_TRUE": b"\x51",
    "OP_2": b"\x52",
    "OP_3": b"\x53",
    "OP_4": b"\x54",
    "OP_5": b"\x55",
    "OP_6": b"\x56",
    "OP_7": b"\x57",
    "OP_8": b"\x58",
    "OP_9": b"\x59",
    "OP_10": b"\x5a",
    "OP_11": b"\x5b",
    "OP_12": b"\x5c",
    "OP_13": b"\x5d",
    "OP_14": b"\x5e",
    "OP_15": b"\x5f",
    "OP_16": b"\x60",
    # stack
    "OP_DUP": b"\x76",
    # bitwise logic
    "OP_EQUAL": b"\x87",
    "OP_EQUALVERIFY": b"\x88",
    # crypto
    "OP_HASH160": b"\xa9",
    "OP_CHECKSIG": b"\xac",
    "OP_CHECKMULTISIG": b"\xae",
}

# aliases (OP_FALSE, OP_TRUE) lose to the canonical names when reversing
CODE_OPS = {}
for _name, _code in OP_CODES.items():
    CODE_OPS.setdefault(_code, _name)


def _small_int(token: Any) -> Optional[int]:
    """Returns the value of OP_0..OP_16 (or of an int token), None otherwise"""
    if isinstance(token, int) and 0 <= token <= 16:
        return token
    if token == "OP_0":
        return 0
    if isinstance(token, str) and token.startswith("OP_") and token[3:].isdigit():
        value = int(token[3:])
        if 1 <= value <= 16:
            return value
    return None


class Script:
    """Represents any script in Bitcoin

    A Script contains just a list of OP_CODES and data pushes (hex strings)
    and also knows how to serialize into bytes

    Attributes
    ----------
    script : list
        the list with all the script OP_CODES and data

    Methods
    -------
    to_bytes()
        returns a serialized byte version of the script
    to_hex()
        returns a serialized version of the script in hex
    get_script()
        returns the list of strings that makes up this script
    copy()
        creates a copy of the object (classmethod)
    from_raw()
        parses a serialized script (staticmethod)
    to_p2sh_script_pub_key()
        converts script to p2sh scriptPubKey (locking script)
    to_p2wsh_script_pub_key()
        converts script to p2wsh scriptPubKey (locking script)
    is_multisig()
        checks if script is a bare multisig script

    Raises
    ------
    ValueError
        If string data is too large or an integer is outside 0..16
    """

    def __init__(self, script: list[Any]):
        """See Script description"""
        self.script: list[Any] = script

    @classmethod
    def copy(cls, script: "Script") -> "Script":
        """Deep copy of Script"""
        scripts = copy.deepcopy(script.script)
        return cls(scripts)

    def _op_push_data(self, data: str) -> bytes:
        """Converts data to appropriate OP_PUSHDATA OP code including length"""
        data_bytes = h_to_b(data)

        if len(data_bytes) < 0x4C:
            return bytes([len(data_bytes)]) + data_bytes
        elif len(data_bytes) <= 0xFF:
            return b"\x4c" + bytes([len(data_bytes)]) + data_bytes
        elif len(data_bytes) <= 0xFFFF:
            return b"\x4d" + struct.pack("<H", len(data_bytes)) + data_bytes
        elif len(data_bytes) <= 0xFFFFFFFF:
            return b"\x4e" + struct.pack("<I", len(data_bytes)) + data_bytes
        else:
            raise ValueError("Data too large. Cannot push into script")

    def to_bytes(self) -> bytes:
        """Converts the script to bytes"""
        script_bytes = b""
        for token in self.script:
            if isinstance(token, str) and token in OP_CODES:
                script_bytes += OP_CODES[token]
            elif isinstance(token, int):
                if not 0 <= token <= 16:
                    raise ValueError(f"Integer {token} is not a small integer (0..16)")
                script_bytes += OP_CODES["OP_" + str(token)]
            else:
                script_bytes += self._op_push_data(token)
        return script_bytes

    def to_hex(self) -> str:
        """Converts the script to hexadecimal"""
        return b_to_h(self.to_bytes())

    @staticmethod
    def from_raw(scriptrawhex: Union[str, bytes]) -> "Script":
        """
        Imports a Script commands list from raw hexadecimal data

        Data pushes become hex strings and op codes their names.

        Raises
        ------
        ValueError
            if a push runs past the end of the script or an op code is unknown
        """
        if isinstance(scriptrawhex, str):
            scriptraw = h_to_b(scriptrawhex)
        elif isinstance(scriptrawhex, bytes):
            scriptraw = scriptrawhex
        else:
            raise TypeError("Input must be a hexadecimal string or bytes")

        commands: list[Any] = []
        index = 0
        while index < len(scriptraw):
            byte = scriptraw[index]
            index += 1

            if 0x01 <= byte <= 0x4B:
                data_size = byte
            elif byte == 0x4C:
                data_size = scriptraw[index]
                index += 1
            elif byte == 0x4D:
                data_size = struct.unpack("<H", scriptraw[index : index + 2])[0]
                index += 2
            elif byte == 0x4E:
                data_size = struct.unpack("<I", scriptraw[index : index + 4])[0]
                index += 4
            else:
                op_name = CODE_OPS.get(bytes([byte]))
                if op_name is None:
                    raise ValueError(f"Unknown op code 0x{byte:02x}")
                commands.append(op_name)
                continue

            if index + data_size > len(scriptraw):
                raise ValueError("Script push exceeds script length")
            commands.append(scriptraw[index : index + data_size].hex())
            index += data_size

        return Script(commands)

    def get_script(self) -> list[Any]:
        """Returns script as array of strings"""
        return self.script

    def to_p2sh_script_pub_key(self) -> "Script":
        """Converts script to p2sh scriptPubKey (locking script)"""
        hex_hash160 = b_to_h(hash160(self.to_bytes()))
        return Script(["OP_HASH160", hex_hash160, "OP_EQUAL"])

    def to_p2wsh_script_pub_key(self) -> "Script":
        """Converts script to p2wsh scriptPubKey (locking script)"""
        sha256 = hashlib.sha256(self.to_bytes()).digest()
        return Script(["OP_0", b_to_h(sha256)])

    def is_multisig(self) -> tuple[bool, Union[tuple[int, int], None]]:
        """
        Check if script is a multisig script.

        Multisig format: OP_M <pubkey1> ... <pubkeyN> OP_N OP_CHECKMULTISIG

        Returns:
            tuple: (bool, (M, N) if multisig, None otherwise)
        """
        ops = self.script
        if len(ops) < 4 or ops[-1] != "OP_CHECKMULTISIG":
            return False, None

        m = _small_int(ops[0])
        n = _small_int(ops[-2])
        if not m or not n or m > n or len(ops) != n + 3:
            return False, None

        return True, (m, n)

    def __str__(self) -> str:
        return str(self.script)

    def __repr__(self) -> str:
        return self.__str__()

    def __eq__(self, _other: object) -> bool:
        if not isinstance(_other, Script):
            return False
        return self.to_bytes() == _other.to_bytes()
