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

import re
import struct
import hashlib

from base58check import b58encode, b58decode  # type: ignore

from multisigutils.ripemd160 import ripemd160


_HEX_RE = re.compile(r"^[0-9A-Fa-f]*$")


def validate_hex(input_string: str) -> str:
    """Provide validation messages for a hex string.

    Returns an empty string for valid (even length) hex, the validation
    message otherwise.
    """
    if len(input_string) % 2 != 0:
        return "Invalid hex: odd-length string."
    if not _HEX_RE.match(input_string):
        return "Invalid hex: only characters a-f, A-F and 0-9 allowed."
    return ""


def sha256d(data: bytes) -> bytes:
    """Double SHA-256 as used for txids, digests and checksums"""
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def hash160(data: bytes) -> bytes:
    """RIPEMD-160 of the SHA-256 of data"""
    return ripemd160(hashlib.sha256(data).digest())


def b58check_encode(payload: bytes) -> str:
    """Appends the 4 byte checksum to payload and base58 encodes it

    |  Pseudocode:
    |      checksum = (first 4 bytes of SHA-256( SHA-256( payload ) ))
    |      encoded = Base58Encode( payload + checksum )
    """
    checksum = sha256d(payload)[:4]
    return b58encode(payload + checksum).decode("utf-8")


def b58check_decode(encoded: str) -> bytes:
    """Decodes base58 and verifies the trailing 4 byte checksum

    Returns the payload without the checksum.

    Raises
    ------
    ValueError
        if the string is not base58 or the checksum is wrong
    """
    data_bytes = b58decode(encoded.encode("utf-8"))
    if len(data_bytes) < 4:
        raise ValueError("Invalid checksum")

    payload = data_bytes[:-4]
    checksum = data_bytes[-4:]
    if sha256d(payload)[:4] != checksum:
        raise ValueError("Invalid checksum")
    return payload


def prepend_compact_size(data: bytes) -> bytes:
    """
    Counts bytes and returns them with their varint (or compact size) prepended.
    """
    varint_bytes = encode_varint(len(data))
    return varint_bytes + data


def encode_varint(i: int) -> bytes:
    """
    Encode a potentially very large integer into varint bytes. The length should be
    specified in little-endian.

    https://bitcoin.org/en/developer-reference#compactsize-unsigned-integers
    """
    if i < 253:
        return bytes([i])
    elif i < 0x10000:
        return b"\xfd" + i.to_bytes(2, "little")
    elif i < 0x100000000:
        return b"\xfe" + i.to_bytes(4, "little")
    elif i < 0x10000000000000000:
        return b"\xff" + i.to_bytes(8, "little")
    else:
        raise ValueError("Integer is too large: %d" % i)


def parse_compact_size(data: bytes) -> tuple:
    """
    Parse variable integer. Returns (count, size)
    """
    if not data:
        raise ValueError("Cannot parse compact size of empty data")
    first_byte = data[0]
    if first_byte < 0xFD:
        return (first_byte, 1)
    elif first_byte == 0xFD:
        return (struct.unpack("<H", data[1:3])[0], 3)
    elif first_byte == 0xFE:
        return (struct.unpack("<I", data[1:5])[0], 5)
    else:
        return (struct.unpack("<Q", data[1:9])[0], 9)


#
# Basic conversions between bytes (b) and hexadecimal (h)
#
def b_to_h(b: bytes) -> str:
    """Converts bytes to hexadecimal string"""
    return b.hex()


def h_to_b(h: str) -> bytes:
    """Converts hexadecimal string to bytes"""
    return bytes.fromhex(h)
