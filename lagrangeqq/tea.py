"""TEA block cipher in the chained 16-round variant used by the QQ protocol."""

from __future__ import annotations

import os
import struct

_DELTA = 0x9E3779B9
_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF
_ROUNDS = 16
_SUMS = tuple((_DELTA * (i + 1)) & _MASK32 for i in range(_ROUNDS))


class TeaCipher:
    """A TEA cipher bound to a 16-byte key.

    A key of any other length is treated as an all-zero key.
    """

    __slots__ = ("_k0", "_k1", "_k2", "_k3")

    def __init__(self, key: bytes) -> None:
        key = bytes(key)
        if len(key) != 16:
            key = bytes(16)
        self._k0, self._k1, self._k2, self._k3 = struct.unpack(">4I", key)

    def _encode(self, block: int) -> int:
        v0, v1 = block >> 32, block & _MASK32
        k0, k1, k2, k3 = self._k0, self._k1, self._k2, self._k3
        for s in _SUMS:
            v0 = (v0 + (((v1 + s) & _MASK32) ^ (((v1 << 4) + k0) & _MASK32) ^ ((v1 >> 5) + k1))) & _MASK32
            v1 = (v1 + (((v0 + s) & _MASK32) ^ (((v0 << 4) + k2) & _MASK32) ^ ((v0 >> 5) + k3))) & _MASK32
        return (v0 << 32) | v1

    def _decode(self, block: int) -> int:
        v0, v1 = block >> 32, block & _MASK32
        k0, k1, k2, k3 = self._k0, self._k1, self._k2, self._k3
        for s in reversed(_SUMS):
            v1 = (v1 - ((((v0 + s) & _MASK32) ^ (((v0 << 4) + k2) & _MASK32) ^ ((v0 >> 5) + k3)) & _MASK32)) & _MASK32
            v0 = (v0 - ((((v1 + s) & _MASK32) ^ (((v1 << 4) + k0) & _MASK32) ^ ((v1 >> 5) + k1)) & _MASK32)) & _MASK32
        return (v0 << 32) | v1

    def encrypt(self, data: bytes) -> bytes:
        """Pad ``data`` with a random header and encrypt it."""
        data = bytes(data)
        fill = 10 - (len(data) + 1) % 8
        header = bytearray(os.urandom(fill))
        header[0] = ((fill - 3) | 0xF8) & 0xFF
        plain = bytes(header) + data + bytes(7)

        out = bytearray()
        iv1 = iv2 = 0
        for (block,) in struct.iter_unpack(">Q", plain):
            holder = block ^ iv1
            iv1 = self._encode(holder) ^ iv2
            iv2 = holder
            out += struct.pack(">Q", iv1)
        return bytes(out)

    def decrypt(self, data: bytes) -> bytes:
        """Decrypt ``data`` and strip its padding.

        Raises ValueError when the input is shorter than 16 bytes or not a
        whole number of 8-byte blocks.
        """
        data = bytes(data)
        if len(data) < 16 or len(data) % 8:
            raise ValueError(f"invalid TEA ciphertext length {len(data)}")
        out = bytearray()
        state = prev = 0
        for (block,) in struct.iter_unpack(">Q", data):
            state = self._decode((state ^ block) & _MASK64)
            out += struct.pack(">Q", state ^ prev)
            prev = block
        start = (out[0] & 7) + 3
        return bytes(out[start : len(data) - 7])