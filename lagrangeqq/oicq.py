"""OICQ login packet codec with its ECDH key agreement."""

from __future__ import annotations

import hashlib
import json
import os
import struct
import urllib.error
import urllib.request
from dataclasses import dataclass
from enum import IntEnum

from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from lagrangeqq.tea import TeaCipher

SERVER_PUBLIC_KEY = (
    "04EBCA94D733E399B2DB96EACDD3F69A8BB0F74224E2B44E3357812211D2E62EFB"
    "C91BB553098E25E33A799ADC7F76FEB208DA7C6522CDB0719A305180CC54A82E"
)
_KEY_ROTATE_URL = "https://keyrotate.qq.com/rotate_key?cipher_suite_ver=305&uin="


class UnknownFlagError(ValueError):
    def __init__(self, message: str = "unknown flag") -> None:
        super().__init__(message)


class UnknownEncryptTypeError(ValueError):
    def __init__(self, message: str = "unknown encrypt type") -> None:
        super().__init__(message)


class EcdhSession:
    """P-256 key agreement with the login server."""

    def __init__(self, server_public_key: bytes | None = None) -> None:
        self.svr_public_key_ver = 1
        self.public_key = b""
        self.share_key = b""
        self.derive(server_public_key or bytes.fromhex(SERVER_PUBLIC_KEY))

    def derive(self, server_public_key: bytes) -> None:
        """Make a fresh local key and derive the shared key with ``server_public_key``."""
        try:
            remote = ec.EllipticCurvePublicKey.from_encoded_point(
                ec.SECP256R1(), bytes(server_public_key)
            )
        except (ValueError, TypeError) as exc:
            raise ValueError(f"invalid server public key: {exc}") from exc
        local = ec.generate_private_key(ec.SECP256R1())
        shared = local.exchange(ec.ECDH(), remote)
        self.share_key = hashlib.md5(shared[:16]).digest()
        self.public_key = local.public_key().public_bytes(
            Encoding.X962, PublicFormat.UncompressedPoint
        )

    def fetch_pub_key(self, uin: int) -> None:
        """Ask the server for its current key; keep the old one on any failure."""
        try:
            with urllib.request.urlopen(f"{_KEY_ROTATE_URL}{uin}", timeout=10) as resp:
                obj = json.loads(resp.read())
            meta = obj["PubKeyMeta"]
            version = int(meta["KeyVer"])
            key = bytes.fromhex(meta["PubKey"])
            self.derive(key)
        except (urllib.error.URLError, OSError, ValueError, KeyError, TypeError):
            return
        self.svr_public_key_ver = version & 0xFFFF


class EncryptionMethod(IntEnum):
    ECDH = 0
    ST = 1


@dataclass
class Message:
    uin: int = 0
    command: int = 0
    encryption_method: EncryptionMethod = EncryptionMethod.ECDH
    body: bytes = b""


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def remaining(self) -> int:
        return len(self._data) - self._pos

    def read(self, n: int) -> bytes:
        if n < 0 or n > self.remaining():
            raise ValueError("truncated oicq packet")
        chunk = self._data[self._pos : self._pos + n]
        self._pos += n
        return chunk

    def u8(self) -> int:
        return self.read(1)[0]

    def u16(self) -> int:
        return struct.unpack(">H", self.read(2))[0]

    def u32(self) -> int:
        return struct.unpack(">I", self.read(4))[0]


class Codec:
    """Builds outgoing and opens incoming OICQ packets."""

    def __init__(self, ecdh: EcdhSession | None = None, random_key: bytes | None = None) -> None:
        self.ecdh = ecdh if ecdh is not None else EcdhSession()
        self.random_key = bytes(random_key) if random_key is not None else os.urandom(16)
        self.wt_session_ticket_key = b""

    def marshal(self, message: Message) -> bytes:
        method = EncryptionMethod(message.encryption_method)
        out = bytearray()
        out += b"\x02"
        out += b"\x00\x00"  # length, filled in below
        out += struct.pack(">HHHI", 8001, message.command, 1, message.uin)
        out += b"\x03"
        out += b"\x87" if method is EncryptionMethod.ECDH else b"\x45"
        out += b"\x00"
        out += struct.pack(">III", 2, 0, 0)
        if method is EncryptionMethod.ECDH:
            out += b"\x02\x01"
            out += self.random_key
            out += struct.pack(">HHH", 0x0131, self.ecdh.svr_public_key_ver, len(self.ecdh.public_key))
            out += self.ecdh.public_key
            out += TeaCipher(self.ecdh.share_key).encrypt(message.body)
        else:
            out += b"\x01\x03"
            out += self.random_key
            out += struct.pack(">HH", 0x0102, 0x0000)
            out += TeaCipher(self.random_key).encrypt(message.body)
        out += b"\x03"
        struct.pack_into(">H", out, 1, len(out) & 0xFFFF)
        return bytes(out)

    def unmarshal(self, data: bytes) -> Message:
        reader = _Reader(data)
        if reader.u8() != 2:
            raise UnknownFlagError()
        message = Message()
        reader.u16()  # length
        reader.u16()  # version
        message.command = reader.u16()
        reader.u16()
        message.uin = reader.u32()
        reader.u8()
        encrypt_type = reader.u8()
        reader.u8()
        if encrypt_type == 0:
            payload = reader.read(reader.remaining() - 1)
            try:
                message.body = TeaCipher(self.ecdh.share_key).decrypt(payload)
            except ValueError:
                message.body = TeaCipher(self.random_key).decrypt(payload)
        elif encrypt_type == 3:
            payload = reader.read(reader.remaining() - 1)
            message.body = TeaCipher(self.wt_session_ticket_key).decrypt(payload)
        else:
            raise UnknownEncryptTypeError()
        return message


def new_codec(uin: int) -> Codec:
    """Create a codec and try to pick up the server's current public key."""
    codec = Codec()
    codec.ecdh.fetch_pub_key(uin)
    return codec


class TLV:
    """A command followed by a count and the raw elements."""

    def __init__(self, command: int = 0, elements: list[bytes] | None = None) -> None:
        self.command = command
        self.elements: list[bytes] = list(elements or [])

    def marshal(self) -> bytes:
        return struct.pack(">HH", self.command, len(self.elements) & 0xFFFF) + b"".join(
            bytes(e) for e in self.elements
        )

    def append(self, *args: bytes) -> None:
        self.elements.extend(args)