"""Highway upload framing, server address book and idle connection pool."""

from __future__ import annotations

import bisect
import ipaddress
import struct
import threading
from dataclasses import dataclass, field
from typing import Any, BinaryIO

from lagrangeqq.tea import TeaCipher

BLOCK_SIZE = 1024 * 1024
MAX_IDLE_CONN = 7
MAX_RESPONSE_SIZE = 1024 * 100

REQ_CMD_DATA = "PicUp.DataUp"
REQ_CMD_HEART_BREAK = "PicUp.Echo"

_STX = b"\x28"
_ETX = b"\x29"


def frame(head: bytes, body: bytes | None) -> bytes:
    """Wrap a head and body: STX, u32 head length, u32 body length, head, body, ETX."""
    head = bytes(head or b"")
    body = bytes(body or b"")
    return _STX + struct.pack(">II", len(head), len(body)) + head + body + _ETX


@dataclass(frozen=True)
class Addr:
    """An IPv4 address held as a 32-bit integer, with a port."""

    ip: int = 0
    port: int = 0

    def as_ip(self) -> ipaddress.IPv4Address:
        return ipaddress.IPv4Address(self.ip & 0xFFFFFFFF)

    def empty(self) -> bool:
        return self.ip == 0 or self.port == 0

    def __str__(self) -> str:
        return f"{self.as_ip()}:{self.port}"


@dataclass
class PersistConn:
    """A live connection to a highway server and its last echo delay in ms."""

    conn: Any = None
    addr: Addr = field(default_factory=Addr)
    ping: int = 0


class Session:
    """Highway credentials, server addresses and pooled connections."""

    def __init__(
        self,
        uin: int = 0,
        app_id: int = 0,
        sub_app_id: int = 0,
        sig_session: bytes | None = None,
        session_key: bytes | None = None,
    ) -> None:
        self.uin = uin
        self.app_id = app_id
        self.sub_app_id = sub_app_id
        self.sig_session = sig_session
        self.session_key = session_key
        self.sso_addr: list[Addr] = []

        self._seq = 0
        self._seq_lock = threading.Lock()
        self._addr_lock = threading.Lock()
        self._idx = 0
        self._idle_lock = threading.Lock()
        self._idle: list[PersistConn] = []

    def addr_length(self) -> int:
        with self._addr_lock:
            return len(self.sso_addr)

    def append_addr(self, ip: int, port: int) -> None:
        with self._addr_lock:
            self.sso_addr.append(Addr(ip, int(port)))

    def next_seq(self) -> int:
        """Advance the sequence by two and return it."""
        with self._seq_lock:
            self._seq = (self._seq + 2) & 0xFFFFFFFF
            return self._seq

    def next_addr(self) -> Addr:
        """Return the next server address in round-robin order."""
        with self._addr_lock:
            if not self.sso_addr:
                raise IndexError("no highway server address")
            self._idx %= len(self.sso_addr)
            addr = self.sso_addr[self._idx]
            self._idx = (self._idx + 1) % len(self.sso_addr)
            return addr

    def get_idle_conn(self) -> PersistConn | None:
        """Take the fastest idle connection, or None when there is none."""
        with self._idle_lock:
            if not self._idle:
                return None
            return self._idle.pop(0)

    def put_idle_conn(self, pc: PersistConn) -> None:
        """Return a connection to the pool, kept sorted by delay.

        The slowest one is dropped once the pool exceeds its size limit.
        """
        if pc.conn is None or pc.addr.empty():
            raise ValueError("put bad idle conn")
        with self._idle_lock:
            pings = [idle.ping for idle in self._idle]
            self._idle.insert(bisect.bisect_left(pings, pc.ping), pc)
            if len(self._idle) > MAX_IDLE_CONN:
                self._idle.pop()


@dataclass
class Transaction:
    """One file to be uploaded over highway."""

    command_id: int = 0
    body: BinaryIO | None = None
    sum: bytes = b""
    size: int = 0
    ticket: bytes = b""
    login_sig: bytes = b""
    ext: bytes = b""
    encrypt_ext: bool = False

    def encrypt(self, key: bytes | None) -> None:
        """Encrypt the extension data with ``key`` when encryption is enabled."""
        if not self.encrypt_ext:
            return
        if not key:
            raise ValueError("session key not found. maybe miss some packet?")
        self.ext = TeaCipher(key).encrypt(self.ext)