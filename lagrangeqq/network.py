"""TCP transport, SSO packet framing and response decoding."""

from __future__ import annotations

import socket
import struct
import threading
import time
import zlib
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from lagrangeqq.auth import AppInfo, DeviceInfo, SigInfo
from lagrangeqq.tea import TeaCipher

MAX_PACKET_LENGTH = 1024 * 1024 * 10


class ConnectionClosedError(ConnectionError):
    """Raised when the connection is gone or breaks during I/O."""

    def __init__(self, message: str = "connection closed") -> None:
        super().__init__(message)


class ResponseError(Exception):
    """A response could not be decoded or reported a failure.

    ``response`` holds what had been decoded before the failure, if anything.
    """

    default_message = "invalid response"

    def __init__(self, message: str | None = None, response: Response | None = None) -> None:
        super().__init__(message or self.default_message)
        self.response = response


class SessionExpiredError(ResponseError):
    default_message = "session expired"


class AuthenticationFailedError(ResponseError):
    default_message = "authentication failed"


class PacketDroppedError(ResponseError):
    default_message = "packet dropped"


class InvalidPacketTypeError(ResponseError):
    default_message = "invalid packet type"


class RequestParams(dict):
    """Extra values attached to a pending request."""

    def get_bool(self, key: str) -> bool:
        """Return the boolean under ``key``, False when absent."""
        if key not in self:
            return False
        value = self[key]
        if not isinstance(value, bool):
            raise TypeError(f"parameter {key!r} is not a bool")
        return value

    def get_int32(self, key: str) -> int:
        """Return the integer under ``key``, 0 when absent."""
        if key not in self:
            return 0
        value = self[key]
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"parameter {key!r} is not an integer")
        return value


@dataclass
class Packet:
    sequence_id: int = 0
    command_name: str = ""
    payload: bytes = b""
    params: RequestParams | None = None


class RequestType(IntEnum):
    LOGIN = 0x0A
    SIMPLE = 0x0B
    NT = 0x0C


class EncryptType(IntEnum):
    NO_ENCRYPT = 0x00
    D2_KEY = 0x01
    EMPTY_KEY = 0x02


@dataclass
class Request:
    sequence_id: int = 0
    uin: int = 0
    sign: Any = None
    command_name: str = ""
    body: bytes = b""


@dataclass
class Response:
    type: int = 0
    encrypt_type: int = 0
    sequence_id: int = 0
    uin: int = 0
    command_name: str = ""
    body: bytes = b""
    message: str = ""


class _Truncated(Exception):
    pass


class _Reader:
    """Big-endian reader over a byte string."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def remaining(self) -> int:
        return len(self._data) - self._pos

    def read_bytes(self, n: int) -> bytes:
        if n < 0 or n > self.remaining():
            raise _Truncated()
        chunk = self._data[self._pos : self._pos + n]
        self._pos += n
        return chunk

    def read_u8(self) -> int:
        return self.read_bytes(1)[0]

    def read_i32(self) -> int:
        return struct.unpack(">i", self.read_bytes(4))[0]

    def read_prefixed(self) -> bytes:
        """Read bytes behind a u32 length that counts the prefix itself."""
        (length,) = struct.unpack(">I", self.read_bytes(4))
        return self.read_bytes(length - 4)

    def read_string(self) -> str:
        return self.read_prefixed().decode("utf-8", errors="replace")

    def read_all(self) -> bytes:
        return self.read_bytes(self.remaining())


def _parse_uin(text: str) -> int:
    try:
        value = int(text, 10)
    except ValueError:
        return 0
    return value if -(1 << 63) <= value < (1 << 63) else 0


@dataclass
class Transport:
    """Session state needed to decode incoming packets."""

    sig: SigInfo = field(default_factory=SigInfo)
    version: AppInfo | None = None
    device: DeviceInfo | None = None

    def read_response(self, head: bytes) -> Response:
        """Decode one incoming packet, without its leading length field."""
        resp = Response()
        reader = _Reader(head)
        try:
            resp.type = reader.read_i32()
            if resp.type not in (RequestType.LOGIN, RequestType.SIMPLE, RequestType.NT):
                raise InvalidPacketTypeError(response=resp)
            resp.type = RequestType(resp.type)
            resp.encrypt_type = reader.read_u8()
            reader.read_u8()
            resp.uin = _parse_uin(reader.read_string())
            body = reader.read_all()
        except _Truncated:
            raise PacketDroppedError(response=resp) from None

        try:
            if resp.encrypt_type == EncryptType.D2_KEY:
                body = TeaCipher(self.sig.d2_key).decrypt(body)
            elif resp.encrypt_type == EncryptType.EMPTY_KEY:
                body = TeaCipher(bytes(16)).decrypt(body)
        except ValueError as exc:
            raise PacketDroppedError(f"packet dropped: {exc}", resp) from exc
        if resp.encrypt_type in set(EncryptType):
            resp.encrypt_type = EncryptType(resp.encrypt_type)

        self._read_sso_frame(resp, body)
        return resp

    def _read_sso_frame(self, resp: Response, payload: bytes) -> None:
        reader = _Reader(payload)
        try:
            head_len = reader.read_i32()
            if head_len < 4 or head_len - 4 > reader.remaining():
                raise PacketDroppedError(response=resp)
            head = _Reader(reader.read_bytes(head_len - 4))
            resp.sequence_id = head.read_i32()
            ret_code = head.read_i32()
            resp.message = head.read_string()
        except _Truncated:
            raise PacketDroppedError(response=resp) from None

        if ret_code in (-10001, -10008):
            raise SessionExpiredError(f"session expired: {resp.message}", resp)
        if ret_code == -10003:
            raise AuthenticationFailedError(f"authentication failed: {resp.message}", resp)
        if ret_code != 0:
            raise ResponseError(f"return code unsuccessful: {ret_code}: {resp.message}", resp)

        try:
            resp.command_name = head.read_string()
            if resp.command_name == "Heartbeat.Alive":
                return
            head.read_prefixed()  # session id
            compressed_flag = head.read_i32()
            body_len = reader.read_i32() - 4
            body = reader.read_all()
        except _Truncated:
            raise PacketDroppedError(response=resp) from None

        if 0 < body_len < len(body):
            body = body[:body_len]
        if compressed_flag == 0:
            pass
        elif compressed_flag == 1:
            try:
                body = zlib.decompress(body)
            except zlib.error as exc:
                raise ResponseError(f"zlib decompress failed: {exc}", resp) from exc
        elif compressed_flag == 8:
            body = body[4:] if len(body) > 4 else b""
        else:
            raise ResponseError(f"unsupported compress flag {compressed_flag}", resp)
        resp.body = body


def _split_addr(addr: str) -> tuple[str, int]:
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid address {addr!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, int(port)


class TCPClient:
    """A TCP connection that reports planned and unexpected disconnects."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._conn: socket.socket | None = None
        self._connected = False
        self._planned: Callable[[TCPClient], Any] | None = None
        self._unexpected: Callable[[TCPClient, BaseException], Any] | None = None

    def planned_disconnect(self, callback: Callable[[TCPClient], Any]) -> None:
        """Set the callback run when the connection is closed on purpose."""
        with self._lock:
            self._planned = callback

    def unexpected_disconnect(self, callback: Callable[[TCPClient, BaseException], Any]) -> None:
        """Set the callback run when the connection breaks."""
        with self._lock:
            self._unexpected = callback

    def connect(self, addr: str) -> None:
        """Close any current connection and dial ``host:port``."""
        self.close()
        host, port = _split_addr(addr)
        try:
            conn = socket.create_connection((host, port))
        except OSError as exc:
            raise ConnectionError(f"dial tcp error: {exc}") from exc
        with self._lock:
            self._conn = conn
            self._connected = True

    def _get_conn(self) -> socket.socket | None:
        with self._lock:
            return self._conn

    def write(self, buf: bytes) -> None:
        conn = self._get_conn()
        if conn is None:
            raise ConnectionClosedError()
        try:
            conn.sendall(buf)
        except OSError as exc:
            self._unexpected_close(exc)
            raise ConnectionClosedError() from exc

    def read_bytes(self, length: int) -> bytes:
        """Read exactly ``length`` bytes."""
        conn = self._get_conn()
        if conn is None:
            raise ConnectionClosedError()
        buf = bytearray()
        try:
            while len(buf) < length:
                chunk = conn.recv(length - len(buf))
                if not chunk:
                    raise EOFError("unexpected EOF")
                buf += chunk
        except (OSError, EOFError) as exc:
            self._unexpected_close(exc)
            raise ConnectionClosedError() from exc
        return bytes(buf)

    def read_int32(self) -> int:
        """Read a signed big-endian 32-bit integer."""
        return struct.unpack(">i", self.read_bytes(4))[0]

    def close(self) -> None:
        self._close()
        self._invoke_planned()

    def _unexpected_close(self, error: BaseException) -> None:
        self._close()
        self._invoke_unexpected(error)

    def _close(self) -> None:
        with self._lock:
            conn, self._conn = self._conn, None
        if conn is not None:
            try:
                conn.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            conn.close()

    def _invoke_planned(self) -> None:
        with self._lock:
            callback = self._planned
            if callback is None or not self._connected:
                return
            self._connected = False
        threading.Thread(target=callback, args=(self,), daemon=True).start()

    def _invoke_unexpected(self, error: BaseException) -> None:
        with self._lock:
            callback = self._unexpected
            if callback is None or not self._connected:
                return
            self._connected = False
        threading.Thread(target=callback, args=(self, error), daemon=True).start()


def quality_test(addr: str) -> int:
    """Return the milliseconds a TCP connect to ``addr`` takes."""
    host, port = _split_addr(addr)
    start = time.monotonic()
    try:
        conn = socket.create_connection((host, port), timeout=5)
    except OSError as exc:
        raise ConnectionError(f"failed to connect to server during quality test: {exc}") from exc
    conn.close()
    return int((time.monotonic() - start) * 1000)