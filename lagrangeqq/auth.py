"""Application profiles, device identity and login signature storage."""

from __future__ import annotations

import hashlib
import json
import platform
import secrets
import struct
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any


class DataHashMismatchError(ValueError):
    """Raised when stored signature data does not match its checksum."""

    def __init__(self, message: str = "data hash mismatch") -> None:
        super().__init__(message)


def _load_json_object(data: bytes | str) -> dict[str, Any]:
    try:
        obj = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValueError(f"invalid JSON: {exc}") from exc
    if not isinstance(obj, dict):
        raise ValueError("JSON document is not an object")
    return obj


@dataclass
class AppInfo:
    """Protocol profile of one official client build."""

    os: str = ""
    kernel: str = ""
    vendor_os: str = ""
    current_version: str = ""
    build_version: int = 0
    misc_bitmap: int = 0
    pt_version: str = ""
    pt_os_version: int = 0
    package_name: str = ""
    wtlogin_sdk: str = ""
    package_sign: str = ""
    app_id: int = 0
    sub_app_id: int = 0
    app_id_qrcode: int = 0
    app_client_version: int = 0
    main_sigmap: int = 0
    sub_sigmap: int = 0
    nt_login_type: int = 0

    def marshal(self) -> bytes:
        """Encode the profile as compact JSON."""
        return json.dumps(asdict(self), ensure_ascii=False, separators=(",", ":")).encode()


def unmarshal_app_info(data: bytes | str) -> AppInfo:
    """Decode a profile from JSON; unknown keys are ignored."""
    obj = _load_json_object(data)
    names = {f.name for f in fields(AppInfo)}
    return AppInfo(**{k: v for k, v in obj.items() if k in names})


_LINUX = AppInfo(
    os="Linux",
    kernel="Linux",
    vendor_os="linux",
    misc_bitmap=32764,
    pt_version="2.0.0",
    pt_os_version=19,
    package_name="com.tencent.qq",
    wtlogin_sdk="nt.wtlogin.0.0.1",
    app_id=1600001615,
    app_id_qrcode=13697054,
    app_client_version=13172,
    main_sigmap=169742560,
    sub_sigmap=0,
    nt_login_type=1,
)

_MAC = AppInfo(
    os="Mac",
    kernel="Darwin",
    vendor_os="mac",
    misc_bitmap=32764,
    pt_version="2.0.0",
    pt_os_version=23,
    package_name="com.tencent.qq",
    wtlogin_sdk="nt.wtlogin.0.0.1",
    app_id=1600001602,
    app_id_qrcode=537162356,
    app_client_version=13172,
    main_sigmap=169742560,
    sub_sigmap=0,
    nt_login_type=5,
)

_WINDOWS = AppInfo(
    os="Windows",
    kernel="Windows_NT",
    vendor_os="win32",
    misc_bitmap=32764,
    pt_version="2.0.0",
    pt_os_version=23,
    package_name="com.tencent.qq",
    wtlogin_sdk="nt.wtlogin.0.0.1",
    app_id=1600001604,
    app_id_qrcode=537138217,
    app_client_version=13172,
    main_sigmap=169742560,
    sub_sigmap=0,
    nt_login_type=5,
)


def _build(base: AppInfo, version: str, sign: str, sub_app_id: int, **extra: Any) -> AppInfo:
    build = int(version.rsplit("-", 1)[1])
    return replace(
        base,
        current_version=version,
        build_version=build,
        package_sign=sign,
        sub_app_id=sub_app_id,
        **extra,
    )


APP_LIST: dict[str, dict[str, AppInfo]] = {
    "linux": {
        "3.1.2-13107": _build(_LINUX, "3.1.2-13107", "V1_LNX_NQ_3.1.2-13107_RDM_B", 537146866),
        "3.2.10-25765": _build(_LINUX, "3.2.10-25765", "V1_LNX_NQ_3.2.10_25765_GW_B", 537234773),
        "3.2.12-27597": _build(_LINUX, "3.2.12-27597", "V1_LNX_NQ_3.2.12_27597_GW_B", 537243600),
        "3.2.15-30366": _build(
            _LINUX, "3.2.15-30366", "V1_LNX_NQ_3.2.15_30366_GW_B", 537258424, app_client_version=30366
        ),
    },
    "macos": {
        "6.9.20-17153": _build(_MAC, "6.9.20-17153", "V1_MAC_NQ_6.9.20-17153_RDM_B", 537162356),
    },
    "windows": {
        "9.9.12-25493": _build(_WINDOWS, "9.9.12-25493", "V1_WIN_NQ_9.9.12-25493_GW_B", 537231759),
        "9.9.12-25765": _build(_WINDOWS, "9.9.12-25765", "V1_WIN_NQ_9.9.12-25765_GW_B", 537234702),
        "9.9.15-27597": _build(_WINDOWS, "9.9.15-27597", "V1_WIN_NQ_9.9.15-27597_GW_B", 537243441),
        "9.9.15-28060": _build(_WINDOWS, "9.9.15-28060", "V1_WIN_NQ_9.9.15-28060_GW_B", 537246092),
    },
}


@dataclass
class DeviceInfo:
    """Identity this client presents to the server."""

    guid: str = ""
    device_name: str = ""
    system_kernel: str = ""
    kernel_version: str = ""

    def save(self, path: str | Path) -> None:
        """Write the device as JSON to ``path``."""
        data = json.dumps(asdict(self), ensure_ascii=False, separators=(",", ":"))
        Path(path).write_text(data, encoding="utf-8")


def new_device_info(uin: int) -> DeviceInfo:
    """Derive a device identity from a number."""
    digest = hashlib.md5(str(uin).encode()).digest()
    version = platform.version()
    return DeviceInfo(
        guid=digest.hex().upper(),
        device_name=f"Lagrange-{digest[:4].hex().upper()}",
        system_kernel=f"{platform.system()} {version}",
        kernel_version=version,
    )


def load_or_save_device(path: str | Path) -> DeviceInfo:
    """Load a device from ``path``; create and save a fresh one if unreadable."""
    try:
        obj = _load_json_object(Path(path).read_bytes())
    except (OSError, ValueError):
        device = new_device_info(secrets.randbits(32))
        device.save(path)
        return device
    names = {f.name for f in fields(DeviceInfo)}
    return DeviceInfo(**{k: v for k, v in obj.items() if k in names})


_BYTES_FIELDS = (
    "tgtgt",
    "tgt",
    "d2",
    "d2_key",
    "qrsig",
    "exchange_key",
    "key_sig",
    "unusual_sig",
    "temp_pwd",
)


@dataclass
class SigInfo:
    """Session keys and tickets obtained during login."""

    uin: int = 0
    sequence: int = 0
    uid: str = ""

    tgtgt: bytes = b""
    tgt: bytes = b""
    d2: bytes = b""
    d2_key: bytes = b""

    qrsig: bytes = b""
    exchange_key: bytes = b""
    key_sig: bytes = b""
    cookies: str = ""
    unusual_sig: bytes = b""
    temp_pwd: bytes = b""
    captcha_info: tuple[str, str, str] = field(default=("", "", ""))

    new_device_verify_url: str = ""

    nickname: str = ""
    age: int = 0
    gender: int = 0

    def clear_session(self) -> None:
        """Forget the session tickets."""
        self.d2 = b""
        self.tgt = b""
        self.d2_key = bytes(16)

    def _encode(self) -> bytes:
        obj: dict[str, Any] = asdict(self)
        for name in _BYTES_FIELDS:
            obj[name] = obj[name].hex()
        obj["captcha_info"] = list(self.captcha_info)
        return json.dumps(obj, ensure_ascii=False, separators=(",", ":")).encode()

    @classmethod
    def _decode(cls, data: bytes) -> SigInfo:
        obj = _load_json_object(data)
        names = {f.name for f in fields(cls)}
        values = {k: v for k, v in obj.items() if k in names}
        try:
            for name in _BYTES_FIELDS:
                if name in values:
                    values[name] = bytes.fromhex(values[name])
            if "captcha_info" in values:
                captcha = tuple(values["captcha_info"])
                if len(captcha) != 3:
                    raise ValueError("captcha_info must hold three strings")
                values["captcha_info"] = captcha
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid signature data: {exc}") from exc
        return cls(**values)

    def marshal(self) -> bytes:
        """Serialise with an MD5 checksum, each part prefixed by a u16 length."""
        data = self._encode()
        digest = hashlib.md5(data).digest()
        return _len_bytes(digest) + _len_bytes(data)


def _len_bytes(data: bytes) -> bytes:
    if len(data) > 0xFFFF:
        raise ValueError("field too long for a u16 length prefix")
    return struct.pack(">H", len(data)) + data


def _read_len_bytes(buf: bytes, offset: int) -> tuple[bytes, int]:
    if offset + 2 > len(buf):
        raise ValueError("truncated signature data")
    (length,) = struct.unpack_from(">H", buf, offset)
    start = offset + 2
    end = start + length
    if end > len(buf):
        raise ValueError("truncated signature data")
    return bytes(buf[start:end]), end


def unmarshal_sig_info(buf: bytes, verify: bool) -> SigInfo:
    """Restore a SigInfo; with ``verify`` the checksum must match."""
    digest, offset = _read_len_bytes(buf, 0)
    data, _ = _read_len_bytes(buf, offset)
    if verify and digest != hashlib.md5(data).digest():
        raise DataHashMismatchError()
    return SigInfo._decode(data)