import json

import pytest

from lagrangeqq.auth import (
    APP_LIST,
    AppInfo,
    DataHashMismatchError,
    DeviceInfo,
    SigInfo,
    load_or_save_device,
    new_device_info,
    unmarshal_app_info,
    unmarshal_sig_info,
)


def test_app_info_round_trip():
    app = APP_LIST["linux"]["3.2.15-30366"]
    restored = unmarshal_app_info(app.marshal())
    assert restored == app


def test_app_info_json_keys():
    app = APP_LIST["windows"]["9.9.15-28060"]
    obj = json.loads(app.marshal())
    assert obj["package_sign"] == "V1_WIN_NQ_9.9.15-28060_GW_B"
    assert obj["app_id"] == 1600001604
    assert obj["build_version"] == 28060
    restored = unmarshal_app_info(json.dumps(obj).encode())
    assert restored.package_sign == "V1_WIN_NQ_9.9.15-28060_GW_B"
    assert restored.app_id == 1600001604


def test_app_list_versions_consistent():
    for profiles in APP_LIST.values():
        for version, app in profiles.items():
            assert app.current_version == version
            assert str(app.build_version) == version.rsplit("-", 1)[1]


def test_unmarshal_app_info_ignores_unknown_and_defaults():
    app = unmarshal_app_info(b'{"os":"Linux","extra":1}')
    assert app == AppInfo(os="Linux")


@pytest.mark.parametrize("data", [b"not json", b"[1,2]"])
def test_unmarshal_app_info_invalid(data):
    with pytest.raises(ValueError):
        unmarshal_app_info(data)


def test_new_device_info_deterministic():
    a = new_device_info(10000)
    b = new_device_info(10000)
    assert a == b
    assert len(a.guid) == 32
    assert a.guid == a.guid.upper()
    assert a.device_name == "Lagrange-" + a.guid[:8]
    assert a.system_kernel.endswith(a.kernel_version)


def test_new_device_info_differs_by_uin():
    assert new_device_info(1).guid != new_device_info(2).guid


def test_device_save_and_load(tmp_path):
    path = tmp_path / "device.json"
    device = DeviceInfo(guid="AB" * 16, device_name="Lagrange-TEST", system_kernel="k 1", kernel_version="1")
    device.save(path)
    assert load_or_save_device(path) == device


def test_load_or_save_creates_missing(tmp_path):
    path = tmp_path / "device.json"
    created = load_or_save_device(path)
    assert path.exists()
    assert load_or_save_device(path) == created


def test_load_or_save_replaces_invalid(tmp_path):
    path = tmp_path / "device.json"
    path.write_text("garbage")
    created = load_or_save_device(path)
    assert json.loads(path.read_text())["guid"] == created.guid


def _sample_sig():
    return SigInfo(
        uin=123,
        sequence=7,
        uid="u_sample",
        tgt=b"\x01\x02",
        d2=b"\x03",
        d2_key=bytes(range(16)),
        cookies="cookie",
        captcha_info=("a", "b", "c"),
        nickname="nick",
        age=20,
        gender=1,
    )


def test_sig_round_trip():
    sig = _sample_sig()
    assert unmarshal_sig_info(sig.marshal(), True) == sig


def test_sig_marshal_starts_with_md5_length():
    assert _sample_sig().marshal()[:2] == b"\x00\x10"


def test_sig_hash_mismatch():
    data = bytearray(_sample_sig().marshal())
    data[2] ^= 0xFF
    with pytest.raises(DataHashMismatchError):
        unmarshal_sig_info(bytes(data), True)
    assert unmarshal_sig_info(bytes(data), False) == _sample_sig()


def test_sig_truncated():
    with pytest.raises(ValueError):
        unmarshal_sig_info(_sample_sig().marshal()[:10], True)


def test_clear_session():
    sig = _sample_sig()
    sig.clear_session()
    assert sig.d2 == b""
    assert sig.tgt == b""
    assert sig.d2_key == bytes(16)
    assert sig.uin == 123