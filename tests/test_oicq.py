import hashlib
import io
import json
import struct
import urllib.error
from unittest import mock

import pytest
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from lagrangeqq.oicq import (
    TLV,
    Codec,
    EcdhSession,
    EncryptionMethod,
    Message,
    UnknownEncryptTypeError,
    UnknownFlagError,
    new_codec,
)
from lagrangeqq.tea import TeaCipher

RANDOM_KEY = bytes(range(16))


def _server_pair():
    private = ec.generate_private_key(ec.SECP256R1())
    public = private.public_key().public_bytes(Encoding.X962, PublicFormat.UncompressedPoint)
    return private, public


def _expected_share(private, session):
    peer = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), session.public_key)
    return hashlib.md5(private.exchange(ec.ECDH(), peer)[:16]).digest()


def test_default_session_shape():
    session = EcdhSession()
    assert session.svr_public_key_ver == 1
    assert len(session.public_key) == 65 and session.public_key[0] == 4
    assert len(session.share_key) == 16


def test_derive_agrees_with_server():
    private, public = _server_pair()
    session = EcdhSession(public)
    assert session.share_key == _expected_share(private, session)


def test_derive_rejects_bad_key():
    with pytest.raises(ValueError):
        EcdhSession(b"\x04\x01\x02")


def test_fetch_pub_key_updates_key():
    private, public = _server_pair()
    body = json.dumps({"PubKeyMeta": {"KeyVer": 2, "PubKey": public.hex()}}).encode()
    session = EcdhSession()
    with mock.patch("urllib.request.urlopen", return_value=io.BytesIO(body)):
        session.fetch_pub_key(10001)
    assert session.svr_public_key_ver == 2
    assert session.share_key == _expected_share(private, session)


def test_fetch_pub_key_failure_keeps_state():
    session = EcdhSession()
    before = (session.svr_public_key_ver, session.share_key, session.public_key)
    with mock.patch("urllib.request.urlopen", side_effect=urllib.error.URLError("down")):
        session.fetch_pub_key(10001)
    assert (session.svr_public_key_ver, session.share_key, session.public_key) == before


def test_new_codec_offline():
    with mock.patch("urllib.request.urlopen", side_effect=urllib.error.URLError("down")):
        codec = new_codec(10001)
    assert len(codec.random_key) == 16
    assert codec.ecdh.svr_public_key_ver == 1


def test_marshal_st():
    codec = Codec(random_key=RANDOM_KEY)
    data = codec.marshal(Message(uin=10001, command=2066, encryption_method=EncryptionMethod.ST, body=b"hello"))
    assert data[0] == 2 and data[-1] == 3
    assert struct.unpack(">H", data[1:3])[0] == len(data)
    assert struct.unpack(">HHHI", data[3:13]) == (8001, 2066, 1, 10001)
    assert data[14] == 0x45
    assert data[28:30] == b"\x01\x03"
    assert data[30:46] == RANDOM_KEY
    assert TeaCipher(RANDOM_KEY).decrypt(data[50:-1]) == b"hello"


def test_marshal_ecdh():
    codec = Codec(random_key=RANDOM_KEY)
    data = codec.marshal(Message(uin=10001, command=2064, body=b"payload"))
    assert data[14] == 0x87
    assert data[28:30] == b"\x02\x01"
    assert struct.unpack(">HHH", data[46:52]) == (0x0131, 1, 65)
    assert data[52:117] == codec.ecdh.public_key
    assert TeaCipher(codec.ecdh.share_key).decrypt(data[117:-1]) == b"payload"
    assert struct.unpack(">H", data[1:3])[0] == len(data)


def _response(encrypt_type, key, body, command=2064, uin=10001):
    head = b"\x02" + b"\x00\x00" + struct.pack(">HHHI", 8001, command, 1, uin)
    return head + bytes([3, encrypt_type, 0]) + TeaCipher(key).encrypt(body) + b"\x03"


def test_unmarshal_share_key():
    codec = Codec(random_key=RANDOM_KEY)
    message = codec.unmarshal(_response(0, codec.ecdh.share_key, b"result"))
    assert message.body == b"result"
    assert message.command == 2064
    assert message.uin == 10001


def test_unmarshal_session_ticket_key():
    codec = Codec(random_key=RANDOM_KEY)
    codec.wt_session_ticket_key = bytes(range(16, 32))
    message = codec.unmarshal(_response(3, codec.wt_session_ticket_key, b"ticketed"))
    assert message.body == b"ticketed"


def test_unmarshal_bad_flag():
    with pytest.raises(UnknownFlagError):
        Codec().unmarshal(b"\x01" + bytes(20))


def test_unmarshal_unknown_encrypt_type():
    codec = Codec()
    with pytest.raises(UnknownEncryptTypeError):
        codec.unmarshal(_response(7, codec.ecdh.share_key, b"x"))


def test_unmarshal_truncated():
    with pytest.raises(ValueError):
        Codec().unmarshal(b"\x02\x00")


def test_tlv_marshal():
    tlv = TLV(0x0102)
    tlv.append(b"ab", b"cde")
    assert tlv.marshal() == b"\x01\x02\x00\x02abcde"
    assert TLV(5).marshal() == b"\x00\x05\x00\x00"