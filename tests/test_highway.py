import struct

import pytest

from lagrangeqq.highway import (
    MAX_IDLE_CONN,
    Addr,
    PersistConn,
    Session,
    Transaction,
    frame,
)
from lagrangeqq.tea import TeaCipher


def test_frame_layout():
    assert frame(b"ab", b"xyz") == b"\x28\x00\x00\x00\x02\x00\x00\x00\x03abxyz\x29"


def test_frame_without_body():
    data = frame(b"head", None)
    assert data[0] == 0x28 and data[-1] == 0x29
    assert struct.unpack(">II", data[1:9]) == (4, 0)
    assert data[9:-1] == b"head"


def test_addr_string_and_ip():
    addr = Addr(0x7F000001, 8080)
    assert str(addr) == "127.0.0.1:8080"
    assert str(addr.as_ip()) == "127.0.0.1"


def test_addr_empty():
    assert Addr().empty()
    assert Addr(0x7F000001, 0).empty()
    assert not Addr(0x7F000001, 80).empty()


def test_next_seq_steps_by_two():
    session = Session()
    assert [session.next_seq() for _ in range(3)] == [2, 4, 6]


def test_addresses_round_robin():
    session = Session()
    session.append_addr(0x01020304, 80)
    session.append_addr(0x05060708, 443)
    assert session.addr_length() == 2
    picked = [session.next_addr() for _ in range(3)]
    assert picked == [Addr(0x01020304, 80), Addr(0x05060708, 443), Addr(0x01020304, 80)]


def test_next_addr_without_servers():
    with pytest.raises(IndexError):
        Session().next_addr()


def test_idle_pool_sorted_by_ping():
    session = Session()
    addr = Addr(0x01020304, 80)
    for ping in (30, 10, 20):
        session.put_idle_conn(PersistConn(conn=object(), addr=addr, ping=ping))
    got = [session.get_idle_conn().ping for _ in range(3)]
    assert got == [10, 20, 30]
    assert session.get_idle_conn() is None


def test_idle_pool_drops_slowest():
    session = Session()
    addr = Addr(0x01020304, 80)
    for ping in range(MAX_IDLE_CONN + 1, 0, -1):
        session.put_idle_conn(PersistConn(conn=object(), addr=addr, ping=ping))
    pings = []
    while (pc := session.get_idle_conn()) is not None:
        pings.append(pc.ping)
    assert pings == list(range(1, MAX_IDLE_CONN + 1))


def test_put_bad_conn():
    session = Session()
    with pytest.raises(ValueError):
        session.put_idle_conn(PersistConn(conn=None, addr=Addr(1, 1)))
    with pytest.raises(ValueError):
        session.put_idle_conn(PersistConn(conn=object(), addr=Addr()))


def test_transaction_encrypt_disabled_keeps_ext():
    trans = Transaction(ext=b"extension")
    trans.encrypt(b"")
    assert trans.ext == b"extension"


def test_transaction_encrypt_needs_key():
    trans = Transaction(ext=b"extension", encrypt_ext=True)
    with pytest.raises(ValueError):
        trans.encrypt(b"")


def test_transaction_encrypt_round_trip():
    session_key = bytes(range(16))
    trans = Transaction(ext=b"extension", encrypt_ext=True)
    trans.encrypt(session_key)
    assert trans.ext != b"extension"
    assert TeaCipher(session_key).decrypt(trans.ext) == b"extension"