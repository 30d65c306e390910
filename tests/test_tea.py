import pytest

from lagrangeqq.tea import TeaCipher

KEY = bytes(range(16))


@pytest.mark.parametrize("length", [0, 1, 5, 7, 8, 9, 15, 16, 17, 100, 1023])
def test_round_trip(length):
    cipher = TeaCipher(KEY)
    data = bytes((i * 7) & 0xFF for i in range(length))
    assert cipher.decrypt(cipher.encrypt(data)) == data


@pytest.mark.parametrize("length", [0, 3, 8, 13, 64])
def test_ciphertext_length_is_block_aligned(length):
    out = TeaCipher(KEY).encrypt(b"a" * length)
    assert len(out) % 8 == 0
    assert len(out) >= length + 10


def test_empty_input_gives_two_blocks():
    assert len(TeaCipher(KEY).encrypt(b"")) == 16


def test_each_key_recovers_its_own_plaintext():
    data = b"hello highway session"
    first = TeaCipher(KEY)
    second = TeaCipher(bytes(reversed(KEY)))
    assert first.decrypt(first.encrypt(data)) == data
    assert second.decrypt(second.encrypt(data)) == data


def test_short_key_behaves_as_zero_key():
    data = b"payload"
    encrypted = TeaCipher(bytes(16)).encrypt(data)
    assert TeaCipher(b"abc").decrypt(encrypted) == data
    assert TeaCipher(b"").decrypt(encrypted) == data


@pytest.mark.parametrize("bad", [b"", b"\x00" * 8, b"\x00" * 17, b"\x00" * 23])
def test_decrypt_rejects_bad_length(bad):
    with pytest.raises(ValueError):
        TeaCipher(KEY).decrypt(bad)


def test_repeated_encryptions_all_decrypt():
    cipher = TeaCipher(KEY)
    first = cipher.encrypt(b"stable")
    second = cipher.encrypt(b"stable")
    assert cipher.decrypt(first) == b"stable"
    assert cipher.decrypt(second) == b"stable"
    assert cipher.decrypt(first) == cipher.decrypt(second)