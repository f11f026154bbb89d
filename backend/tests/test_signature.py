import hashlib

from scoreguard.services.anticheat import generate_signature, verify_signature


SECRET = 'unit-secret'


def test_signature_matches_canonical_string():
    sig = generate_signature('u1', 'snake', 500, 1700000000000, SECRET)
    expected = hashlib.sha256(b'u1-snake-500-1700000000000-unit-secret').hexdigest()
    assert sig == expected
    assert len(sig) == 64


def test_verify_accepts_valid_signature():
    sig = generate_signature('u1', 'snake', 500, 1700000000000, SECRET)
    assert verify_signature('u1', 'snake', 500, 1700000000000, sig, SECRET)


def test_integral_float_timestamp_signs_like_an_int():
    as_int = generate_signature('u1', 'snake', 500, 1700000000000, SECRET)
    as_float = generate_signature('u1', 'snake', 500, 1700000000000.0, SECRET)
    assert as_int == as_float


def test_any_field_change_invalidates():
    sig = generate_signature('u1', 'snake', 500, 1700000000000, SECRET)
    assert not verify_signature('u2', 'snake', 500, 1700000000000, sig, SECRET)
    assert not verify_signature('u1', 'tetris', 500, 1700000000000, sig, SECRET)
    assert not verify_signature('u1', 'snake', 501, 1700000000000, sig, SECRET)
    assert not verify_signature('u1', 'snake', 500, 1700000000001, sig, SECRET)
    assert not verify_signature('u1', 'snake', 500, 1700000000000, sig, 'other-secret')


def test_single_bit_flip_always_rejected():
    sig = generate_signature('u1', 'snake', 500, 1700000000000, SECRET)
    for i, ch in enumerate(sig):
        for bit in range(8):
            flipped = sig[:i] + chr(ord(ch) ^ (1 << bit)) + sig[i + 1:]
            assert not verify_signature('u1', 'snake', 500, 1700000000000, flipped, SECRET)


def test_fails_closed_on_bad_input():
    for bad in (None, '', 'abc', 12345, b'\x00' * 64, 'z' * 64):
        assert not verify_signature('u1', 'snake', 500, 1700000000000, bad, SECRET)
    sig = generate_signature('u1', 'snake', 500, 1700000000000, SECRET)
    assert not verify_signature('u1', 'snake', 500, 1700000000000, sig, '')
