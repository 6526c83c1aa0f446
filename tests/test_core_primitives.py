"""Tests for the digest primitive, hex codec, comparator and secret key."""

import hmac

import pytest

from hmacguard.common.errors import ConfigurationError
from hmacguard.core import hexcodec
from hmacguard.core.compare import constant_time_equals
from hmacguard.core.digest import (
    DIGEST_SIZE,
    CryptographyBackend,
    HashlibBackend,
    compute,
    get_backend,
)
from hmacguard.core.keys import SecretKey

# RFC 4231, test case 2
RFC4231_KEY = b"Jefe"
RFC4231_DATA = b"what do ya want for nothing?"
RFC4231_MAC = "5bdcc146bf60754e6a042426089575c75a003f089d2739839dec58b964ec3843"

BACKENDS = [HashlibBackend(), CryptographyBackend()]


class TestDigestPrimitive:
    """Tests for HMAC-SHA256 backends."""

    @pytest.mark.parametrize("backend", BACKENDS, ids=lambda b: b.name)
    def test_known_vector(self, backend):
        """Both backends match the RFC 4231 vector."""
        mac = compute(SecretKey(RFC4231_KEY), RFC4231_DATA, backend)
        assert mac.hex() == RFC4231_MAC

    @pytest.mark.parametrize("backend", BACKENDS, ids=lambda b: b.name)
    def test_incremental_equals_single_pass(self, backend):
        """Feeding chunks is equivalent to one concatenated input."""
        key = SecretKey(RFC4231_KEY)
        ctx = backend.new(key)
        ctx.update(b"what do ya want ")
        ctx.update(b"")
        ctx.update(b"for nothing?")
        assert ctx.finalize() == compute(key, RFC4231_DATA, backend)

    def test_output_is_32_bytes(self):
        """Digests are always 32 bytes."""
        key = SecretKey(b"k")
        for data in (b"", b"x", b"y" * 10_000):
            assert len(compute(key, data)) == DIGEST_SIZE

    def test_deterministic(self):
        """Same secret and data give the same digest."""
        key = SecretKey(b"secret")
        assert compute(key, b"data") == compute(key, b"data")

    def test_key_sensitivity(self):
        """Different secrets give different digests."""
        assert compute(SecretKey(b"a"), b"data") != compute(SecretKey(b"b"), b"data")

    def test_get_backend_default(self):
        """Default backend is the hashlib one."""
        assert get_backend().name == "hashlib"
        assert get_backend("cryptography").name == "cryptography"

    def test_get_backend_unknown(self):
        """Unknown backend names are a configuration error."""
        with pytest.raises(ConfigurationError):
            get_backend("md5")


class TestHexCodec:
    """Tests for hex encoding and decoding."""

    def test_encode_lowercase(self):
        """Encoding is lowercase without separators."""
        assert hexcodec.encode(b"\x00\xab\xff") == "00abff"

    def test_encode_empty(self):
        assert hexcodec.encode(b"") == ""

    def test_round_trip(self):
        """decode(encode(b)) == b."""
        data = bytes(range(256))
        assert hexcodec.decode(hexcodec.encode(data)) == data

    def test_decode_accepts_uppercase(self):
        """Decoding accepts either case by default."""
        assert hexcodec.decode("ABff") == b"\xab\xff"

    def test_decode_lowercase_only_rejects_uppercase(self):
        with pytest.raises(hexcodec.MalformedHex):
            hexcodec.decode("ABff", lowercase_only=True)

    @pytest.mark.parametrize("value", ["abc", "0"])
    def test_decode_odd_length(self, value):
        """Odd-length input is rejected."""
        with pytest.raises(hexcodec.MalformedHex):
            hexcodec.decode(value)

    @pytest.mark.parametrize("value", ["zz", "0x", "a b ", " 0a0", "é0"])
    def test_decode_invalid_characters(self, value):
        """Non-hex characters, including whitespace, are rejected."""
        with pytest.raises(hexcodec.MalformedHex):
            hexcodec.decode(value)

    def test_malformed_hex_is_value_error(self):
        """MalformedHex can be caught as ValueError."""
        with pytest.raises(ValueError):
            hexcodec.decode("g0")


class TestConstantTimeEquals:
    """Tests for the constant-time comparator."""

    def test_equal(self):
        assert constant_time_equals(b"abc", b"abc") is True

    def test_empty(self):
        assert constant_time_equals(b"", b"") is True

    def test_differs_in_last_byte(self):
        assert constant_time_equals(b"abc", b"abd") is False

    def test_differs_in_first_byte(self):
        assert constant_time_equals(b"xbc", b"abc") is False

    def test_different_lengths(self):
        """Different lengths are unequal even with a shared prefix."""
        assert constant_time_equals(b"abc", b"abcd") is False
        assert constant_time_equals(b"abcd", b"abc") is False


class TestSecretKey:
    """Tests for SecretKey."""

    def test_from_text_is_utf8(self):
        assert SecretKey.from_text("clé").material == "clé".encode("utf-8")

    def test_coerce(self):
        """coerce accepts keys, text and bytes-like values."""
        key = SecretKey(b"abc")
        assert SecretKey.coerce(key) is key
        assert SecretKey.coerce("abc") == key
        assert SecretKey.coerce(b"abc") == key
        assert SecretKey.coerce(bytearray(b"abc")) == key
        assert SecretKey.coerce(memoryview(b"abc")) == key

    def test_bytearray_is_copied(self):
        """Mutating the source buffer does not change the key."""
        source = bytearray(b"abc")
        key = SecretKey(source)
        source[0] = ord("z")
        assert key.material == b"abc"

    def test_immutable(self):
        key = SecretKey(b"abc")
        with pytest.raises(AttributeError):
            key.material = b"other"  # type: ignore[misc]

    def test_repr_hides_material(self):
        """The key never appears in its repr."""
        key = SecretKey.from_text("super-secret")
        assert "super-secret" not in repr(key)
        assert "12 bytes" in repr(key)

    def test_empty_key_allowed(self):
        assert len(SecretKey(b"")) == 0

    @pytest.mark.parametrize("material", [32, None, "text", [1, 2, 3]])
    def test_rejects_non_bytes_material(self, material):
        """Integers and other non-bytes values are not silently converted."""
        with pytest.raises(TypeError):
            SecretKey(material)  # type: ignore[arg-type]

    def test_coerce_rejects_int(self):
        with pytest.raises(TypeError):
            SecretKey.coerce(32)  # type: ignore[arg-type]

    def test_equality_uses_compare_digest(self, monkeypatch):
        """Keys are compared with hmac.compare_digest."""
        calls = []
        real = hmac.compare_digest

        def spy(a, b):
            calls.append((a, b))
            return real(a, b)

        monkeypatch.setattr(hmac, "compare_digest", spy)

        assert SecretKey(b"abc") == SecretKey(b"abc")
        assert SecretKey(b"abc") != SecretKey(b"abd")
        assert len(calls) == 2
        assert SecretKey(b"abc") != b"abc"

    def test_equal_keys_hash_equal(self):
        assert hash(SecretKey(b"abc")) == hash(SecretKey.from_text("abc"))
