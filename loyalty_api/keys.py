"""
Sui key and address utilities.

Supports Ed25519 keys in the `suiprivkey` (Bech32) format and the legacy
base64 keystore format.
"""

import base64
import binascii
import hashlib
import re
from typing import Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from .errors import InvalidKeyError

# Bech32 charset
BECH32_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"

SUI_PRIVATE_KEY_PREFIX = "suiprivkey"

# Signature scheme flag for Ed25519
ED25519_FLAG = 0x00

# Intent prefix for TransactionData: scope, version, app id
TRANSACTION_INTENT = bytes([0, 0, 0])

SUI_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{64}$")


def is_valid_sui_address(address: object) -> bool:
    """Check for a 0x-prefixed, 64 hex digit address or object ID."""
    return isinstance(address, str) and SUI_ADDRESS_RE.fullmatch(address) is not None


def _bech32_polymod(values: list[int]) -> int:
    """Internal Bech32 polymod calculation."""
    GEN = [0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3]
    chk = 1
    for v in values:
        b = chk >> 25
        chk = ((chk & 0x1FFFFFF) << 5) ^ v
        for i in range(5):
            if (b >> i) & 1:
                chk ^= GEN[i]
    return chk


def _bech32_hrp_expand(hrp: str) -> list[int]:
    """Expand HRP for checksum calculation."""
    return [ord(c) >> 5 for c in hrp] + [0] + [ord(c) & 31 for c in hrp]


def _bech32_create_checksum(hrp: str, data: list[int]) -> list[int]:
    values = _bech32_hrp_expand(hrp) + data
    polymod = _bech32_polymod(values + [0] * 6) ^ 1
    return [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]


def encode_bech32(hrp: str, data: list[int]) -> str:
    """Encode 5-bit data with a Bech32 checksum."""
    combined = data + _bech32_create_checksum(hrp, data)
    return hrp + "1" + "".join(BECH32_CHARSET[d] for d in combined)


def decode_bech32(value: str) -> Optional[tuple[str, list[int]]]:
    """
    Decode a bech32 string.

    Returns (hrp, data) or None if invalid.
    """
    if any(ord(c) < 33 or ord(c) > 126 for c in value):
        return None

    if value.lower() != value and value.upper() != value:
        return None

    value = value.lower()
    pos = value.rfind("1")
    if pos < 1 or pos + 7 > len(value):
        return None

    hrp = value[:pos]
    data_part = value[pos + 1 :]

    if not all(c in BECH32_CHARSET for c in data_part):
        return None

    data = [BECH32_CHARSET.index(c) for c in data_part]

    if _bech32_polymod(_bech32_hrp_expand(hrp) + data) != 1:
        return None

    return hrp, data[:-6]  # Remove checksum


def _convertbits(data: bytes | list[int], frombits: int, tobits: int, pad: bool = True) -> Optional[list[int]]:
    """Convert between bit sizes."""
    acc = 0
    bits = 0
    ret = []
    maxv = (1 << tobits) - 1
    max_acc = (1 << (frombits + tobits - 1)) - 1

    for value in data:
        if value < 0 or (value >> frombits):
            return None
        acc = ((acc << frombits) | value) & max_acc
        bits += frombits
        while bits >= tobits:
            bits -= tobits
            ret.append((acc >> bits) & maxv)

    if pad:
        if bits:
            ret.append((acc << (tobits - bits)) & maxv)
    elif bits >= frombits or ((acc << (tobits - bits)) & maxv):
        return None

    return ret


def encode_sui_private_key(seed: bytes) -> str:
    """Encode a 32-byte Ed25519 seed as `suiprivkey1...`."""
    if len(seed) != 32:
        raise InvalidKeyError(f"Ed25519 seed must be 32 bytes, got {len(seed)}")
    data = _convertbits(bytes([ED25519_FLAG]) + seed, 8, 5)
    return encode_bech32(SUI_PRIVATE_KEY_PREFIX, data)


def decode_sui_private_key(value: str) -> bytes:
    """
    Decode a `suiprivkey1...` string.

    Returns the 32-byte Ed25519 seed.
    """
    result = decode_bech32(value.strip())
    if result is None:
        raise InvalidKeyError("Invalid suiprivkey encoding")

    hrp, data = result
    if hrp != SUI_PRIVATE_KEY_PREFIX:
        raise InvalidKeyError(f"Unexpected private key prefix: {hrp}")

    decoded = _convertbits(data, 5, 8, False)
    if decoded is None or len(decoded) != 33:
        raise InvalidKeyError("Invalid suiprivkey payload length")

    if decoded[0] != ED25519_FLAG:
        raise InvalidKeyError(f"Unsupported signature scheme flag: {decoded[0]:#04x}")

    return bytes(decoded[1:])


def decode_legacy_private_key(value: str) -> bytes:
    """
    Decode a legacy base64 private key.

    Accepts a 32-byte seed, flag + seed (33 bytes) or seed + public key (64 bytes).
    Returns the 32-byte Ed25519 seed.
    """
    try:
        raw = base64.b64decode(value.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidKeyError(f"Invalid base64 private key: {e}") from e

    if len(raw) == 32:
        return raw

    if len(raw) == 33:
        if raw[0] != ED25519_FLAG:
            raise InvalidKeyError(f"Unsupported signature scheme flag: {raw[0]:#04x}")
        return raw[1:]

    if len(raw) == 64:
        seed, public_key = raw[:32], raw[32:]
        if SuiKeypair(seed).public_key_bytes() != public_key:
            raise InvalidKeyError("Provided secret key does not match its public key")
        return seed

    raise InvalidKeyError(f"Wrong private key size: expected 32, 33 or 64 bytes, got {len(raw)}")


def public_key_to_address(public_key: bytes) -> str:
    """Derive a Sui address: blake2b-256(flag || public key)."""
    digest = hashlib.blake2b(bytes([ED25519_FLAG]) + public_key, digest_size=32).digest()
    return f"0x{digest.hex()}"


class SuiKeypair:
    """
    Ed25519 keypair used to sign Sui transactions.
    """

    def __init__(self, seed: bytes):
        if len(seed) != 32:
            raise InvalidKeyError(f"Ed25519 seed must be 32 bytes, got {len(seed)}")
        self._seed = seed
        self._private_key = Ed25519PrivateKey.from_private_bytes(seed)

    @classmethod
    def generate(cls) -> "SuiKeypair":
        """Create a fresh random keypair."""
        private_key = Ed25519PrivateKey.generate()
        seed = private_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return cls(seed)

    @classmethod
    def from_private_key(cls, value: str) -> "SuiKeypair":
        """Load from `suiprivkey1...` or legacy base64 key material."""
        if not value:
            raise InvalidKeyError("Private key is empty")
        if value.strip().lower().startswith(SUI_PRIVATE_KEY_PREFIX):
            return cls(decode_sui_private_key(value))
        return cls(decode_legacy_private_key(value))

    @property
    def public_key(self) -> Ed25519PublicKey:
        return self._private_key.public_key()

    def public_key_bytes(self) -> bytes:
        return self.public_key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    def to_sui_address(self) -> str:
        return public_key_to_address(self.public_key_bytes())

    def export_private_key(self) -> str:
        """Export as `suiprivkey1...`."""
        return encode_sui_private_key(self._seed)

    def sign_transaction(self, tx_bytes: bytes) -> str:
        """
        Sign transaction bytes with the TransactionData intent.

        Returns the serialized signature as base64(flag || signature || public key).
        """
        digest = hashlib.blake2b(TRANSACTION_INTENT + tx_bytes, digest_size=32).digest()
        signature = self._private_key.sign(digest)
        serialized = bytes([ED25519_FLAG]) + signature + self.public_key_bytes()
        return base64.b64encode(serialized).decode("ascii")
