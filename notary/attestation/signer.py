import base64
import json
from typing import Any

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

# DER headers of raw 32-byte private keys, as exported by ledger tooling.
_ED25519_DER_PREFIX = "302e020100300506032b657004220420"
_ECDSA_DER_PREFIX = "3030020100300706052b8104000a04220420"

SigningKey = Ed25519PrivateKey | ec.EllipticCurvePrivateKey


def canonical_json(payload: dict[str, Any]) -> bytes:
    """Sorted keys, no whitespace, UTF-8: the byte form that gets signed."""
    return json.dumps(
        payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


def _clean_hex(key_hex: str) -> str:
    cleaned = key_hex.strip().lower()
    if cleaned.startswith("0x"):
        cleaned = cleaned[2:]
    return cleaned


def _from_raw(cleaned: str, curve: str) -> SigningKey:
    try:
        raw = bytes.fromhex(cleaned)
    except ValueError as exc:
        raise ValueError(f"Signing key is not valid hex: {exc}") from exc
    if curve == "ed25519":
        return Ed25519PrivateKey.from_private_bytes(raw)
    return ec.derive_private_key(int.from_bytes(raw, "big"), ec.SECP256K1())


def _from_der(cleaned: str) -> SigningKey:
    try:
        key = serialization.load_der_private_key(bytes.fromhex(cleaned), password=None)
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise ValueError(f"Signing key is not a supported DER private key: {exc}") from exc
    if isinstance(key, Ed25519PrivateKey):
        return key
    if isinstance(key, ec.EllipticCurvePrivateKey) and isinstance(key.curve, ec.SECP256K1):
        return key
    raise ValueError("Signing key must be Ed25519 or ECDSA secp256k1")


class Signer:
    """Signs attestation statements with the service key.

    Ed25519 and ECDSA secp256k1 keys are supported, matching the two key
    types a ledger operator account can hold.
    """

    def __init__(self, private_key: SigningKey) -> None:
        self._private_key = private_key

    @classmethod
    def from_hex(cls, key_hex: str) -> "Signer":
        """Load a private key given in hex.

        DER-encoded keys carry their type. A bare 32-byte key is read as Ed25519.

        Raises:
            ValueError: if the key is malformed or of an unsupported type.
        """
        cleaned = _clean_hex(key_hex)
        if cleaned.startswith(_ED25519_DER_PREFIX):
            return cls(_from_raw(cleaned[len(_ED25519_DER_PREFIX) :], "ed25519"))
        if cleaned.startswith(_ECDSA_DER_PREFIX):
            return cls(_from_raw(cleaned[len(_ECDSA_DER_PREFIX) :], "ecdsa"))
        if len(cleaned) == 64:
            return cls(_from_raw(cleaned, "ed25519"))
        if len(cleaned) > 64:
            return cls(_from_der(cleaned))
        raise ValueError("Signing key must be a 32-byte private key in hex, raw or DER")

    @classmethod
    def for_operator(cls, key_hex: str, operator_public_key: str) -> "Signer":
        """Load the operator's private key and check it against its public key.

        A bare 32-byte key is tried as both Ed25519 and ECDSA secp256k1; the
        reading whose public key equals ``operator_public_key`` wins.

        Raises:
            ValueError: if no reading of the key matches the operator.
        """
        expected = _clean_hex(operator_public_key)
        cleaned = _clean_hex(key_hex)
        if len(cleaned) != 64:
            candidate = cls.from_hex(cleaned)
            if candidate.public_key_hex == expected:
                return candidate
        else:
            for curve in ("ed25519", "ecdsa"):
                try:
                    candidate = cls(_from_raw(cleaned, curve))
                except ValueError:
                    continue
                if candidate.public_key_hex == expected:
                    return candidate
        raise ValueError("Operator key does not match the operator account's public key")

    @classmethod
    def generate(cls) -> "Signer":
        return cls(Ed25519PrivateKey.generate())

    @property
    def algorithm(self) -> str:
        if isinstance(self._private_key, Ed25519PrivateKey):
            return "ed25519"
        return "ecdsa-secp256k1"

    @property
    def public_key_hex(self) -> str:
        """Raw 32-byte Ed25519 key, or the 33-byte compressed ECDSA point."""
        public_key = self._private_key.public_key()
        if isinstance(public_key, Ed25519PublicKey):
            raw = public_key.public_bytes(
                encoding=serialization.Encoding.Raw,
                format=serialization.PublicFormat.Raw,
            )
        else:
            raw = public_key.public_bytes(
                encoding=serialization.Encoding.X962,
                format=serialization.PublicFormat.CompressedPoint,
            )
        return raw.hex()

    def sign(self, payload: dict[str, Any]) -> str:
        """Base64 signature over the canonical JSON of ``payload``."""
        message = canonical_json(payload)
        if isinstance(self._private_key, Ed25519PrivateKey):
            signature = self._private_key.sign(message)
        else:
            signature = self._private_key.sign(message, ec.ECDSA(hashes.SHA256()))
        return base64.b64encode(signature).decode("ascii")

    @staticmethod
    def verify(public_key_hex: str, payload: dict[str, Any], signature: str) -> bool:
        raw = bytes.fromhex(_clean_hex(public_key_hex))
        message = canonical_json(payload)
        try:
            if len(raw) == 32:
                Ed25519PublicKey.from_public_bytes(raw).verify(
                    base64.b64decode(signature), message
                )
            else:
                ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), raw).verify(
                    base64.b64decode(signature), message, ec.ECDSA(hashes.SHA256())
                )
        except InvalidSignature:
            return False
        return True
