"""
Client-side sealing for payloads sent through the relay.

The relay itself never calls into this module: ``encryptedData`` and file
chunks stay opaque strings on the server side.
"""

import os
from typing import Tuple

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import x25519
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

HKDF_INFO = b"the-line-relay-v1"
KEY_SIZE = 32
NONCE_SIZE = 12

# ---------- KEYS ----------

def _raw(public_key: x25519.X25519PublicKey) -> bytes:
    return public_key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def generate_keypair() -> Tuple[bytes, str]:
    """
    New X25519 keypair → (raw private bytes, public key as hex)
    The hex public key is what gets registered as the journalist key.
    """
    private_key = x25519.X25519PrivateKey.generate()
    private_bytes = private_key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return private_bytes, _raw(private_key.public_key()).hex()


def derive_shared_key(private_key: x25519.X25519PrivateKey, peer_public_bytes: bytes, salt: bytes) -> bytes:
    """
    X25519 + HKDF → 32-byte AES-256 key
    """
    peer_public_key = x25519.X25519PublicKey.from_public_bytes(peer_public_bytes)
    shared_secret = private_key.exchange(peer_public_key)

    return HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=salt,
        info=HKDF_INFO,
    ).derive(shared_secret)


# ---------- SEALING ----------

def seal(recipient_public_hex: str, plaintext: bytes) -> str:
    """
    Encrypt for a recipient public key with a throwaway sender key.
    Output hex: ephemeral public (32) + nonce (12) + ciphertext + tag (16)
    """
    recipient_public = bytes.fromhex(recipient_public_hex)
    ephemeral = x25519.X25519PrivateKey.generate()
    ephemeral_public = _raw(ephemeral.public_key())

    key = derive_shared_key(ephemeral, recipient_public, salt=ephemeral_public + recipient_public)
    nonce = os.urandom(NONCE_SIZE)
    ciphertext = AESGCM(key).encrypt(nonce, plaintext, ephemeral_public)
    return (ephemeral_public + nonce + ciphertext).hex()


def open_sealed(private_key_bytes: bytes, sealed_hex: str) -> bytes:
    """
    Decrypt a payload produced by ``seal``. Raises InvalidTag on tampering.
    """
    payload = bytes.fromhex(sealed_hex)
    if len(payload) < KEY_SIZE + NONCE_SIZE + 16:
        raise ValueError("Sealed payload too short")

    ephemeral_public = payload[:KEY_SIZE]
    nonce = payload[KEY_SIZE:KEY_SIZE + NONCE_SIZE]
    ciphertext = payload[KEY_SIZE + NONCE_SIZE:]

    private_key = x25519.X25519PrivateKey.from_private_bytes(private_key_bytes)
    own_public = _raw(private_key.public_key())
    key = derive_shared_key(private_key, ephemeral_public, salt=ephemeral_public + own_public)
    return AESGCM(key).decrypt(nonce, ciphertext, ephemeral_public)
