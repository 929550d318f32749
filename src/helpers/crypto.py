"""AES helpers.

- `encrypt_aes256` / `decrypt_aes256`: authenticated string encryption
  (AES-GCM), hex encoded
- `KeyUtil`: reversible API keys carrying a user id and a scope (AES-CTR),
  URL-safe base64 encoded

Keys are strings whose UTF-8 encoding must be 16, 24 or 32 bytes long
(AES-128, AES-192 or AES-256).
"""

import base64
import binascii
import os
import re

import attrs
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from foundation.exceptions import DecryptionError, InvalidKeyError

VALID_KEY_LENGTHS = (16, 24, 32)
GCM_NONCE_SIZE = 12
CTR_NONCE_SIZE = 16

# URL-safe alphabet only; standard "+" and "/" are rejected
_URLSAFE_B64 = re.compile(r"[A-Za-z0-9_-]*={0,2}")


def _key_bytes(key: str | bytes) -> bytes:
    raw = key.encode("utf-8") if isinstance(key, str) else bytes(key)
    if len(raw) not in VALID_KEY_LENGTHS:
        raise InvalidKeyError("invalid secret key length: must be 16, 24, or 32 bytes")
    return raw


def encrypt_aes256(plaintext: str, key: str | bytes) -> str:
    """Encrypt ``plaintext`` with AES-GCM.

    Returns:
        Lowercase hex of ``nonce || ciphertext || tag`` (12-byte random nonce,
        16-byte tag).

    Raises:
        InvalidKeyError: If the key is not 16, 24 or 32 bytes.
    """
    aesgcm = AESGCM(_key_bytes(key))
    nonce = os.urandom(GCM_NONCE_SIZE)
    sealed = aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
    return (nonce + sealed).hex()


def decrypt_aes256(ciphertext: str, key: str | bytes) -> str:
    """Reverse `encrypt_aes256`.

    Raises:
        InvalidKeyError: If the key is not 16, 24 or 32 bytes.
        DecryptionError: If the input is not hex, too short, or fails
            authentication (wrong key or tampered data).
    """
    aesgcm = AESGCM(_key_bytes(key))
    try:
        data = bytes.fromhex(ciphertext)
    except ValueError as e:
        raise DecryptionError("encrypted data is not valid hex") from e
    if len(data) < GCM_NONCE_SIZE:
        raise DecryptionError("encrypted data too short")

    try:
        plaintext = aesgcm.decrypt(data[:GCM_NONCE_SIZE], data[GCM_NONCE_SIZE:], None)
    except InvalidTag as e:
        raise DecryptionError("unable to authenticate encrypted data") from e
    return plaintext.decode("utf-8")


@attrs.define(frozen=True, slots=True)
class UserData:
    user_id: str
    scope: str


class KeyUtil:
    """Issue and read API keys of the form ``encrypt("<user_id>:<scope>")``.

    Args:
        secret_key: AES key, 16, 24 or 32 bytes once UTF-8 encoded.

    Raises:
        InvalidKeyError: If the key length is invalid.

    Example:
        ```python
        keys = KeyUtil("0123456789abcdef0123456789abcdef")
        token = keys.encrypt_api_key(UserData("user-1", "read"))
        keys.decrypt_api_key(token)  # UserData(user_id='user-1', scope='read')
        ```

    Note:
        CTR mode is not authenticated. A token decrypted with the wrong key
        is rejected only because its plaintext does not have the expected
        shape.
    """

    def __init__(self, secret_key: str | bytes) -> None:
        self._key = _key_bytes(secret_key)

    def _cipher(self, nonce: bytes) -> Cipher:
        return Cipher(algorithms.AES(self._key), modes.CTR(nonce))

    def encrypt_api_key(self, user_data: UserData) -> str:
        combined = f"{user_data.user_id}:{user_data.scope}".encode()
        nonce = os.urandom(CTR_NONCE_SIZE)
        encryptor = self._cipher(nonce).encryptor()
        ciphertext = encryptor.update(combined) + encryptor.finalize()
        return base64.urlsafe_b64encode(nonce + ciphertext).decode("ascii")

    def decrypt_api_key(self, encrypted_key: str) -> UserData:
        """Recover the `UserData` inside an API key.

        Raises:
            DecryptionError: If the key is not URL-safe base64, is shorter
                than the nonce, or does not decrypt to ``user_id:scope``.
        """
        if not _URLSAFE_B64.fullmatch(encrypted_key):
            raise DecryptionError("encrypted key is not valid base64")
        try:
            data = base64.urlsafe_b64decode(encrypted_key)
        except (binascii.Error, ValueError) as e:
            raise DecryptionError("encrypted key is not valid base64") from e

        if len(data) < CTR_NONCE_SIZE:
            raise DecryptionError("encrypted data too short")

        nonce, ciphertext = data[:CTR_NONCE_SIZE], data[CTR_NONCE_SIZE:]
        decryptor = self._cipher(nonce).decryptor()
        plaintext = decryptor.update(ciphertext) + decryptor.finalize()

        try:
            decoded = plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecryptionError("decrypted data has an invalid format") from e

        parts = decoded.split(":")
        if len(parts) != 2:
            raise DecryptionError("decrypted data has an invalid format")
        return UserData(user_id=parts[0], scope=parts[1])
