"""KeyManager: encrypted-at-rest key custody and the signing primitive.

Every :meth:`KeyManager.create_key` writes exactly one key record (public
handle plus encrypted private half). :meth:`KeyManager.sign` has no durable
side effect: it loads the ciphertext, decrypts it, signs, and lets the
plaintext go out of scope before returning. Decrypted keys are never
cached.
"""
from __future__ import annotations

import logging

from vc_agent.errors import UnsupportedKeyType
from vc_agent.keys.key import Key, KeyType
from vc_agent.kms.local import LocalKeyManagementSystem, SigningAlgorithm
from vc_agent.kms.secret_box import SecretBox
from vc_agent.store.key_store import KeyStore, PrivateKeyStore

logger = logging.getLogger(__name__)


class KeyManager:
    """Create keys and sign with them.

    Parameters
    ----------
    key_store:
        Table of public key handles.
    private_key_store:
        Table of encrypted private halves.
    secret_box:
        Encrypts private keys with the process-wide KMS secret.
    kms:
        Key algorithms. Defaults to :class:`LocalKeyManagementSystem`.

    Example
    -------
    ::

        manager = KeyManager(KeyStore(db), PrivateKeyStore(db), SecretBox(secret))
        key = manager.create_key(KeyType.ED25519)
        signature = manager.sign(key.key_id, b"payload", "EdDSA")
    """

    def __init__(
        self,
        key_store: KeyStore,
        private_key_store: PrivateKeyStore,
        secret_box: SecretBox,
        kms: LocalKeyManagementSystem | None = None,
    ) -> None:
        self._keys = key_store
        self._private_keys = private_key_store
        self._box = secret_box
        self._kms = kms or LocalKeyManagementSystem()

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_key(self, key_type: KeyType | str) -> Key:
        """Generate, encrypt and persist a new keypair.

        Parameters
        ----------
        key_type:
            A :class:`KeyType` or its string value (``"Secp256k1"``,
            ``"Ed25519"``).

        Returns
        -------
        Key
            The public handle of the stored key.

        Raises
        ------
        UnsupportedKeyType
            If *key_type* is unknown.
        StorageError
            If the key cannot be persisted.
        """
        try:
            resolved_type = KeyType(key_type)
        except ValueError as exc:
            raise UnsupportedKeyType(key_type) from exc

        private_bytes, public_bytes = self._kms.generate_keypair(resolved_type)
        key = Key(
            key_id=public_bytes.hex(),
            type=resolved_type,
            public_key=public_bytes,
            kms=self._kms.name,
        )
        self._keys.save(key, self._box.encrypt(private_bytes))
        logger.info("Created %s key %s", resolved_type.value, key.key_id)
        return key

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, key_id: str) -> Key:
        """Return the public handle for *key_id* (raises ``KeyNotFound``)."""
        return self._keys.get(key_id)

    def list_keys(self) -> list[Key]:
        """Return every managed key in creation order."""
        return self._keys.list_keys()

    # ------------------------------------------------------------------
    # Signing
    # ------------------------------------------------------------------

    def sign(
        self,
        key_id: str,
        payload: bytes,
        algorithm: SigningAlgorithm | str,
    ) -> bytes:
        """Sign *payload* with the private half of *key_id*.

        Raises
        ------
        KeyNotFound
            If the key or its private half is missing.
        DecryptionFailed
            If the KMS secret does not open the stored private key.
        UnsupportedFormat
            If *algorithm* is unknown or does not fit the key type.
        """
        key = self._keys.get(key_id)
        private_bytes = self._box.decrypt(self._private_keys.get_encrypted(key_id))
        try:
            return self._kms.sign(key.type, private_bytes, payload, algorithm)
        finally:
            del private_bytes


__all__ = ["KeyManager"]
