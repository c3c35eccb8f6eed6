import base64
import hashlib

import bcrypt

from src.app.services.secret_hasher import ISecretHasher


class BcryptSecretHasher(ISecretHasher):
    """
    bcrypt digests for passwords and refresh tokens.

    Secrets are SHA-256 pre-hashed: signed refresh tokens are far longer than
    the 72 bytes bcrypt accepts.
    """

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    @staticmethod
    def _prehash(secret: str) -> bytes:
        return base64.b64encode(hashlib.sha256(secret.encode()).digest())

    def hash(self, secret: str) -> str:
        return bcrypt.hashpw(self._prehash(secret), bcrypt.gensalt(self.rounds)).decode()

    def verify(self, secret: str, digest: str) -> bool:
        try:
            return bcrypt.checkpw(self._prehash(secret), digest.encode())
        except (ValueError, AttributeError):
            # Not a bcrypt digest
            return False
