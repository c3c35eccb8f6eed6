from abc import ABC, abstractmethod


class ISecretHasher(ABC):
    """One-way hashing of passwords and refresh tokens - application layer"""

    @abstractmethod
    def hash(self, secret: str) -> str:
        """Return a salted digest of secret"""
        pass

    @abstractmethod
    def verify(self, secret: str, digest: str) -> bool:
        """Constant-time check of secret against digest; False on malformed digests"""
        pass
