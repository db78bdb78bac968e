"""
Encryption for store Admin API access tokens.
Uses Fernet symmetric encryption (AES-128-CBC).
"""
import logging
from cryptography.fernet import Fernet, InvalidToken

from ..config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


class TokenCipher:
    """Encrypts and decrypts store access tokens at rest."""

    def __init__(self, key: str = None):
        encryption_key = key or settings.encryption_key
        if not encryption_key:
            logger.warning("ENCRYPTION_KEY not set - store tokens use an ephemeral key (NOT SECURE FOR PRODUCTION)")
            encryption_key = Fernet.generate_key().decode()

        # ValueError here means a malformed key; main.lifespan builds the cipher at startup
        self.fernet = Fernet(encryption_key.encode() if isinstance(encryption_key, str) else encryption_key)

    def encrypt(self, plaintext: str) -> str:
        if not plaintext:
            return ""
        return self.fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt a stored access token.

        Raises:
            InvalidToken: If decryption fails (wrong key or corrupted data)
        """
        if not ciphertext:
            return ""

        try:
            return self.fernet.decrypt(ciphertext.encode()).decode()
        except InvalidToken as e:
            logger.error(f"Failed to decrypt store token: {e}")
            raise


# Singleton instance
_token_cipher = None


def get_token_cipher() -> TokenCipher:
    """Get the singleton token cipher."""
    global _token_cipher
    if _token_cipher is None:
        _token_cipher = TokenCipher()
    return _token_cipher
