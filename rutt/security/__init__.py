from .credential_manager import CredentialManager, KeyStore

__all__ = ["CredentialManager", "KeyStore"]
