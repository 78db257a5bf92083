"""Storage module - persisted session credentials."""

from .credential_store import CredentialStore

__all__ = ['CredentialStore']
