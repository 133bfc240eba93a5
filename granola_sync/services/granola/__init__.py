"""
Granola module - API client and desktop app credentials.
"""

from granola_sync.services.granola.client import GranolaClient
from granola_sync.services.granola.credentials import CredentialProvider

__all__ = ["CredentialProvider", "GranolaClient"]
