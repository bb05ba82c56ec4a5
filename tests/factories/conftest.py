"""Factory configuration and exports.

This module exports all factories for convenient importing in tests.
"""

from tests.factories.auth import AuthenticatedIdentityFactory, ClientIdentityFactory
from tests.factories.settings import SettingsFactory


__all__ = [
    "AuthenticatedIdentityFactory",
    "ClientIdentityFactory",
    "SettingsFactory",
]
