"""Providers module - Model identity and storage location strategies."""

from tabreg_core.providers.identity import FixedID, IdentityProvider, UniqueID
from tabreg_core.providers.location import FixedDir, LocationProvider, TempDir

__all__ = [
    "IdentityProvider",
    "FixedID",
    "UniqueID",
    "LocationProvider",
    "FixedDir",
    "TempDir",
]
