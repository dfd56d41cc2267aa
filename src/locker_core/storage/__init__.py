"""Identity, metadata and namespace storage for the locker."""

from .identity import IdentityStore
from .metadata import MetadataStore
from .namespace import NamespaceResolver, validate_original_name, validate_username

__all__ = [
    "IdentityStore",
    "MetadataStore",
    "NamespaceResolver",
    "validate_original_name",
    "validate_username",
]
