"""Package installation requests: references, descriptors, creators.

Public API::

    from packlock.core.package import (
        DependencyMaterializer, ImageReference, PackageType, parse_reference,
    )
"""

from __future__ import annotations

from packlock.core.package.creator import (
    DirectoryPackageCreator,
    InMemoryPackageCreator,
    PackageCreator,
)
from packlock.core.package.materializer import DependencyMaterializer
from packlock.core.package.models import (
    ConfigurationPackage,
    PackageDescriptor,
    PackageType,
    ProviderPackage,
    new_package,
)
from packlock.core.package.reference import ImageReference, parse_reference, to_dns_label

__all__ = [
    "ConfigurationPackage",
    "DependencyMaterializer",
    "DirectoryPackageCreator",
    "ImageReference",
    "InMemoryPackageCreator",
    "PackageCreator",
    "PackageDescriptor",
    "PackageType",
    "ProviderPackage",
    "new_package",
    "parse_reference",
    "to_dns_label",
]
