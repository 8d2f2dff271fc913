"""
ClinicFlow Platform - feature module catalog and entitlement engine.

This package provides:
- The feature module catalog (definitions, integrity checks, queries)
- Dependency resolution over the module graph
- Pricing and permission aggregation for a tenant's module set
- Recommendations and module comparisons for upgrade decisions
"""

__version__ = "1.0.0"
__author__ = "ClinicFlow Team"


def get_version() -> str:
    """Get platform version."""
    return __version__
