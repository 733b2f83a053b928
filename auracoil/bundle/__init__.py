"""Analysis bundle selection and hashing."""

from .builder import (
    BundleBuilder,
    BundleConfig,
    build_analysis_bundle,
    format_bundle_summary,
    get_bundle_hash,
    hash_content,
)

__all__ = [
    "BundleBuilder",
    "BundleConfig",
    "build_analysis_bundle",
    "format_bundle_summary",
    "get_bundle_hash",
    "hash_content",
]
