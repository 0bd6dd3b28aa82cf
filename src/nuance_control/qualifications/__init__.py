"""
Qualification resolution.

- resolve_qualifications: Four-tier precedence over duration, band, count and runtime
- compute_resolver_hash: Stable qr-{version}-{base36} hash of resolved values
- is_stale: Compare a stored hash against a fresh resolution
"""

from .resolver import (
    FORMAT_DEFAULTS,
    SERIES_FORMATS,
    compute_criteria_hash,
    compute_resolver_hash,
    is_stale,
    normalize_format,
    resolve_field,
    resolve_qualifications,
)

__all__ = [
    "FORMAT_DEFAULTS",
    "SERIES_FORMATS",
    "normalize_format",
    "resolve_field",
    "resolve_qualifications",
    "compute_resolver_hash",
    "compute_criteria_hash",
    "is_stale",
]
