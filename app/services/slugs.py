"""Title, slug and key-spec derivation for vehicle listings.

Pure functions only: callers resolve taxonomy names before calling in.
"""
import re
from typing import Iterable, Optional

_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")

KEY_SPEC_SEPARATOR = " • "


def generate_slug(text: str) -> str:
    """Lower-case, drop anything outside [a-z0-9 -], hyphenate whitespace runs."""
    slug = _DISALLOWED.sub("", (text or "").lower())
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHENS.sub("-", slug)
    return slug.strip("-")


def build_title(
    model_year: int,
    make_name: Optional[str],
    model_name: Optional[str],
    variant_name: Optional[str],
    axle_config_name: Optional[str],
    body_type_name: Optional[str],
) -> str:
    parts: Iterable[Optional[str]] = (
        str(model_year) if model_year else None,
        make_name,
        model_name,
        variant_name,
        axle_config_name,
        body_type_name,
    )
    return " ".join(part.strip() for part in parts if part and part.strip())


def fallback_slug(record_id: str, prefix: str = "vehicle") -> str:
    # Used when the title has nothing left after stripping, e.g. all non-ASCII
    return f"{prefix}-{record_id.replace('-', '')[:8]}"


def with_suffix(base_slug: str, counter: int) -> str:
    return base_slug if counter == 0 else f"{base_slug}-{counter}"


def _format_number(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_key_specs(
    engine_cc: Optional[int] = None,
    axle_config_name: Optional[str] = None,
    gvw_t: Optional[float] = None,
    emission_norm_name: Optional[str] = None,
) -> str:
    """Short headline spec line, e.g. '5600cc • 6x2 • 31t GVW • BS-VI'."""
    parts = []
    if engine_cc:
        parts.append(f"{_format_number(engine_cc)}cc")
    if axle_config_name:
        parts.append(axle_config_name)
    if gvw_t:
        parts.append(f"{_format_number(gvw_t)}t GVW")
    if emission_norm_name:
        parts.append(emission_norm_name)
    return KEY_SPEC_SEPARATOR.join(parts)
