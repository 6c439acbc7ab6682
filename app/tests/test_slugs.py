import pytest

from services.slugs import build_key_specs, build_title, fallback_slug, generate_slug, with_suffix


@pytest.mark.parametrize("text, expected", [
    ("2022 Tata LPT 3118 6x2 Truck", "2022-tata-lpt-3118-6x2-truck"),
    ("  Tata   Signa 4825.TK  ", "tata-signa-4825tk"),
    ("Ashok Leyland -- Dost+", "ashok-leyland-dost"),
    ("---already-slugged---", "already-slugged"),
    ("", ""),
])
def test_generate_slug(text, expected):
    assert generate_slug(text) == expected


def test_generate_slug_can_come_out_empty():
    # Nothing outside [a-z0-9 -] survives
    assert generate_slug("ट्रक !!!") == ""


def test_generate_slug_is_idempotent():
    slug = generate_slug("2019 BharatBenz 2823R 6x4 Tipper")
    assert generate_slug(slug) == slug


def test_build_title_skips_missing_parts():
    assert build_title(2022, "Tata", "LPT 3118", None, "6x2", "Truck") == "2022 Tata LPT 3118 6x2 Truck"
    assert build_title(2022, "Tata", "LPT 3118", "Cowl", "6x2", "Truck") == "2022 Tata LPT 3118 Cowl 6x2 Truck"
    assert build_title(2021, "Eicher", "Pro 3015", "  ", None, "Truck") == "2021 Eicher Pro 3015 Truck"


def test_fallback_slug_uses_id_prefix():
    assert fallback_slug("3f2b9c1e-aaaa-bbbb-cccc-000000000000") == "vehicle-3f2b9c1e"
    assert fallback_slug("3f2b9c1e-aaaa", prefix="service-center") == "service-center-3f2b9c1e"


def test_with_suffix():
    assert with_suffix("tata-lpt", 0) == "tata-lpt"
    assert with_suffix("tata-lpt", 1) == "tata-lpt-1"
    assert with_suffix("tata-lpt", 12) == "tata-lpt-12"


def test_key_specs_full():
    assert build_key_specs(5600, "6x2", 31.0, "BS-VI") == "5600cc • 6x2 • 31t GVW • BS-VI"


def test_key_specs_keeps_fractional_weight():
    assert build_key_specs(gvw_t=18.5) == "18.5t GVW"


def test_key_specs_omits_missing_parts():
    assert build_key_specs(axle_config_name="4x2", emission_norm_name="BS-IV") == "4x2 • BS-IV"
    assert build_key_specs() == ""
