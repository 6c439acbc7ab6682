from typing import Any, Mapping

from models.vehicle import VehicleCondition, VehicleStatus


def is_blank(value: Any) -> bool:
    """None, empty/whitespace strings, empty lists and numeric zero count as missing."""
    if value is None:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    if isinstance(value, (int, float)):
        return value == 0
    return False


class BusinessRules:
    # Order matters: it is the order missing fields are reported in
    PUBLISH_REQUIRED_FIELDS = (
        ("condition", "condition"),
        ("makeId", "make_id"),
        ("modelId", "model_id"),
        ("modelYear", "model_year"),
        ("bodyTypeId", "body_type_id"),
        ("axleConfigId", "axle_config_id"),
        ("city", "city"),
        ("state", "state"),
        ("pincode", "pincode"),
        ("askingPriceInr", "asking_price_inr"),
        ("coverUrl", "cover_url"),
        ("slug", "slug"),
    )
    USED_VEHICLE_REQUIRED_FIELDS = (
        ("regNo", "reg_no"),
    )

    @staticmethod
    def is_publish_transition(current_status, target_status) -> bool:
        return target_status == VehicleStatus.PUBLISHED and current_status != VehicleStatus.PUBLISHED

    @staticmethod
    def missing_publish_fields(merged: Mapping[str, Any]) -> list[str]:
        """
        Returns the API names of required fields that are empty in `merged`,
        a snake_case view of the stored record overlaid with the incoming patch.
        """
        missing = [
            api_name
            for api_name, attr in BusinessRules.PUBLISH_REQUIRED_FIELDS
            if is_blank(merged.get(attr))
        ]
        if merged.get("condition") == VehicleCondition.USED:
            missing.extend(
                api_name
                for api_name, attr in BusinessRules.USED_VEHICLE_REQUIRED_FIELDS
                if is_blank(merged.get(attr))
            )
        return missing

    @staticmethod
    def needs_registration_check(merged: Mapping[str, Any]) -> bool:
        return (
            merged.get("condition") == VehicleCondition.USED
            and merged.get("status") == VehicleStatus.PUBLISHED
            and not is_blank(merged.get("reg_no"))
            and not is_blank(merged.get("state"))
        )
