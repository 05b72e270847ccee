from typing import Mapping

# Fixed example values; generated tests are scaffolding, not oracles.
EMAIL_VALUE = "test@example.com"
PASSWORD_VALUE = "Password123!"
PHONE_VALUE = "555-0123"
NUMBER_VALUE = "42"
DATE_VALUE = "2024-01-01"
NAME_VALUE = "Test User"
DEFAULT_VALUE = "test value"


def generate_mock_value(attributes: Mapping[str, str]) -> str:
    """Example input for a field, sniffed from its ``type`` and ``name``."""
    input_type = (attributes.get("type") or "text").lower()
    name = (attributes.get("name") or "").lower()

    if input_type == "email" or "email" in name:
        return EMAIL_VALUE
    if input_type == "password" or "password" in name:
        return PASSWORD_VALUE
    if input_type == "tel" or "phone" in name:
        return PHONE_VALUE
    if input_type == "number":
        return NUMBER_VALUE
    if input_type == "date":
        return DATE_VALUE
    if "name" in name:
        return NAME_VALUE
    return DEFAULT_VALUE
