"""Base Pydantic model with strict defaults for lasqc configs.

All lasqc config schemas inherit from this base to ensure consistent
validation behavior across parameter, user, CLI, and internal configs.
"""

from pydantic import BaseModel, ConfigDict


class LasqcBaseModel(BaseModel):
    """Base model for all lasqc configuration schemas.

    Enforces strict validation:
    - No extra fields allowed
    - Validates assignments after initialization
    - Enum members are stored as their values
    - Leading/trailing whitespace stripped from strings
    """

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
    )
