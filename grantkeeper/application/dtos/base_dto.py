# grantkeeper/application/dtos/base_dto.py

"""
Base class for the application DTOs.

Defines CustomBaseModel, which extends the Pydantic BaseModel with the
behaviour shared by every DTO of the application.
"""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict


class CustomBaseModel(BaseModel):
    """
    Base model for all DTOs of the application.

    Reads from plain objects (domain dataclasses) and exposes the fields the
    caller actually sent, which is what partial updates need.
    """

    model_config = ConfigDict(from_attributes=True)

    def changes(self) -> Dict[str, Any]:
        """
        Fields explicitly provided by the caller.

        An explicit ``null`` is kept (it clears the value); a field that was
        left out is not.
        """
        return self.model_dump(exclude_unset=True)
