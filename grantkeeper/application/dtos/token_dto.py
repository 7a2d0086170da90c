# grantkeeper/application/dtos/token_dto.py

from dataclasses import dataclass
from typing import Optional

from grantkeeper.domain.models.grant_domain_model import Grant


@dataclass
class TokenPair:
    """Grants issued by a successful code exchange."""
    access_token: Grant
    refresh_token: Optional[Grant] = None

    @property
    def grant_id(self) -> str:
        return self.access_token.grant_id
