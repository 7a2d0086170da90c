# grantkeeper/domain/models/session_domain_model.py

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class Session:
    """Opaque handle binding a browser/device interaction to an account."""
    id: str
    expires_at: datetime
    account_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
