# grantkeeper/adapters/outbound/persistence/models/session_model.py

from sqlalchemy import Column, String, DateTime, func
from grantkeeper.adapters.outbound.persistence.models.base_model import Base
from grantkeeper.adapters.outbound.persistence.models.types import JSONType


class SessionModel(Base):
    """OIDC provider session: opaque id bound to an account and a payload."""
    __tablename__ = "oidc_sessions"

    id = Column(String(255), primary_key=True)
    account_id = Column(String(255), nullable=True, index=True)
    data = Column(JSONType, nullable=False, default=dict)
    expires_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<SessionModel(id={self.id}, account_id={self.account_id})>"
