# grantkeeper/adapters/outbound/persistence/models/grant_model.py

"""
ORM model for grant records (codes, tokens, device codes).

One row per artifact. ``data`` is the protocol payload and is never
interpreted by the store.
"""

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index, func
from grantkeeper.adapters.outbound.persistence.models.base_model import Base
from grantkeeper.adapters.outbound.persistence.models.types import JSONType


class GrantModel(Base):
    """
    Attributes:
        id: Opaque primary identifier
        grant_id: Family identifier shared by artifacts of one authorization
        client_id: Owning client
        account_id: Owning account (NULL for client credentials)
        kind: GrantKind value
        jti: Token identifier
        iat / exp: Issue and expiry timestamps (naive UTC)
        data: Opaque payload
        consumed / consumed_at: Single-use bookkeeping
    """
    __tablename__ = "oidc_grants"

    id = Column(String(255), primary_key=True)
    grant_id = Column(String(255), nullable=True, index=True)
    user_code = Column(String(255), nullable=True, index=True)
    client_id = Column(
        String(255),
        ForeignKey("oidc_clients.client_id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    account_id = Column(String(255), nullable=True, index=True)
    kind = Column(String(50), nullable=False, index=True)
    jti = Column(String(255), nullable=True, index=True)
    iat = Column(DateTime, nullable=True)
    exp = Column(DateTime, nullable=False, index=True)
    data = Column(JSONType, nullable=False, default=dict)
    consumed = Column(Boolean, nullable=False, default=False)
    consumed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("oidc_grants_client_exp_idx", "client_id", "exp"),
    )

    def __repr__(self) -> str:
        return f"<GrantModel(id={self.id}, kind={self.kind}, consumed={self.consumed})>"
