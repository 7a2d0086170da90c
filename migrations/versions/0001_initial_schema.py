"""initial schema: clients, grants, sessions, notifications

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "oidc_clients",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("client_id", sa.String(255), nullable=False),
        sa.Column("client_secret", sa.Text(), nullable=True),
        sa.Column("redirect_uris", JSONType, nullable=False),
        sa.Column("grant_types", JSONType, nullable=False),
        sa.Column("response_types", JSONType, nullable=False),
        sa.Column("scopes", JSONType, nullable=False),
        sa.Column("client_name", sa.String(255), nullable=True),
        sa.Column("client_uri", sa.Text(), nullable=True),
        sa.Column("logo_uri", sa.Text(), nullable=True),
        sa.Column("token_endpoint_auth_method", sa.String(50), nullable=False),
        sa.Column("application_type", sa.String(50), nullable=False),
        sa.Column("subject_type", sa.String(50), nullable=False),
        sa.Column("id_token_signed_response_alg", sa.String(50), nullable=False),
        sa.Column("userinfo_signed_response_alg", sa.String(50), nullable=True),
        sa.Column("post_logout_redirect_uris", JSONType, nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_oidc_clients_client_id", "oidc_clients", ["client_id"], unique=True)
    op.create_index("ix_oidc_clients_created_at", "oidc_clients", ["created_at"])

    op.create_table(
        "oidc_grants",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("grant_id", sa.String(255), nullable=True),
        sa.Column("user_code", sa.String(255), nullable=True),
        sa.Column(
            "client_id",
            sa.String(255),
            sa.ForeignKey("oidc_clients.client_id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("account_id", sa.String(255), nullable=True),
        sa.Column("kind", sa.String(50), nullable=False),
        sa.Column("jti", sa.String(255), nullable=True),
        sa.Column("iat", sa.DateTime(), nullable=True),
        sa.Column("exp", sa.DateTime(), nullable=False),
        sa.Column("data", JSONType, nullable=False),
        sa.Column("consumed", sa.Boolean(), nullable=False),
        sa.Column("consumed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    for column in ("grant_id", "user_code", "client_id", "account_id", "kind", "jti", "exp"):
        op.create_index(f"ix_oidc_grants_{column}", "oidc_grants", [column])
    op.create_index("oidc_grants_client_exp_idx", "oidc_grants", ["client_id", "exp"])

    op.create_table(
        "oidc_sessions",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("account_id", sa.String(255), nullable=True),
        sa.Column("data", JSONType, nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_oidc_sessions_account_id", "oidc_sessions", ["account_id"])
    op.create_index("ix_oidc_sessions_expires_at", "oidc_sessions", ["expires_at"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.BigInteger().with_variant(sa.Integer(), "sqlite"), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("notification_type_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("link_url", sa.Text(), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("read_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_notification_type_id", "notifications", ["notification_type_id"])
    op.create_index("notifications_user_unread_idx", "notifications", ["user_id", "is_read"])


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("oidc_sessions")
    op.drop_table("oidc_grants")
    op.drop_table("oidc_clients")
