"""SQLAlchemy table definitions."""

import sqlalchemy as sa

db_metadata = sa.MetaData()

conversation_messages = sa.Table(
    "conversation_messages",
    db_metadata,
    sa.Column("id", sa.String(64), primary_key=True),
    sa.Column("thread_id", sa.String(64), nullable=False),
    sa.Column("run_id", sa.String(64), nullable=True),
    sa.Column("assistant_ref", sa.String(128), nullable=True),
    sa.Column("caller_ref", sa.String(128), nullable=True),
    sa.Column("role", sa.String(16), nullable=False),
    sa.Column("content", sa.Text, nullable=False),
    sa.Column("has_attachments", sa.Boolean, nullable=False, server_default=sa.false()),
    sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    ),
    sa.Index("ix_conversation_messages_thread_id_created_at", "thread_id", "created_at"),
    sa.Index("ix_conversation_messages_created_at", "created_at"),
)
