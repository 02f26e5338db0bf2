"""SQLAlchemy Core table definition for member profiles.

Python-side mirror of the Supabase ``public.users`` table. Not an ORM: just
typed column references for the query builder.

``auth_user_id`` is unique so one backend identity can never own two profiles.
UUID columns come back as strings so rows drop straight into Profile.
"""

from sqlalchemy import Column, DateTime, MetaData, Table, Text, text
from sqlalchemy.dialects.postgresql import UUID

metadata = MetaData(schema="public")

users = Table(
    "users",
    metadata,
    Column("id", UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()")),
    Column("auth_user_id", UUID(as_uuid=False), unique=True),
    Column("email", Text, unique=True, nullable=False),
    Column("full_name", Text, nullable=False),
    Column("gender", Text),
    Column("phone", Text),
    Column("family_category", Text),
    Column("family_name", Text),
    Column("role", Text, nullable=False),
    Column("access_code", Text, nullable=False),
    Column("profile_picture", Text),
    Column("bio", Text),
    Column("created_at", DateTime(timezone=True), server_default=text("now()")),
    Column("updated_at", DateTime(timezone=True), server_default=text("now()")),
)
