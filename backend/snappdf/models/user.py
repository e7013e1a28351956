"""
SnapPDF Backend - User SQLAlchemy Model
=========================================

What:  ORM model for the `users` table.
Who:   Written by UserService after a successful Google identity exchange.

Lifecycle:
    1. Created on the first successful login for an email
    2. `avatar` updated when Google reports a different picture
    3. `email` never changes; files reference users by email
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, Text, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from snappdf.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )

    # Identity as reported by Google; unique across the table
    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        comment="Verified Google account email",
    )

    avatar: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        default=None,
        comment="Google profile picture URL",
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
