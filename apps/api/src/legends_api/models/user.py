from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID

from legends_api.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    document_id = Column(String(32), nullable=False, unique=True, default=lambda: uuid4().hex)
    email = Column(String, nullable=False, unique=True, index=True)
    username = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=True)
    phone_number = Column(String(32), nullable=True)
    password_hash = Column(String, nullable=True)
    provider = Column(String(16), nullable=False, default="local", server_default="local")
    confirmed = Column(Boolean, nullable=False, default=False, server_default="false")
    blocked = Column(Boolean, nullable=False, default=False, server_default="false")
    otp_code = Column(String(6), nullable=True)
    otp_expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
