from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import JSONB

from lentos.database import Base


class Session(Base):
    __tablename__ = "sessions"
    key = Column(String(64), primary_key=True)
    state = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)
    # lets every session of an account be revoked at once
    user_id = Column(Integer, nullable=True, index=True)
