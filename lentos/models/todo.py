from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, false, func

from lentos.database import Base


class Todo(Base):
    __tablename__ = "todos"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(256), nullable=False)
    description = Column(Text, nullable=False, default="")
    is_done = Column(Boolean, nullable=False, default=False, server_default=false())
    owner = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
