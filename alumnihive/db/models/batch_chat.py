"""
Batch-wide group chat.
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index, UniqueConstraint, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from alumnihive.db.base import Base
from alumnihive.db.models.message import MessageType

DELETED_PLACEHOLDER = "This message was deleted"


class BatchChatMessage(Base):
    __tablename__ = "batch_chat_messages"

    id = Column(Integer, primary_key=True, index=True)
    batch_id = Column(Integer, ForeignKey("batches.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    message_type = Column(Enum(MessageType, name="message_type"), default=MessageType.TEXT, nullable=False)
    file_url = Column(String, nullable=True)
    file_name = Column(String, nullable=True)

    is_edited = Column(Boolean, default=False, nullable=False)
    edited_at = Column(DateTime, nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    sender = relationship("User")
    reactions = relationship(
        "BatchChatReaction", back_populates="message", cascade="all, delete-orphan", lazy="selectin"
    )
    replies = relationship(
        "BatchChatReply", back_populates="message", cascade="all, delete-orphan", lazy="selectin",
        order_by="BatchChatReply.id",
    )
    read_by = relationship(
        "BatchChatRead", back_populates="message", cascade="all, delete-orphan", lazy="selectin"
    )

    __table_args__ = (
        Index("idx_batch_chat_batch_created", "batch_id", "created_at"),
    )

    def is_read_by(self, user_id: int) -> bool:
        return any(receipt.user_id == user_id for receipt in self.read_by)

    def __repr__(self):
        return f"<BatchChatMessage(id={self.id}, batch_id={self.batch_id}, sender_id={self.sender_id})>"


class BatchChatReaction(Base):
    """At most one reaction per user per message."""
    __tablename__ = "batch_chat_reactions"

    id = Column(Integer, primary_key=True, index=True)
    message_id = Column(Integer, ForeignKey("batch_chat_messages.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    emoji = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    message = relationship("BatchChatMessage", back_populates="reactions")

    __table_args__ = (
        UniqueConstraint("message_id", "user_id", name="uq_batch_chat_reaction_user"),
    )


class BatchChatReply(Base):
    __tablename__ = "batch_chat_replies"

    id = Column(Integer, primary_key=True, index=True)
    message_id = Column(Integer, ForeignKey("batch_chat_messages.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    message = relationship("BatchChatMessage", back_populates="replies")
    sender = relationship("User")


class BatchChatRead(Base):
    __tablename__ = "batch_chat_reads"

    id = Column(Integer, primary_key=True, index=True)
    message_id = Column(Integer, ForeignKey("batch_chat_messages.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    read_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    message = relationship("BatchChatMessage", back_populates="read_by")

    __table_args__ = (
        UniqueConstraint("message_id", "user_id", name="uq_batch_chat_read_user"),
    )
