"""
Batch model: users grouped by college and graduation year.
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Table, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from alumnihive.db.base import Base


batch_members = Table(
    "batch_members",
    Base.metadata,
    Column("batch_id", Integer, ForeignKey("batches.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("joined_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
)


class Batch(Base):
    __tablename__ = "batches"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)  # "College - Year"
    college = Column(String, nullable=False, index=True)
    graduation_year = Column(Integer, nullable=False, index=True)
    description = Column(Text, nullable=True)

    alumni_count = Column(Integer, default=0, nullable=False)
    student_count = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    members = relationship("User", secondary=batch_members, lazy="selectin")

    __table_args__ = (
        UniqueConstraint("college", "graduation_year", name="uq_batch_college_year"),
    )

    @property
    def total_members(self) -> int:
        return self.alumni_count + self.student_count

    def has_member(self, user_id: int) -> bool:
        return any(member.id == user_id for member in self.members)

    def __repr__(self):
        return f"<Batch(id={self.id}, name='{self.name}')>"
