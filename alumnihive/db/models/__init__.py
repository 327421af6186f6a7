"""
Database models module.

Importing this package registers every table on Base.metadata, which both
init_db() and Alembic autogenerate rely on.
"""
from alumnihive.db.models.user import User, Role
from alumnihive.db.models.batch import Batch, batch_members
from alumnihive.db.models.message import Message, MessageType
from alumnihive.db.models.message_limit import MessageLimit, PerAlumniMessageLimit
from alumnihive.db.models.subscription import (
    AlumniSubscription,
    QuarterlySubscription,
    SubscriptionStatus,
    SubscriptionType,
)
from alumnihive.db.models.payment import Payment, PaymentStatus
from alumnihive.db.models.job_posting import (
    JobPosting,
    JobUnlock,
    JobApplication,
    JobPostingSubscription,
    JobType,
    ExperienceLevel,
    ApplicationStatus,
)
from alumnihive.db.models.batch_chat import (
    BatchChatMessage,
    BatchChatReaction,
    BatchChatReply,
    BatchChatRead,
)
from alumnihive.db.models.profile import AlumniProfile, StudentProfile, AcademicStanding
from alumnihive.db.models.mentorship import (
    MentorshipRequest,
    MentorshipCall,
    MentorSession,
    MentorshipCategory,
    MentorshipStatus,
)
from alumnihive.db.models.connection import ConnectionRequest, ConnectionStatus

__all__ = [
    "User",
    "Role",
    "Batch",
    "batch_members",
    "Message",
    "MessageType",
    "MessageLimit",
    "PerAlumniMessageLimit",
    "AlumniSubscription",
    "QuarterlySubscription",
    "SubscriptionStatus",
    "SubscriptionType",
    "Payment",
    "PaymentStatus",
    "JobPosting",
    "JobUnlock",
    "JobApplication",
    "JobPostingSubscription",
    "JobType",
    "ExperienceLevel",
    "ApplicationStatus",
    "BatchChatMessage",
    "BatchChatReaction",
    "BatchChatReply",
    "BatchChatRead",
    "AlumniProfile",
    "StudentProfile",
    "AcademicStanding",
    "MentorshipRequest",
    "MentorshipCall",
    "MentorSession",
    "MentorshipCategory",
    "MentorshipStatus",
    "ConnectionRequest",
    "ConnectionStatus",
]
