from enum import Enum


class Role(str, Enum):
    user = "user"
    admin = "admin"
    department = "department"


class ComplaintStatus(str, Enum):
    pending = "pending"
    phone_verified = "phone_verified"
    in_progress = "in_progress"
    resolved = "resolved"
    rejected = "rejected"
    rejected_by_department = "rejected_by_department"
    verification_failed = "verification_failed"


OPEN_STATUSES = (
    ComplaintStatus.pending,
    ComplaintStatus.phone_verified,
    ComplaintStatus.in_progress,
)
CLOSED_STATUSES = (
    ComplaintStatus.resolved,
    ComplaintStatus.rejected,
    ComplaintStatus.rejected_by_department,
    ComplaintStatus.verification_failed,
)


class PhoneVerificationStatus(str, Enum):
    pending_verification = "pending_verification"
    no_answer = "no_answer"
    phone_verified = "phone_verified"
    rejected = "rejected"
    verification_failed = "verification_failed"


class DepartmentType(str, Enum):
    fire = "Fire Department"
    police = "Police Department"
    water = "Water Department"
    road = "Road Department"
    health = "Health Department"
    electricity = "Electricity Department"
    municipal = "Municipal Corporation"
    other = "Other"


class ChatType(str, Enum):
    user_department = "user-department"
    admin_department = "admin-department"


class ParticipantModel(str, Enum):
    user = "User"
    admin = "Admin"
    department = "Department"


class MessageType(str, Enum):
    text = "text"
    image = "image"


class NoteSender(str, Enum):
    user = "user"
    admin = "admin"


class NotificationType(str, Enum):
    status_update = "status_update"
    comment = "comment"
    upvote = "upvote"
    admin_message = "admin_message"


class NotificationStatus(str, Enum):
    unread = "unread"
    read = "read"


class AccountStatus(str, Enum):
    active = "active"
    warned = "warned"
    blacklisted = "blacklisted"


class RedemptionStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    completed = "completed"
    cancelled = "cancelled"
