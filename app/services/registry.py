from __future__ import annotations

from app.integrations.registry import Integrations
from app.repositories.admin_repository import AdminRepository
from app.repositories.chat_repository import ChatRepository
from app.repositories.complaint_repository import ComplaintRepository
from app.repositories.department_repository import DepartmentRepository
from app.repositories.notification_repository import NotificationRepository
from app.repositories.reward_repository import RedemptionRepository, RewardRepository
from app.repositories.user_repository import UserRepository
from app.services.auth_service import AuthService
from app.services.chat_service import ChatService
from app.services.community_service import CommunityService
from app.services.complaint_service import ComplaintService
from app.services.lifecycle import ComplaintLifecycle
from app.services.leaderboard_service import LeaderboardService
from app.services.notification_service import NotificationService
from app.services.participants import ParticipantDirectory
from app.services.phone_verification import PhoneVerificationService
from app.services.points_service import PointsService
from app.services.rewards_service import RewardsService
from app.services.routing import DepartmentRoutingEngine
from app.services.user_service import UserService


class Services:
    """Wires repositories and services over one database handle."""

    def __init__(self, db, integrations: Integrations):
        self.db = db
        self.integrations = integrations

        # repositories
        self.complaint_repo = ComplaintRepository(db["complaints"])
        self.chat_repo = ChatRepository(db["chats"])
        self.user_repo = UserRepository(db["users"])
        self.admin_repo = AdminRepository(db["admins"])
        self.department_repo = DepartmentRepository(db["departments"])
        self.notification_repo = NotificationRepository(db["notifications"])
        self.reward_repo = RewardRepository(db["rewards"])
        self.redemption_repo = RedemptionRepository(db["user_redemptions"])

        # services
        self.auth = AuthService(self.user_repo, self.admin_repo, self.department_repo)
        self.users = UserService(self.user_repo)
        self.points = PointsService(self.user_repo)
        self.notifications = NotificationService(self.notification_repo, sms=integrations.sms)
        self.routing = DepartmentRoutingEngine(self.department_repo, integrations.classifier)
        self.directory = ParticipantDirectory(self.user_repo, self.admin_repo, self.department_repo)
        self.chat = ChatService(
            self.chat_repo, self.complaint_repo, self.admin_repo, self.department_repo, self.directory
        )
        self.lifecycle = ComplaintLifecycle(
            self.complaint_repo,
            self.user_repo,
            self.department_repo,
            self.routing,
            self.notifications,
            self.points,
            self.chat,
        )
        self.phone = PhoneVerificationService(
            self.complaint_repo,
            self.lifecycle,
            integrations.call_gateway,
            integrations.scheduler,
            production=integrations.production,
            retry_delay_seconds=integrations.retry_delay_seconds,
        )
        self.complaints = ComplaintService(
            self.complaint_repo,
            self.user_repo,
            self.admin_repo,
            self.routing,
            self.phone,
            integrations.geocoder,
        )
        self.community = CommunityService(self.complaint_repo, self.user_repo, self.notifications)
        self.leaderboard = LeaderboardService(self.user_repo, self.complaint_repo)
        self.rewards = RewardsService(
            self.reward_repo,
            self.redemption_repo,
            self.user_repo,
            self.points,
            email=integrations.email,
        )
