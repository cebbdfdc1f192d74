"""Roster models. Importing this package registers every table on ``Base``."""

from database.models.profiles import Profile, ProfileRole
from database.models.jobs import Job
from database.models.applications import Application, ApplicationStatus
from database.models.groups import Group, GroupMembership, MonthlyRelease
from database.models.quiz import QuizQuestion
from database.models.notifications import Notification, NotificationType
from database.models.directory import AppSetting, Location

__all__ = [
    "Profile",
    "ProfileRole",
    "Job",
    "Application",
    "ApplicationStatus",
    "Group",
    "GroupMembership",
    "MonthlyRelease",
    "QuizQuestion",
    "Notification",
    "NotificationType",
    "AppSetting",
    "Location",
]
