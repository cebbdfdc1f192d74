"""
API Services Layer.

Database operations behind the API endpoints. Every function takes an
explicit session and the caller's SessionContext.
"""

from api.services.jobs import (
    get_job,
    list_jobs,
    create_job,
    update_job,
    delete_job,
    toggle_job_active,
    list_job_applications,
)

from api.services.applications import (
    apply_to_job,
    invite_user,
    accept_invite,
    decline_invite,
    approve_application,
    assign_user,
    decline_application,
    reject_application,
    admin_remove_approved,
    request_giveaway,
    cancel_giveaway,
    approve_emergency_giveaway,
    decline_emergency_giveaway,
    claim_giveaway,
)

from api.services.groups import (
    list_groups,
    create_group,
    delete_group,
    toggle_membership,
)

from api.services.releases import (
    check_month_access,
    list_releases,
    set_release,
)

from api.services.roster import (
    load_month_roster,
    export_month_roster_csv,
)

from api.services.quiz import (
    list_questions,
    create_question,
    update_question,
    delete_question,
    start_attempt,
    submit_attempt,
    submit_score,
)

from api.services.profiles import (
    list_profiles,
    adjust_strikes,
    get_profile_summary,
)

from api.services.notifications import (
    notify,
    notify_admins,
    list_notifications,
    unread_count,
    mark_all_read,
    delete_notification,
    accept_invite_from_notification,
    decline_invite_from_notification,
)

from api.services.directory import (
    list_locations,
    create_location,
    delete_location,
    get_hourly_rate,
    set_hourly_rate,
)

__all__ = [
    # Jobs
    "get_job",
    "list_jobs",
    "create_job",
    "update_job",
    "delete_job",
    "toggle_job_active",
    "list_job_applications",
    # Applications
    "apply_to_job",
    "invite_user",
    "accept_invite",
    "decline_invite",
    "approve_application",
    "assign_user",
    "decline_application",
    "reject_application",
    "admin_remove_approved",
    "request_giveaway",
    "cancel_giveaway",
    "approve_emergency_giveaway",
    "decline_emergency_giveaway",
    "claim_giveaway",
    # Groups and releases
    "list_groups",
    "create_group",
    "delete_group",
    "toggle_membership",
    "check_month_access",
    "list_releases",
    "set_release",
    # Roster
    "load_month_roster",
    "export_month_roster_csv",
    # Quiz
    "list_questions",
    "create_question",
    "update_question",
    "delete_question",
    "start_attempt",
    "submit_attempt",
    "submit_score",
    # Profiles
    "list_profiles",
    "adjust_strikes",
    "get_profile_summary",
    # Notifications
    "notify",
    "notify_admins",
    "list_notifications",
    "unread_count",
    "mark_all_read",
    "delete_notification",
    "accept_invite_from_notification",
    "decline_invite_from_notification",
    # Directory
    "list_locations",
    "create_location",
    "delete_location",
    "get_hourly_rate",
    "set_hourly_rate",
]
