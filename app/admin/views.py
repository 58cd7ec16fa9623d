from sqladmin import ModelView

from app.user.models import User, UserAuditEntry


class UserAdmin(ModelView, model=User):
    """Browse-only view of users.

    Creating, editing and deleting are disabled so status, role and the
    moderation audit columns stay under the lifecycle engine's control.
    """

    name = "User"
    name_plural = "Users"
    can_create = False
    can_edit = False
    can_delete = False

    column_list = [
        User.email,
        User.first_name,
        User.last_name,
        User.region,
        User.role,
        User.status,
        User.approved_at,
        User.rejected_at,
        User.deleted_at,
        User.created_at,
    ]

    column_details_exclude_list = [
        User.password_hash,
        User.verification_token,
        User.refresh_tokens,
        User.password_reset_token,
        User.password_reset_expires,
        User.external_id,
    ]

    column_searchable_list = [
        User.email,
        User.first_name,
        User.last_name,
        User.region,
    ]

    column_sortable_list = [
        User.created_at,
        User.email,
        User.last_name,
        User.status,
        User.role,
    ]


class UserAuditAdmin(ModelView, model=UserAuditEntry):
    name = "Audit entry"
    name_plural = "Audit log"
    can_create = False
    can_edit = False
    can_delete = False

    column_list = [
        UserAuditEntry.created_at,
        UserAuditEntry.user_id,
        UserAuditEntry.actor_id,
        UserAuditEntry.action,
        UserAuditEntry.from_status,
        UserAuditEntry.to_status,
        UserAuditEntry.detail,
    ]
    column_default_sort = [(UserAuditEntry.id, True)]
