"""
Access policy

One place that answers "may this subject perform this action on this
resource". Every action maps to a `Rule`:

    roles           roles allowed to attempt the action (empty = any role)
    check           ownership predicate `(subject, resource) -> bool`,
                    evaluated only when a resource is passed
    admin_override  admins skip the ownership predicate
    require_active  the subject account must be approved and not declined

Route handlers use the `require(action)` dependency for the role part and
call `policy.enforce(user, action, resource)` once the resource is loaded.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, FrozenSet, Mapping, NamedTuple, Optional

from fastapi import Depends

from app.core.exceptions import AuthorizationException
from app.core.security import get_current_user
from app.models.user import User, UserRole

ADMIN = UserRole.ADMIN.value


class Action(str, Enum):
    JOB_CREATE = "job:create"
    JOB_VIEW_OWN = "job:view_own"
    JOB_MANAGE = "job:manage"
    JOB_MODERATE = "job:moderate"
    JOB_APPLY = "job:apply"
    APPLICATION_REVIEW = "application:review"
    APPLICATION_DELETE = "application:delete"
    NOTIFICATION_READ = "notification:read"
    PATIENT_REGISTER = "patient:register"
    PATIENT_SEARCH = "patient:search"
    PATIENT_VIEW = "patient:view"
    PATIENT_UPDATE = "patient:update"
    PATIENT_DOCTOR_APPROVE = "patient:doctor_approve"
    CLAIM_MANAGE = "claim:manage"
    PRESCRIPTION_REQUEST = "prescription:request"
    PRESCRIPTION_VIEW = "prescription:view"
    PRESCRIPTION_DELETE = "prescription:delete"
    CHAT_USER_HISTORY = "chat:user_history"
    CHAT_DOCTOR_HISTORY = "chat:doctor_history"
    CHAT_MESSAGE_SEND = "chat:message_send"
    CHAT_MESSAGE_DELETE = "chat:message_delete"
    TREATMENT_ADMIN = "treatment:admin"
    DOCTOR_TREATMENT_MANAGE = "doctor_treatment:manage"
    CONTRACT_VIEW_OWN = "contract:view_own"
    CONTRACT_ADMIN = "contract:admin"
    USER_ADMIN = "user:admin"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed


@dataclass(frozen=True)
class Rule:
    roles: FrozenSet[str] = frozenset()
    check: Optional[Callable[[Any, Any], bool]] = None
    denial: str = "Access denied"
    admin_override: bool = False
    require_active: bool = False


class ApplicationContext(NamedTuple):
    """An application together with the posting it belongs to"""
    application: Any
    job: Any


class ChatMessageContext(NamedTuple):
    chat: Any
    message: dict


# ==================== Ownership predicates ====================

def is_job_owner(subject, job) -> bool:
    return job.posted_by == subject.id


def is_job_owner_or_applicant(subject, ctx: ApplicationContext) -> bool:
    return ctx.application.applicant_id == subject.id or (
        ctx.job is not None and ctx.job.posted_by == subject.id
    )


def is_assigned_doctor(subject, patient) -> bool:
    # registrations store either the doctor's id or display name
    return patient.doctor in {str(subject.id), subject.name}


def is_participant(subject, record) -> bool:
    return subject.id in (record.user_id, record.doctor_id)


def is_sender_or_chat_doctor(subject, ctx: ChatMessageContext) -> bool:
    return ctx.message.get("sender_id") == subject.id or ctx.chat.doctor_id == subject.id


def is_treatment_owner(subject, doctor_treatment) -> bool:
    return doctor_treatment.doctor_id == subject.id


def _roles(*roles: UserRole) -> FrozenSet[str]:
    return frozenset(r.value for r in roles)


R = UserRole

DEFAULT_RULES: Mapping[Action, Rule] = {
    Action.JOB_CREATE: Rule(_roles(R.CLINIC, R.DOCTOR, R.ADMIN)),
    Action.JOB_VIEW_OWN: Rule(_roles(R.CLINIC, R.DOCTOR, R.ADMIN)),
    Action.JOB_MANAGE: Rule(
        _roles(R.CLINIC, R.DOCTOR, R.ADMIN),
        check=is_job_owner,
        denial="Job not found or not authorized",
        admin_override=True,
    ),
    Action.JOB_MODERATE: Rule(_roles(R.ADMIN), denial="Unauthorized, admin only"),
    Action.JOB_APPLY: Rule(),
    Action.APPLICATION_REVIEW: Rule(
        _roles(R.CLINIC, R.DOCTOR, R.ADMIN),
        check=is_job_owner,
        denial="Only the job poster can review applications",
        admin_override=True,
    ),
    Action.APPLICATION_DELETE: Rule(
        check=is_job_owner_or_applicant,
        denial="Not authorized to delete this application",
        admin_override=True,
    ),
    Action.NOTIFICATION_READ: Rule(),
    Action.PATIENT_REGISTER: Rule(_roles(R.CLINIC, R.STAFF, R.ADMIN)),
    Action.PATIENT_SEARCH: Rule(_roles(R.CLINIC, R.STAFF, R.ADMIN, R.DOCTOR_STAFF)),
    Action.PATIENT_VIEW: Rule(_roles(R.CLINIC, R.STAFF, R.ADMIN, R.DOCTOR_STAFF, R.DOCTOR)),
    Action.PATIENT_UPDATE: Rule(_roles(R.CLINIC, R.STAFF, R.ADMIN)),
    Action.PATIENT_DOCTOR_APPROVE: Rule(
        _roles(R.DOCTOR_STAFF),
        check=is_assigned_doctor,
        denial="You are not assigned to this patient",
    ),
    Action.CLAIM_MANAGE: Rule(_roles(R.DOCTOR_STAFF)),
    Action.PRESCRIPTION_REQUEST: Rule(_roles(R.USER)),
    Action.PRESCRIPTION_VIEW: Rule(_roles(R.USER, R.DOCTOR)),
    Action.PRESCRIPTION_DELETE: Rule(
        _roles(R.USER, R.DOCTOR),
        check=is_participant,
        denial="Not authorized to delete this prescription",
    ),
    Action.CHAT_USER_HISTORY: Rule(
        _roles(R.USER), denial="Only users can view their chat history"
    ),
    Action.CHAT_DOCTOR_HISTORY: Rule(
        _roles(R.DOCTOR), denial="Only doctors can view their patient chats"
    ),
    Action.CHAT_MESSAGE_SEND: Rule(
        _roles(R.USER, R.DOCTOR),
        check=is_participant,
        denial="Not a participant of this chat",
    ),
    Action.CHAT_MESSAGE_DELETE: Rule(
        _roles(R.USER, R.DOCTOR),
        check=is_sender_or_chat_doctor,
        denial="Not authorized to delete this message",
    ),
    Action.TREATMENT_ADMIN: Rule(_roles(R.ADMIN)),
    Action.DOCTOR_TREATMENT_MANAGE: Rule(
        _roles(R.DOCTOR, R.CLINIC, R.DOCTOR_STAFF),
        check=is_treatment_owner,
        require_active=True,
    ),
    Action.CONTRACT_VIEW_OWN: Rule(_roles(R.STAFF), denial="Access denied. Staff only."),
    Action.CONTRACT_ADMIN: Rule(_roles(R.ADMIN)),
    Action.USER_ADMIN: Rule(_roles(R.ADMIN)),
}


class PolicyEngine:
    """Evaluates (subject, action, resource) against a rule table"""

    def __init__(self, rules: Mapping[Action, Rule] = DEFAULT_RULES):
        self.rules = dict(rules)

    def evaluate(self, subject, action: Action, resource: Any = None) -> Decision:
        rule = self.rules.get(action)
        if rule is None:
            return Decision(False, f"No policy for action '{action}'")

        role = getattr(subject, "role", None)
        if rule.roles and role not in rule.roles:
            return Decision(False, rule.denial)

        if rule.require_active and (
            not getattr(subject, "is_approved", False) or getattr(subject, "declined", False)
        ):
            return Decision(False, "Account not active")

        if rule.check is None or resource is None:
            return Decision(True)
        if rule.admin_override and role == ADMIN:
            return Decision(True)
        if rule.check(subject, resource):
            return Decision(True)
        return Decision(False, rule.denial)

    def enforce(self, subject, action: Action, resource: Any = None) -> None:
        """Raise `AuthorizationException` unless allowed"""
        decision = self.evaluate(subject, action, resource)
        if not decision:
            raise AuthorizationException(decision.reason)


policy = PolicyEngine()


def require(action: Action):
    """
    Dependency: authenticated user whose role may attempt `action`

    Usage:
        @router.post("")
        async def create(user: User = Depends(require(Action.JOB_CREATE))):
            ...
    """
    async def dependency(user: User = Depends(get_current_user)) -> User:
        policy.enforce(user, action)
        return user

    return dependency
