import logging
from typing import Iterable, List, Optional

from .activity import AuditTrail, NotificationCenter
from .errors import (
    AccountPending, AccountRejected, BadCredentials, DuplicateEmail,
    InvalidStatusTransition, RoleMismatch, UnknownIdentity,
)
from .schemas import LinkTab, NotificationType, User, UserRole, UserStatus, utcnow
from .seed import SEED_USERS
from .store import USERS, CollectionStore

log = logging.getLogger("risk-portal.registry")

# PENDING is the only non-terminal state
ALLOWED_TRANSITIONS = {
    UserStatus.PENDING: {UserStatus.APPROVED, UserStatus.REJECTED},
    UserStatus.APPROVED: set(),
    UserStatus.REJECTED: set(),
}


def normalize_email(email: str) -> str:
    return email.strip().lower()


def merge_users(seed: Iterable[User], stored: Iterable[User]) -> List[User]:
    """Seed users first, then stored users whose email is not taken yet (seed wins on collision)."""
    merged = [u.model_copy(deep=True) for u in seed]
    seen = {normalize_email(u.email) for u in merged}
    for u in stored:
        key = normalize_email(u.email)
        if key not in seen:
            seen.add(key)
            merged.append(u)
    return merged


class UserRegistry:
    def __init__(self, store: CollectionStore, notifications: NotificationCenter,
                 seed: Iterable[User] = SEED_USERS):
        self.store = store
        self.notifications = notifications
        self.seed = tuple(seed)
        self._seed_emails = {normalize_email(u.email) for u in self.seed}
        self._seed_ids = {u.id for u in self.seed}

    def is_seed(self, user: User) -> bool:
        return user.id in self._seed_ids or normalize_email(user.email) in self._seed_emails

    def _stored(self) -> List[User]:
        return [User.model_validate(u) for u in self.store.read(USERS)]

    def users(self) -> List[User]:
        return merge_users(self.seed, self._stored())

    def get(self, user_id: str) -> Optional[User]:
        return next((u for u in self.users() if u.id == user_id), None)

    def find_by_email(self, email: str) -> Optional[User]:
        key = normalize_email(email)
        return next((u for u in self.users() if normalize_email(u.email) == key), None)

    def save(self, user: User) -> None:
        if self.is_seed(user):
            log.debug(f"ignoring write to seed identity {user.id} <{user.email}>")
            return
        stored = self.store.read(USERS)
        key = normalize_email(user.email)
        if any(u["id"] != user.id and normalize_email(u["email"]) == key for u in stored):
            raise DuplicateEmail(f"{user.email} belongs to another account")
        payload = user.model_dump(mode="json")
        idx = next((i for i, u in enumerate(stored) if u["id"] == user.id), None)
        if idx is None:
            stored.append(payload)
        else:
            # a full-record save may not move status outside the PENDING -> decision path
            current = UserStatus(stored[idx]["status"])
            if user.status != current and user.status not in ALLOWED_TRANSITIONS[current]:
                raise InvalidStatusTransition(f"{current.value} -> {user.status.value} is not allowed")
            stored[idx] = payload
        self.store.write(USERS, stored)

    def update_status(self, user_id: str, status: UserStatus) -> Optional[User]:
        user = self.get(user_id)
        if user is None:
            return None
        if status not in ALLOWED_TRANSITIONS[user.status]:
            raise InvalidStatusTransition(f"{user.status.value} -> {status.value} is not allowed")
        user.status = status
        self.save(user)
        return user

    def register_student(self, name: str, email: str, password: str,
                         register_no: Optional[str] = None, department: Optional[str] = None) -> User:
        if self.find_by_email(email) is not None:
            raise DuplicateEmail(f"{email} is already enrolled")
        user = User(
            name=name, email=email.strip(), role=UserRole.STUDENT, status=UserStatus.PENDING,
            register_no=register_no, department=department, password=password,
            registration_date=utcnow(),
        )
        self.save(user)
        self.notifications.add(
            title="New Access Request",
            message=f"{name} has applied for student credentials.",
            type=NotificationType.REGISTRATION,
            link_tab=LinkTab.REGISTRATIONS,
        )
        log.info(f"registration request from {user.email}")
        return user

    def authenticate(self, email: str, password: str, role: UserRole) -> User:
        user = self.find_by_email(email)
        if user is None:
            raise UnknownIdentity("identity not found")
        if user.role != role:
            raise RoleMismatch(f"account belongs to the {user.role.value} portal")
        if user.password != password:
            raise BadCredentials("incorrect password")
        if user.status == UserStatus.PENDING:
            raise AccountPending("account awaiting administrative approval")
        if user.status == UserStatus.REJECTED:
            raise AccountRejected("registration request was declined")
        return user


def review_registration(registry: UserRegistry, audit: AuditTrail, admin: User,
                        user_id: str, decision: UserStatus) -> Optional[User]:
    user = registry.update_status(user_id, decision)
    if user is not None:
        audit.log_action(admin, f"Registration {decision.value}", user.id, user.name)
    return user
