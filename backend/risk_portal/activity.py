import logging
from typing import List, Optional

from .schemas import (
    AuditLog, LinkTab, NotificationType, SystemNotification, User, UserFeedback,
)
from .store import AUDIT_LOGS, FEEDBACK, NOTIFICATIONS, CappedLog, CollectionStore

log = logging.getLogger("risk-portal.activity")


class NotificationCenter:
    def __init__(self, store: CollectionStore, capacity: int = 50):
        self._log = CappedLog(store, NOTIFICATIONS, capacity)

    def list(self) -> List[SystemNotification]:
        return [SystemNotification.model_validate(n) for n in self._log.items()]

    def add(self, title: str, message: str, type: NotificationType,
            link_tab: Optional[LinkTab] = None, student_id: Optional[str] = None) -> SystemNotification:
        notification = SystemNotification(
            title=title, message=message, type=type, link_tab=link_tab, student_id=student_id
        )
        self._log.push(notification.model_dump(mode="json"))
        return notification

    def mark_as_read(self, notification_id: str) -> None:
        items = self._log.items()
        if not any(n["id"] == notification_id for n in items):
            return
        self._log.replace([dict(n, read=True) if n["id"] == notification_id else n for n in items])

    def mark_all_as_read(self) -> None:
        self._log.replace([dict(n, read=True) for n in self._log.items()])

    def unread_count(self) -> int:
        return sum(1 for n in self._log.items() if not n.get("read"))


class AuditTrail:
    """Administrative actions, newest first, capped."""

    def __init__(self, store: CollectionStore, capacity: int = 100):
        self._log = CappedLog(store, AUDIT_LOGS, capacity)

    def log_action(self, actor: User, action: str, target_id: str, target_name: str) -> AuditLog:
        entry = AuditLog(
            admin_id=actor.id, admin_name=actor.name,
            action=action, target_id=target_id, target_name=target_name,
        )
        self._log.push(entry.model_dump(mode="json"))
        log.info(f"audit: {actor.name} -> {action} ({target_name})")
        return entry

    def logs(self) -> List[AuditLog]:
        return [AuditLog.model_validate(e) for e in self._log.items()]


class FeedbackBox:
    def __init__(self, store: CollectionStore):
        self.store = store

    def list(self) -> List[UserFeedback]:
        return [UserFeedback.model_validate(f) for f in self.store.read(FEEDBACK)]

    def add(self, student: User, message: str) -> UserFeedback:
        feedback = UserFeedback(student_id=student.id, student_name=student.name, message=message)
        self.store.prepend(FEEDBACK, feedback.model_dump(mode="json"))
        return feedback
