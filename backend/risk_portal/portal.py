from dataclasses import dataclass
from typing import Optional

from .activity import AuditTrail, FeedbackBox, NotificationCenter
from .config import Settings
from .database import init_db, make_engine, make_session_factory
from .pipeline import PredictionPipeline
from .profiles import ProfileAggregator
from .registry import UserRegistry
from .store import CollectionStore
from .utils.narrative_utils import NarrativeGenerator


@dataclass
class Portal:
    store: CollectionStore
    registry: UserRegistry
    notifications: NotificationCenter
    audit: AuditTrail
    feedback: FeedbackBox
    profiles: ProfileAggregator
    pipeline: PredictionPipeline


def build_portal(settings: Settings, narrator: Optional[NarrativeGenerator] = None) -> Portal:
    engine = make_engine(settings.DATABASE_URL)
    init_db(engine)
    store = CollectionStore(make_session_factory(engine))
    notifications = NotificationCenter(store, capacity=settings.NOTIFICATION_CAPACITY)
    narrator = narrator or NarrativeGenerator.from_settings(settings)
    return Portal(
        store=store,
        registry=UserRegistry(store, notifications),
        notifications=notifications,
        audit=AuditTrail(store, capacity=settings.AUDIT_LOG_CAPACITY),
        feedback=FeedbackBox(store),
        profiles=ProfileAggregator(store),
        pipeline=PredictionPipeline(store, narrator, notifications),
    )
