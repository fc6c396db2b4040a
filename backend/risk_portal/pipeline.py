import logging

from .activity import NotificationCenter
from .errors import NarrativeUnavailable
from .schemas import AcademicData, LinkTab, NotificationType, PredictionResult, RiskLevel
from .store import ACADEMIC_DATA, PREDICTIONS, CollectionStore
from .utils.narrative_utils import NarrativeGenerator, fallback_narrative
from .utils.risk_utils import classify

log = logging.getLogger("risk-portal.pipeline")


class PredictionPipeline:
    def __init__(self, store: CollectionStore, narrator: NarrativeGenerator,
                 notifications: NotificationCenter):
        self.store = store
        self.narrator = narrator
        self.notifications = notifications

    async def submit_and_predict(self, data: AcademicData) -> PredictionResult:
        """Persist a submission, classify it and persist the prediction.

        Writes are independent appends: the submission is always stored
        before its prediction, and a failure in between leaves the
        submission without one.
        """
        self.store.append(ACADEMIC_DATA, data.model_dump(mode="json"))
        self.notifications.add(
            title="Registry Sync",
            message=f"{data.student_name} updated academic metrics.",
            type=NotificationType.SYSTEM,
            student_id=data.student_id,
        )

        assessment = classify(data.attendance, data.internal_marks, data.assignment_score)

        # single attempt, no retry: the fallback is deterministic
        try:
            narrative = await self.narrator.generate(
                assessment.performance_score, assessment.risk_level,
                data.attendance, data.internal_marks, data.assignment_score,
            )
        except NarrativeUnavailable as e:
            log.warning(f"narrative fallback for data {data.id}: {e}")
            narrative = fallback_narrative(assessment.performance_score, assessment.risk_level)

        prediction = PredictionResult(
            data_id=data.id,
            risk_level=assessment.risk_level,
            risk_score=assessment.risk_score,
            performance_score=assessment.performance_score,
            summary=narrative.summary,
            recommendations=narrative.recommendations,
        )
        self.store.append(PREDICTIONS, prediction.model_dump(mode="json"))

        if prediction.risk_level == RiskLevel.HIGH:
            self.notifications.add(
                title="CRITICAL: HIGH RISK DETECTED",
                message=(
                    f"URGENT: {data.student_name} has been flagged as HIGH RISK "
                    f"(Score: {prediction.performance_score}). Faculty intervention required."
                ),
                type=NotificationType.RISK_ALERT,
                link_tab=LinkTab.OVERVIEW,
                student_id=data.student_id,
            )
            log.info(f"HIGH risk alert raised for {data.student_name} ({data.student_id})")
        return prediction
