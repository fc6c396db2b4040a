from typing import Dict, List, Optional

import pandas as pd

from .schemas import AcademicData, PredictionResult, RiskDistribution, RiskLevel, StudentFullProfile
from .store import ACADEMIC_DATA, PREDICTIONS, CollectionStore


class ProfileAggregator:
    """Read-only projections over academic_data and predictions, recomputed on every call."""

    def __init__(self, store: CollectionStore):
        self.store = store

    def all_academic_data(self) -> List[AcademicData]:
        return [AcademicData.model_validate(d) for d in self.store.read(ACADEMIC_DATA)]

    def all_predictions(self) -> List[PredictionResult]:
        return [PredictionResult.model_validate(p) for p in self.store.read(PREDICTIONS)]

    def prediction_for_data(self, data_id: str) -> Optional[PredictionResult]:
        return next((p for p in self.all_predictions() if p.data_id == data_id), None)

    def student_profiles(self) -> List[StudentFullProfile]:
        latest: Dict[str, AcademicData] = {}
        for d in self.all_academic_data():
            current = latest.get(d.student_id)
            if current is None or d.timestamp > current.timestamp:
                latest[d.student_id] = d
        preds = self.all_predictions()
        profiles = []
        for d in latest.values():
            pred = next((p for p in preds if p.data_id == d.id), None)
            profiles.append(StudentFullProfile(**d.model_dump(), prediction=pred))
        return profiles

    def student_history(self, student_id: str) -> List[AcademicData]:
        rows = [d for d in self.all_academic_data() if d.student_id == student_id]
        return sorted(rows, key=lambda d: d.timestamp, reverse=True)

    def risk_distribution(self) -> RiskDistribution:
        profiles = self.student_profiles()
        levels = pd.Series(
            [p.prediction.risk_level.value if p.prediction else None for p in profiles],
            dtype="object",
        )
        counts = levels.value_counts(dropna=True).reindex([r.value for r in RiskLevel], fill_value=0)
        return RiskDistribution(
            n_profiles=int(len(profiles)),
            risk_counts={k: int(v) for k, v in counts.items()},
            unscored=int(levels.isna().sum()),
        )
