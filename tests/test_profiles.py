import asyncio
from datetime import datetime, timedelta, timezone

from risk_portal.schemas import AcademicData, RiskLevel
from risk_portal.store import ACADEMIC_DATA

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def record(student_id, minutes, attendance=70, internal=70, assignment=70):
    return AcademicData(student_id=student_id, student_name=f"Student {student_id}",
                        attendance=attendance, internal_marks=internal, assignment_score=assignment,
                        timestamp=T0 + timedelta(minutes=minutes))

def submit(pipeline, data):
    return asyncio.run(pipeline.submit_and_predict(data))


def test_profile_is_latest_submission_with_its_prediction(pipeline, profiles):
    submit(pipeline, record("1", 0, 40, 40, 40))
    latest = record("1", 30, 90, 90, 90)
    pred = submit(pipeline, latest)
    submit(pipeline, record("1", 10, 70, 70, 70))   # older, inserted last

    [profile] = profiles.student_profiles()
    assert profile.id == latest.id
    assert profile.prediction == pred
    assert profile.prediction.risk_level == RiskLevel.LOW

def test_one_profile_per_student(pipeline, profiles):
    for sid, minutes in [("1", 0), ("2", 1), ("1", 2), ("3", 3), ("2", 4)]:
        submit(pipeline, record(sid, minutes))
    result = profiles.student_profiles()
    assert [p.student_id for p in result] == ["1", "2", "3"]
    assert {p.student_id: p.timestamp for p in result} == {
        "1": T0 + timedelta(minutes=2),
        "2": T0 + timedelta(minutes=4),
        "3": T0 + timedelta(minutes=3),
    }

def test_data_without_prediction_has_absent_prediction(store, profiles):
    orphan = record("7", 0)
    store.append(ACADEMIC_DATA, orphan.model_dump(mode="json"))
    [profile] = profiles.student_profiles()
    assert profile.id == orphan.id
    assert profile.prediction is None
    assert profiles.prediction_for_data(orphan.id) is None

def test_profiles_are_idempotent(pipeline, profiles):
    submit(pipeline, record("1", 0))
    submit(pipeline, record("2", 5, 30, 30, 30))
    assert profiles.student_profiles() == profiles.student_profiles()

def test_history_is_newest_first(pipeline, profiles):
    for minutes in [5, 1, 9, 3, 7]:
        submit(pipeline, record("1", minutes))
    submit(pipeline, record("2", 100))
    history = profiles.student_history("1")
    stamps = [d.timestamp for d in history]
    assert len(history) == 5
    assert all(a > b for a, b in zip(stamps, stamps[1:]))

def test_history_for_unknown_student_is_empty(profiles):
    assert profiles.student_history("nobody") == []

def test_risk_distribution(pipeline, store, profiles):
    submit(pipeline, record("1", 0, 30, 30, 30))      # HIGH
    submit(pipeline, record("2", 0, 70, 70, 70))      # MEDIUM
    submit(pipeline, record("3", 0, 90, 90, 90))      # LOW
    submit(pipeline, record("4", 0, 20, 20, 20))      # HIGH
    store.append(ACADEMIC_DATA, record("5", 0).model_dump(mode="json"))

    dist = profiles.risk_distribution()
    assert dist.n_profiles == 5
    assert dist.risk_counts == {"LOW": 1, "MEDIUM": 1, "HIGH": 2}
    assert dist.unscored == 1

def test_risk_distribution_empty(profiles):
    dist = profiles.risk_distribution()
    assert dist.n_profiles == 0
    assert dist.risk_counts == {"LOW": 0, "MEDIUM": 0, "HIGH": 0}
    assert dist.unscored == 0

def test_naive_timestamp_is_treated_as_utc(pipeline, profiles):
    submit(pipeline, record("1", 0))
    naive = AcademicData(student_id="1", student_name="Student 1", attendance=90,
                         internal_marks=90, assignment_score=90, timestamp=datetime(2026, 3, 1, 10, 0))
    assert naive.timestamp.tzinfo is not None
    submit(pipeline, naive)
    [profile] = profiles.student_profiles()
    assert profile.id == naive.id
    assert [d.id for d in profiles.student_history("1")][0] == naive.id
