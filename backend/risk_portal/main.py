import os
import logging
from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import List, Optional

from .config import Settings, get_settings
from .errors import AuthError, DuplicateEmail, InvalidStatusTransition, StoreUnavailable
from .portal import Portal, build_portal
from .registry import review_registration
from .schemas import (
    AcademicData, AcademicSubmission, AuditLog, AuditLogCreate, FeedbackCreate, LoginRequest,
    NotificationCreate, PredictionResult, RegisterRequest, RiskDistribution, StatusDecision,
    StudentFullProfile, SystemNotification, User, UserFeedback, UserRole,
)
from .utils.narrative_utils import NarrativeGenerator

log = logging.getLogger("risk-portal")


# --------------- Portal dependency ---------------
def get_portal(request: Request) -> Portal:
    return request.app.state.portal

def require_user(portal: Portal, user_id: str, role: Optional[UserRole] = None) -> User:
    user = portal.registry.get(user_id)
    if user is None:
        raise HTTPException(404, detail=f"user {user_id} not found")
    if role is not None and user.role != role:
        raise HTTPException(403, detail=f"user {user_id} is not {role.value}")
    return user

def public(user: User) -> dict:
    return user.model_dump(mode="json", exclude={"password"})


def create_app(settings: Optional[Settings] = None, narrator: Optional[NarrativeGenerator] = None) -> FastAPI:
    settings = settings or get_settings()

    # ---------------- logging ----------------
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(message)s")

    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION)
    app.add_middleware(
        CORSMiddleware, allow_origins=["*"], allow_credentials=True, allow_methods=["*"], allow_headers=["*"]
    )
    app.state.portal = build_portal(settings, narrator=narrator)

    # --------------- Error mapping ---------------
    @app.exception_handler(StoreUnavailable)
    async def store_unavailable(request: Request, exc: StoreUnavailable):
        return JSONResponse(status_code=503, content={"detail": "persistence unavailable"})

    @app.exception_handler(AuthError)
    async def auth_failed(request: Request, exc: AuthError):
        return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})

    @app.exception_handler(DuplicateEmail)
    async def duplicate_email(request: Request, exc: DuplicateEmail):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(InvalidStatusTransition)
    async def invalid_transition(request: Request, exc: InvalidStatusTransition):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.get("/health")
    def health(portal: Portal = Depends(get_portal)):
        return {
            "status": "ok",
            "version": settings.APP_VERSION,
            "narrative": "remote" if portal.pipeline.narrator.available else "fallback-only",
        }

    # --------------- Auth ----------------
    @app.post("/auth/register", status_code=201)
    def register(req: RegisterRequest, portal: Portal = Depends(get_portal)):
        user = portal.registry.register_student(
            name=req.name, email=req.email, password=req.password,
            register_no=req.register_no, department=req.department,
        )
        return public(user)

    @app.post("/auth/login")
    def login(req: LoginRequest, portal: Portal = Depends(get_portal)):
        return public(portal.registry.authenticate(req.email, req.password, req.role))

    # --------------- Users ----------------
    @app.get("/users", response_model=List[dict])
    def list_users(portal: Portal = Depends(get_portal)):
        return [public(u) for u in portal.registry.users()]

    @app.post("/users")
    def save_user(user: User, portal: Portal = Depends(get_portal)):
        portal.registry.save(user)
        return {"id": user.id}

    @app.post("/users/{user_id}/status")
    def update_status(user_id: str, decision: StatusDecision, portal: Portal = Depends(get_portal)):
        admin = require_user(portal, decision.admin_id, UserRole.ADMIN)
        user = review_registration(portal.registry, portal.audit, admin, user_id, decision.status)
        if user is None:
            raise HTTPException(404, detail=f"user {user_id} not found")
        return public(user)

    # --------------- Submit + predict ----------------
    @app.post("/academic-data", response_model=PredictionResult)
    async def submit(req: AcademicSubmission, portal: Portal = Depends(get_portal)):
        student = require_user(portal, req.student_id, UserRole.STUDENT)
        data = AcademicData(
            student_id=student.id, student_name=student.name,
            attendance=req.attendance, internal_marks=req.internal_marks,
            assignment_score=req.assignment_score,
        )
        return await portal.pipeline.submit_and_predict(data)

    @app.get("/predictions/by-data/{data_id}", response_model=PredictionResult)
    def prediction_for_data(data_id: str, portal: Portal = Depends(get_portal)):
        pred = portal.profiles.prediction_for_data(data_id)
        if pred is None:
            raise HTTPException(404, detail=f"no prediction for {data_id}")
        return pred

    # --------------- Profiles ----------------
    @app.get("/profiles", response_model=List[StudentFullProfile])
    def profiles(portal: Portal = Depends(get_portal)):
        return portal.profiles.student_profiles()

    @app.get("/profiles/metrics", response_model=RiskDistribution)
    def profile_metrics(portal: Portal = Depends(get_portal)):
        return portal.profiles.risk_distribution()

    @app.get("/students/{student_id}/history", response_model=List[AcademicData])
    def history(student_id: str, portal: Portal = Depends(get_portal)):
        return portal.profiles.student_history(student_id)

    # --------------- Notifications ----------------
    @app.get("/notifications", response_model=List[SystemNotification])
    def list_notifications(portal: Portal = Depends(get_portal)):
        return portal.notifications.list()

    @app.post("/notifications", response_model=SystemNotification, status_code=201)
    def add_notification(note: NotificationCreate, portal: Portal = Depends(get_portal)):
        return portal.notifications.add(
            title=note.title, message=note.message, type=note.type,
            link_tab=note.link_tab, student_id=note.student_id,
        )

    @app.post("/notifications/read-all")
    def mark_all_read(portal: Portal = Depends(get_portal)):
        portal.notifications.mark_all_as_read()
        return {"unread": portal.notifications.unread_count()}

    @app.post("/notifications/{notification_id}/read")
    def mark_read(notification_id: str, portal: Portal = Depends(get_portal)):
        portal.notifications.mark_as_read(notification_id)
        return {"unread": portal.notifications.unread_count()}

    # --------------- Audit log ----------------
    @app.get("/audit-logs", response_model=List[AuditLog])
    def list_logs(portal: Portal = Depends(get_portal)):
        return portal.audit.logs()

    @app.post("/audit-logs", response_model=AuditLog, status_code=201)
    def log_action(entry: AuditLogCreate, portal: Portal = Depends(get_portal)):
        admin = require_user(portal, entry.admin_id, UserRole.ADMIN)
        return portal.audit.log_action(admin, entry.action, entry.target_id, entry.target_name)

    # --------------- Feedback ----------------
    @app.get("/feedback", response_model=List[UserFeedback])
    def list_feedback(portal: Portal = Depends(get_portal)):
        return portal.feedback.list()

    @app.post("/feedback", response_model=UserFeedback, status_code=201)
    def add_feedback(req: FeedbackCreate, portal: Portal = Depends(get_portal)):
        student = require_user(portal, req.student_id, UserRole.STUDENT)
        return portal.feedback.add(student, req.message)

    return app


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(create_app(), host="0.0.0.0", port=port)
