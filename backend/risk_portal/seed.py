"""Built-in accounts. They are always present in user reads and never overwritten."""
from .schemas import User, UserRole, UserStatus

SEED_USERS = (
    User(id="1", name="John Doe", email="john@student.com", role=UserRole.STUDENT,
         status=UserStatus.APPROVED, password="student123",
         register_no="REG-2024-001", department="Computer Science"),
    User(id="2", name="Jane Smith", email="jane@student.com", role=UserRole.STUDENT,
         status=UserStatus.APPROVED, password="student123",
         register_no="REG-2024-002", department="Data Science"),
    User(id="3", name="Dr. Sarah Wilson", email="admin@faculty.com", role=UserRole.ADMIN,
         status=UserStatus.APPROVED, password="admin123",
         department="Faculty of Engineering"),
)
