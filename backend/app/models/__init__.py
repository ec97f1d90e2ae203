from app.models.audit_record import AuditKind, AuditRecord  # noqa: F401
from app.models.chat_session import ChatSession  # noqa: F401
from app.models.classroom import Classroom  # noqa: F401
from app.models.faculty import Faculty  # noqa: F401
from app.models.schedule import ScheduleEntry, ScheduleStatus  # noqa: F401
from app.models.student import Student  # noqa: F401
