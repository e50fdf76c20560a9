import logging

from fastapi import FastAPI

from classroom.core.config import LOG_LEVEL
from classroom.core.errors import register_error_handlers
from classroom.core.logging_middleware import LoggingMiddleware
from classroom.db.init_db import init_db

from classroom.routers.assignments import router as assignments_router
from classroom.routers.attachments import router as attachments_router
from classroom.routers.classes import router as classes_router
from classroom.routers.comments import router as comments_router
from classroom.routers.enrollments import router as enrollments_router
from classroom.routers.notifications import router as notifications_router
from classroom.routers.submissions import router as submissions_router
from classroom.routers.units import router as units_router
from classroom.routers.users import router as users_router

logging.basicConfig(level=LOG_LEVEL)

app = FastAPI(title="Classroom")

# Middleware
app.add_middleware(LoggingMiddleware)

# Domain errors -> HTTP responses
register_error_handlers(app)


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


# Startup event
@app.on_event("startup")
def on_startup():
    init_db()


# Include routers
app.include_router(users_router, prefix="/users", tags=["users"])
app.include_router(classes_router, prefix="/classes", tags=["classes"])
app.include_router(enrollments_router, prefix="/enrollments", tags=["enrollments"])
app.include_router(notifications_router, prefix="/notifications", tags=["notifications"])
app.include_router(attachments_router, prefix="/attachments", tags=["attachments"])

# These routers define full paths across /classes, /assignments and /submissions
app.include_router(units_router, tags=["units"])
app.include_router(assignments_router, tags=["assignments"])
app.include_router(submissions_router, tags=["submissions"])
app.include_router(comments_router, tags=["comments"])
