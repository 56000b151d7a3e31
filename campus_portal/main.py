import logging

from fastapi import FastAPI

from campus_portal.core.logging_middleware import LoggingMiddleware
from campus_portal.db.init_db import init_db
from campus_portal.routers.assignments import router as assignments_router
from campus_portal.routers.late_requests import router as late_requests_router
from campus_portal.routers.submissions import router as submissions_router

logging.basicConfig(level=logging.INFO)

app = FastAPI(title="Campus Portal")

# Middleware
app.add_middleware(LoggingMiddleware)


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


# Startup event
@app.on_event("startup")
def on_startup():
    init_db()


# Include routers
app.include_router(assignments_router, tags=["assignments"])
app.include_router(submissions_router, tags=["submissions"])
app.include_router(late_requests_router, tags=["late-requests"])
