import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from schooldesk.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="schooldesk")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
)

from schooldesk.endpoints.api.v1.timetable_assignment import router as timetable_assignment_router
app.include_router(timetable_assignment_router)

from schooldesk.endpoints.api.v1.attendance_roster import router as attendance_roster_router
app.include_router(attendance_roster_router)
