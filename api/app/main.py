"""FastAPI application entry point."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.api import clearances, departments, students, notifications
from app.api.errors import register_error_handlers
from app.core.config import settings
from app.core.logging_config import configure_logging

configure_logging()

app = FastAPI(title="Clearance Tracker", version="1.0.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Routes
app.include_router(clearances.router)
app.include_router(departments.router)
app.include_router(students.router)
app.include_router(notifications.router)


@app.get("/")
def read_root():
    return {"message": "Clearance Tracker API"}
