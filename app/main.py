from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
import logging

# Load environment variables from .env file
load_dotenv()

from app.api import health, metrics, sessions, stats, stopwatch, timer
from app.database import SessionLocal, engine
from app.models.models import Base
from app.services.session_recorder import SqlSessionRecorder
from app.services.timer_service import TimerRegistry
from app.utils.logging_config import setup_logging

setup_logging()
logger = logging.getLogger("app")

# Create database tables
Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.timer_registry = TimerRegistry(recorder=SqlSessionRecorder(SessionLocal))
    logger.info("Focus timer API started")
    yield
    app.state.timer_registry.close_all()
    logger.info("Focus timer API stopped")


app = FastAPI(
    title="Focus Timer API",
    description="API for the pomodoro focus timer, stopwatch and activity heatmap",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allows all origins
    allow_credentials=True,
    allow_methods=["*"],  # Allows all methods
    allow_headers=["*"],  # Allows all headers
)

# Include routers
app.include_router(health.router, prefix="/api")
app.include_router(metrics.router, prefix="/api")
app.include_router(timer.router, prefix="/api")
app.include_router(sessions.router, prefix="/api")
app.include_router(stopwatch.router, prefix="/api")
app.include_router(stats.router, prefix="/api")

@app.get("/")
async def root():
    return {"message": "Welcome to Focus Timer API"}
