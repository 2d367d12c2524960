"""
FastAPI app

- Answer storage, checklist template and photo endpoints under /api
- Uploaded photos served under /uploads
- CORS configured for the single-page client during development
"""
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file before reading config
project_root = Path(__file__).parent.parent
load_dotenv(dotenv_path=project_root / '.env')

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import router, uploads_router
from app.api.middleware import TimingMiddleware
from app.core.config import CORS_ORIGINS
from app.core.logging import configure_logging

configure_logging()

app = FastAPI(title="Property inspection API")

# Add timing middleware for performance monitoring
app.add_middleware(TimingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")

# Uploaded photos, addressed by the imageUrl returned on upload
app.include_router(uploads_router)


@app.get("/")
async def root():
    """
    Basic health check
    """
    return {"status": "ok"}
