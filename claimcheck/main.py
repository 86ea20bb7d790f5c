"""
ClaimCheck HTTP app.

Reads `.env` from the project root before anything touches Settings, sets the
log level from LOG_LEVEL, and serves the claims router under /api/claims.
The orchestrator itself is built lazily on the first claim request.

    uvicorn claimcheck.main:app --reload
"""

import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from claimcheck import __version__

PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=PROJECT_ROOT / ".env")

from claimcheck.config import get_settings  # noqa: E402
from claimcheck.router import router as claims_router  # noqa: E402

logging.basicConfig(
    level=get_settings().LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="ClaimCheck",
    version=__version__,
    description="Grounded insurance claim decisions with citation checks and business rules",
)
app.include_router(claims_router, prefix="/api")


@app.get("/")
def read_root():
    return {"message": "ClaimCheck is running", "version": __version__}
