"""Local entry point: ``python -m planner``."""

from __future__ import annotations

import uvicorn

from planner.app.main import create_app

if __name__ == "__main__":
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
