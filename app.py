# app.py: local entry point for the risk register API (uvicorn app:app)
import os
import sys

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
SRC_DIR = os.path.join(BASE_DIR, "src")

# Runs from a checkout without `pip install -e .`
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

import uvicorn  # noqa: E402

from risk_register.main import app  # noqa: E402

if __name__ == "__main__":
    uvicorn.run(
        app,
        host=os.getenv("RISK_REGISTER_HOST", "127.0.0.1"),
        port=int(os.getenv("RISK_REGISTER_PORT", "8000")),
    )
