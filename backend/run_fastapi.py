"""
Start the marketchat API with uvicorn.

Usage:
    APP_ENV=development python run_fastapi.py

Equivalent to:
    uvicorn marketchat.fastapi_app:create_fastapi_app --factory --port 5001 --reload

Development mode reloads on code changes; every other APP_ENV runs a single
worker with warning-level access logs.
"""

import os

from dotenv import load_dotenv

load_dotenv()

import uvicorn

from marketchat.config.settings import get_config

if __name__ == "__main__":
    env = os.getenv("APP_ENV", "development")
    config = get_config(env)
    port = int(os.getenv("PORT", 5001))
    host = os.getenv("HOST", "0.0.0.0")

    print(f"Starting marketchat API ({env}) on http://{host}:{port}")
    print(f"API docs at http://{host}:{port}/docs")

    uvicorn.run(
        "marketchat.fastapi_app:create_fastapi_app",
        factory=True,
        host=host,
        port=port,
        reload=config.DEBUG,
        log_level="info" if config.DEBUG else "warning",
    )
