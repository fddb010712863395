from __future__ import annotations
import os
import sys
import logging
from pathlib import Path
import uvicorn


def main():
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    default_workers = 1
    try:
        workers = int(os.getenv("WORKERS", str(default_workers)))
    except ValueError:
        workers = default_workers

    # Ensure project root is on sys.path so we can import app
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    from gaitcore.config.settings import settings

    log_level = settings.log_level.lower()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Import the FastAPI app object
    from app import app as fastapi_app

    uvicorn.run(
        fastapi_app,
        host=host,
        port=port,
        workers=workers,
        log_level=log_level,
        reload=False,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )


if __name__ == "__main__":
    main()
