"""Blog admin entrypoint.

Run with:
  python -m blogadmin
"""

import os
import uvicorn

from blogadmin.logs import configure_logging

def main() -> None:
    host = os.getenv("BLOG_HOST", "0.0.0.0")
    port = int(os.getenv("BLOG_PORT", "8000"))
    reload = os.getenv("BLOG_RELOAD", "false").lower() in {"1", "true", "yes", "y"}
    configure_logging(os.getenv("BLOG_LOG_LEVEL", "info"))
    # log_config=None keeps the structlog handlers installed above
    uvicorn.run("blogadmin.app:app", host=host, port=port, reload=reload, log_config=None)

if __name__ == "__main__":
    main()
