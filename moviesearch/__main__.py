"""
MovieSearch — Application entry point.

Run with:  python -m moviesearch
           uvicorn moviesearch.main:app --reload
"""

import uvicorn
from moviesearch.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "moviesearch.main:app",
        host=settings.app_host,
        port=settings.app_port,
        log_level=settings.log_level,
        reload=True,
    )
