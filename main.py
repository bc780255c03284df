"""
ErrandHub Backend
=================
Entry point for the errand lifecycle API.

    uvicorn main:app --reload        # development
    python main.py                   # host/port from settings
"""

import uvicorn

from errandhub.api.app import create_app
from errandhub.config import settings

app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
