"""
ASGI entrypoint: expose `app` for process managers / deployments.

- En production, un process manager (ex: gunicorn + uvicorn workers) importe `fomo_backend.asgi:app`.
- Toute la configuration FastAPI est centralisée dans fomo_backend.app_setup.factory.
"""

from fomo_backend.app import app

if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(
        "fomo_backend.asgi:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
