"""
ASGI/WSGI entry point
"""
from app.main import app

application = app

# For local testing
if __name__ == "__main__":
    import uvicorn
    from app.config import settings
    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level="info" if not settings.DEBUG else "debug"
    )
