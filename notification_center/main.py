from fastapi import FastAPI

from notification_center.api.router import api_router
from notification_center.core.logging_setup import configure_logging

configure_logging()

app = FastAPI(title="Notification Center")
app.include_router(api_router, prefix="/api")
