"""
To launch:
uvicorn flowtrack.app:app --reload
"""
from flowtrack.utils import load_local_env

load_local_env()

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from flowtrack import __version__
from flowtrack.routes import api_router
from flowtrack.services.client import get_apper_client
from flowtrack.services.notifier import notifier_factory


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


# Toast polling hits /notifications every few seconds; keep it out of access logs
class NotificationPollFilter(logging.Filter):
    def filter(self, record):
        if hasattr(record, 'scope') and record.scope.get('path', '').endswith('/notifications'):
            return False
        if '/notifications' in str(record.getMessage()):
            return False
        return True


uvicorn_access_logger = logging.getLogger("uvicorn.access")
uvicorn_access_logger.addFilter(NotificationPollFilter())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown"""
    yield
    await notifier_factory().close()
    client = get_apper_client()
    if client is not None:
        await client.close()


app = FastAPI(
    title="FlowTrack",
    description="Task and file records backed by the hosted Apper backend",
    version=__version__,
    lifespan=lifespan
)

app.include_router(api_router)
