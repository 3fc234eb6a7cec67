from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI

from apis.maps import router as maps_router
from config.logging_config import setup_logging
from core.infrastructure.lifecycle import lifespan
from core.infrastructure.request_logging_middleware import RequestLoggingMiddleware
from core.metadata import APP_TITLE, VERSION
from exceptions.handlers import setup_exception_handlers

setup_logging()

app = FastAPI(title=APP_TITLE, version=VERSION, lifespan=lifespan)

app.add_middleware(RequestLoggingMiddleware)
app.include_router(maps_router)

setup_exception_handlers(app)
