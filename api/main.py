import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import LOG_LEVEL, allowed_origins
from .errors import register_exception_handlers
from .middleware import RequestLoggingMiddleware
from .routes import router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(
    title="Site Builder API",
    description=(
        "Migrates a business's existing website into a generated Astro site: scrapes the "
        "current site, gathers a creative brief, generates the site files with a language "
        "model and commits them to the client's GitHub repository."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# middleware stack; the last one added is outermost
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins(),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

register_exception_handlers(app)

app.include_router(router)
