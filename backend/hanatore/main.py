import logging
import time

from fastapi import APIRouter, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .errors import HanatoreError
from .settings import settings
from .routers import ai, league, questions, training, users

logging.basicConfig(
	level=getattr(logging, settings.log_level.upper(), logging.INFO),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("hanatore")

app = FastAPI(title="Hanatore API", version=__version__)
app.add_middleware(
	CORSMiddleware,
	allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
	allow_methods=["*"],
	allow_headers=["*"],
)

api = APIRouter(prefix="/api")
api.include_router(users.router)
api.include_router(questions.router)
api.include_router(training.router)
api.include_router(league.router)
api.include_router(ai.router)


@api.get("/subscription/status")
def subscription_status():
	return {"plan": "free", "status": "active"}


app.include_router(api)


@app.get("/")
def root():
	return {
		"name": "Hanatore API",
		"version": __version__,
		"status": "ok",
		"gemini_configured": settings.gemini_configured,
	}


@app.middleware("http")
async def log_requests(request: Request, call_next):
	started = time.perf_counter()
	response = await call_next(request)
	elapsed_ms = (time.perf_counter() - started) * 1000
	logger.info("%s %s %d %.1fms", request.method, request.url.path, response.status_code, elapsed_ms)
	return response


@app.exception_handler(HanatoreError)
async def handle_domain_error(request: Request, exc: HanatoreError):
	return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
	return JSONResponse(
		status_code=422,
		content={
			"error": "validation_error",
			"message": "Invalid request",
			"details": jsonable_encoder(exc.errors()),
		},
	)


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(request: Request, exc: StarletteHTTPException):
	if exc.status_code == 404:
		content = {"error": "not_found", "message": f"Route {request.method} {request.url.path} not found"}
	else:
		content = {"error": "http_error", "message": str(exc.detail)}
	return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
	logger.exception("API Error on %s %s", request.method, request.url.path)
	return JSONResponse(
		status_code=500,
		content={"error": "internal_error", "message": str(exc) or "An unexpected error occurred"},
	)
