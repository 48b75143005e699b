# backend/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv

from config import settings
from database import SessionLocal, init_db
from services.provisioning import provision
from utils.errors import AccessControlError
from utils.storage import upload_dir

load_dotenv()

# Router imports
from routes.auth import router as auth_router
from routes.roles import router as roles_router
from routes.users import router as users_router
from routes.modules import router as modules_router
from routes.logs import router as logs_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Schema + protected Admin role / system admin account
    init_db()
    db = SessionLocal()
    try:
        provision(db)
    finally:
        db.close()
    yield


app = FastAPI(title="Access Core API", version="1.0.0", lifespan=lifespan)

# Profile pictures are served from the upload directory
app.mount("/uploads", StaticFiles(directory=str(upload_dir())), name="uploads")

# CORS Configuration
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

if settings.FRONTEND_URL:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Business-rule violations: {success:false, message} with the error's own status
@app.exception_handler(AccessControlError)
async def access_control_error_handler(request: Request, exc: AccessControlError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s %s", request.method, request.url.path, exc.message, exc.details)
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


# Malformed requests are validation failures (400), not 422
@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{where}: {first.get('msg')}" if where else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"success": False, "message": message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


# Router registration
app.include_router(auth_router)
app.include_router(roles_router)
app.include_router(users_router)
app.include_router(modules_router)
app.include_router(logs_router)


@app.get("/")
def read_root():
    return {"success": True, "message": "Access Core API is running"}
