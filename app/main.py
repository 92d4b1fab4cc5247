import os
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from motor.motor_asyncio import AsyncIOMotorClient
import uvicorn

from app.courses.app import setup_course_routes, startup_course_system
from app.utils.logger import configure_logging, set_request_id, clear_request_id

load_dotenv()

logger = configure_logging()

app = FastAPI(title="Eduwme Progress API")

# MongoDB Configuration
MONGO_URL = os.getenv("MONGO_URL", "mongodb://localhost:27017")
MONGO_DATABASE = os.getenv("MONGO_DATABASE", "eduwme")
client = AsyncIOMotorClient(MONGO_URL)
db = client[MONGO_DATABASE]


@app.on_event("startup")
async def startup_event():
    await startup_course_system(db)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_logger(request: Request, call_next):
    rid = set_request_id(request.headers.get("x-request-id"))
    try:
        logger.info("request start method=%s path=%s", request.method, request.url.path)
        response = await call_next(request)
        logger.info("request end status=%s method=%s path=%s", response.status_code, request.method, request.url.path)
        response.headers["x-request-id"] = rid
        return response
    finally:
        clear_request_id()


@app.get("/")
async def root():
    return {"message": "Progress API is up and running."}


# ==================== ROUTER REGISTRATION ====================
setup_course_routes(app)
# ============================================================


if __name__ == "__main__":
    port = int(os.getenv("PORT", 3000))
    uvicorn.run(app, host="0.0.0.0", port=port)
