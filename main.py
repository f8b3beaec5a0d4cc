import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

import database
from auth_routes import router as auth_router
from cart_routes import router as cart_router
from config import get_settings
from errors import install_error_handlers
from product_routes import router as product_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is not None:
        try:
            database.ensure_indexes(database.db)
        except PyMongoError as e:
            logger.error("Could not create indexes: %s", e)
    yield


app = FastAPI(title="Storefront API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    expose_headers=["Authorization"],
)

install_error_handlers(app)

app.include_router(auth_router)
app.include_router(product_router)
app.include_router(cart_router)


# Routes
@app.get("/")
def read_root():
    return {"message": "Storefront API"}


@app.get("/api/health")
def health():
    db = database.db
    response = {
        "backend": "running",
        "database": "not configured",
        "database_name": None,
        "collections": [],
    }
    if db is None:
        return response
    response["database_name"] = db.name
    try:
        response["collections"] = db.list_collection_names()
        response["database"] = "connected"
    except PyMongoError as e:
        response["database"] = f"error: {str(e)[:80]}"
    return response


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
