import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

import carts
import categories
import customers
import highlighted
import images
import orders
import products
import users
from config import IMAGEKIT_PRIVATE_KEY, IMAGEKIT_URL_ENDPOINT, LOG_LEVEL, PORT
from database import db, ensure_indexes

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

MARKETPLACE_COLLECTIONS = ("product", "order", "cart", "customer", "category", "highlighted_product", "user")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if db is not None:
        try:
            ensure_indexes(db)
        except PyMongoError as e:
            logger.error(f"Could not create indexes: {e}")
    yield


app = FastAPI(title="Marketplace API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for module in (users, products, carts, orders, customers, categories, highlighted, images):
    app.include_router(module.router)


@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Database error", "error": str(exc)})


@app.get("/")
def read_root():
    return {"message": "Marketplace backend is running"}


@app.get("/test")
def database_diagnostics():
    """Connectivity report for the database and the image CDN settings."""
    report = {
        "backend": "running",
        "database": "not configured",
        "database_name": None,
        "collections": {},
        "imagekit": "configured" if IMAGEKIT_PRIVATE_KEY and IMAGEKIT_URL_ENDPOINT else "not configured",
    }
    if db is None:
        return report

    report["database_name"] = db.name
    try:
        existing = set(db.list_collection_names())
    except PyMongoError as e:
        logger.warning(f"Database diagnostics failed: {e}")
        report["database"] = f"error: {str(e)[:50]}"
        return report

    report["database"] = "connected"
    report["collections"] = {
        name: db[name].estimated_document_count() if name in existing else 0
        for name in MARKETPLACE_COLLECTIONS
    }
    return report


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
