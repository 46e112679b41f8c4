import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tinylink import crud, database, models, qr_utils, redirects, schemas, shortcodes
from tinylink.errors import LinkError, NotFound

load_dotenv(Path(__file__).parent.parent / ".env")

ENVIRONMENT = os.getenv("ENVIRONMENT", "dev")

# --- Logging ---
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
logger = logging.getLogger("tinylink")

# --- DB tables ---
models.Base.metadata.create_all(bind=database.engine)

app = FastAPI(
    title="TinyLink",
    description="Shorten URLs, redirect through short codes and count the clicks.",
    version="1.0.0",
)

# --- CORS (allow frontend dev servers, etc.) ---
origins = ["*"] if ENVIRONMENT == "dev" else [
    os.getenv("PUBLIC_BASE_URL", "http://localhost:8000"),
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------- Error mapping ----------
@app.exception_handler(LinkError)
def link_error_handler(request: Request, exc: LinkError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0]["msg"].removeprefix("Value error, ") if errors else "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})

@app.exception_handler(SQLAlchemyError)
def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Server error"})

# ---- Serve frontend (same origin) ----
FRONTEND_DIR = Path(__file__).parent / "frontend"
app.mount("/static", StaticFiles(directory=FRONTEND_DIR), name="static")

@app.get("/", include_in_schema=False)
def serve_dashboard():
    return FileResponse(FRONTEND_DIR / "index.html")

@app.get("/code/{code}", include_in_schema=False)
def serve_stats(code: str):
    return FileResponse(FRONTEND_DIR / "stats.html")

def public_base_url(request: Request) -> str:
    return os.getenv("PUBLIC_BASE_URL") or str(request.base_url).rstrip("/")

# Small config for frontend to know public base URL
@app.get("/config", response_model=schemas.ConfigOut, include_in_schema=False)
def get_config(request: Request):
    return {"public_base_url": public_base_url(request)}

# Health check (useful for uptime monitors & load balancers)
@app.get("/health", include_in_schema=False)
def health():
    return {"status": "ok", "env": ENVIRONMENT}

# ---------- API ----------
@app.get("/api/links", response_model=list[schemas.LinkOut])
def list_links(q: str | None = Query(None, max_length=2048), db: Session = Depends(database.get_db)):
    return crud.get_links(db, q=q)

@app.post("/api/links", response_model=schemas.LinkOut, status_code=status.HTTP_201_CREATED)
def create_link(link_in: schemas.LinkCreate, db: Session = Depends(database.get_db)):
    link = shortcodes.allocate(db, link_in.target_url, link_in.code)
    logger.info("Created link %s -> %s", link.code, link.target_url)
    return link

@app.get("/api/links/{code}", response_model=schemas.LinkOut)
def read_link(code: str, db: Session = Depends(database.get_db)):
    return crud.get_link(db, code)

@app.delete("/api/links/{code}", response_model=schemas.SuccessOut)
def delete_link(code: str, db: Session = Depends(database.get_db)):
    crud.delete_link(db, code)
    logger.info("Deleted link %s", code)
    return {"success": True}

@app.get("/api/links/{code}/qr", response_model=schemas.QrOut)
def link_qr(code: str, request: Request, db: Session = Depends(database.get_db)):
    link = crud.get_link(db, code)
    url = qr_utils.short_url(public_base_url(request), link.code)
    return {"qr_base64": qr_utils.generate_qr_base64(url)}

# Redirect /{code}; registered last so it never shadows the routes above
@app.get("/{code:path}", include_in_schema=False)
def redirect(code: str, db: Session = Depends(database.get_db)):
    try:
        target_url = redirects.resolve(db, code)
    except NotFound:
        return PlainTextResponse("Not Found", status_code=404)
    except SQLAlchemyError:
        logger.exception("Store failure resolving %s", code)
        return PlainTextResponse("Server error", status_code=500)
    return RedirectResponse(url=target_url, status_code=status.HTTP_302_FOUND)

def run():
    import uvicorn

    uvicorn.run(
        "tinylink.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", 8000)),
        reload=ENVIRONMENT == "dev",
    )
