# app.py
import logging
from pathlib import Path as _Path
from typing import List, Optional

from fastapi import Depends, FastAPI, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from pydantic import BaseModel, ConfigDict, Field

from hara.parse_pdf import ExtractionError
from hara.pipeline import generate_hara
from hara.settings import Settings
from hara.video import fetch_transcript_text, search_videos

# --- logging ---
logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
log = logging.getLogger("hara")

settings = Settings.from_env()

app = FastAPI(title="HARA Assistant API", version="0.3.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_settings() -> Settings:
    return settings


class HaraResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    markdown: str
    item_name: str = Field(alias="itemName")
    item_id: str = Field(alias="itemId")
    used_llm: bool = Field(alias="usedLLM")


class VideoItem(BaseModel):
    id: Optional[str] = None
    title: Optional[str] = None
    channel: str = ""
    thumb: str
    duration: Optional[str] = None


class SearchResponse(BaseModel):
    items: List[VideoItem]


class TranscriptResponse(BaseModel):
    text: str


@app.get("/")
def health():
    return {"ok": True, "name": "hara-api", "version": app.version}


@app.get("/version")
def version():
    return {"name": "hara-api", "version": app.version}


@app.post("/hara", response_model=HaraResponse)
async def hara(file: Optional[UploadFile] = File(None), cfg: Settings = Depends(get_settings)):
    if file is None or not file.filename:
        raise HTTPException(400, "Missing 'file' in form-data")
    ext = _Path(file.filename).suffix.lower()
    if ext and ext != ".pdf":
        raise HTTPException(415, "Supported: PDF only")

    content = await file.read()
    if not content:
        raise HTTPException(400, "Uploaded file is empty")
    size_mb = len(content) / (1024 * 1024)
    if size_mb > cfg.max_upload_mb:
        raise HTTPException(413, f"File too large ({size_mb:.1f} MB). Max {cfg.max_upload_mb:.0f} MB.")

    log.info("HARA request for %s (%.2f MB)", file.filename, size_mb)
    try:
        result = await generate_hara(content, file.filename, cfg)
    except ExtractionError as e:
        log.exception("PDF text extraction failed for %s", file.filename)
        raise HTTPException(500, f"Parsing failed: {e}")
    except Exception as e:
        log.exception("HARA generation failed for %s", file.filename)
        raise HTTPException(500, str(e) or "Unexpected error")

    return HaraResponse(
        markdown=result.markdown,
        item_name=result.item_name,
        item_id=result.item_id,
        used_llm=result.used_llm,
    )


@app.get("/recent-pdf")
def recent_pdf(cfg: Settings = Depends(get_settings)):
    path = _Path(cfg.sample_pdf_path)
    if not path.is_file():
        raise HTTPException(404, "Recent PDF not found")
    return FileResponse(
        path=str(path),
        media_type="application/pdf",
        headers={"Cache-Control": "public, max-age=3600"},
    )


@app.get("/api/search", response_model=SearchResponse)
async def search(q: str = "", cfg: Settings = Depends(get_settings)):
    if not cfg.serpapi_api_key:
        raise HTTPException(500, "Missing SERPAPI_API_KEY")
    if not q:
        return {"items": []}
    try:
        items = await run_in_threadpool(search_videos, q, cfg.serpapi_api_key)
    except Exception as e:
        log.exception("Video search failed for %r", q)
        raise HTTPException(500, str(e) or "Search error")
    return {"items": items}


@app.get("/api/transcript", response_model=TranscriptResponse)
async def transcript(id: str = ""):
    if not id:
        return {"text": ""}
    return {"text": await run_in_threadpool(fetch_transcript_text, id)}
