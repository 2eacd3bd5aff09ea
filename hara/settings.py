# hara/settings.py
import os
from typing import List, Optional

from dotenv import load_dotenv, find_dotenv
from pydantic import BaseModel

load_dotenv(find_dotenv())

# Models to try after the env override, in order
DEFAULT_MODELS = ("gpt-4o", "gpt-4o-mini")

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


class Settings(BaseModel):
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None   # Azure/OpenRouter/self-hosted proxy
    openai_model: Optional[str] = None
    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    max_upload_mb: float = 50.0
    sample_pdf_path: str = "LKAS_G2.0_Item_Definition.pdf"
    serpapi_api_key: Optional[str] = None
    # Return the fixed LKAS report instead of the computed one
    hardcoded_report: bool = False

    @property
    def model_candidates(self) -> List[str]:
        out: List[str] = []
        for mid in (self.openai_model, *DEFAULT_MODELS):
            mid = (mid or "").strip()
            if mid and mid not in out:
                out.append(mid)
        return out

    @classmethod
    def from_env(cls) -> "Settings":
        cors = os.environ.get("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
        return cls(
            openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
            openai_base_url=os.environ.get("OPENAI_BASE_URL") or None,
            openai_model=os.environ.get("OPENAI_MODEL") or None,
            cors_origins=[o.strip() for o in cors.split(",") if o.strip()],
            max_upload_mb=float(os.environ.get("MAX_UPLOAD_MB", "50")),
            sample_pdf_path=os.environ.get("SAMPLE_PDF_PATH", "LKAS_G2.0_Item_Definition.pdf"),
            serpapi_api_key=os.environ.get("SERPAPI_API_KEY") or None,
            hardcoded_report=_env_flag("HARA_HARDCODED_REPORT"),
        )
