import logging
from typing import List, Optional

from fastapi import FastAPI
from pydantic import BaseModel, Field

from backend.config import Config
from backend.pipeline_graph import build_pipeline, run_compare_sync
from backend.services.catalog import PhoneCatalog

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


class CompareBody(BaseModel):
    budget: Optional[float] = Field(default=None, gt=0)
    priorities: List[str] = Field(default_factory=list)
    requirements: Optional[str] = None
    require_5g: bool = False
    head_to_head: bool = False


def create_app(cfg: Optional[Config] = None, catalog: Optional[PhoneCatalog] = None, client=None) -> FastAPI:
    cfg = cfg or Config.from_env()
    catalog = catalog or PhoneCatalog(cfg.PHONES_CSV)
    pipeline = build_pipeline(cfg, catalog=catalog, client=client)

    api = FastAPI(title="Phone Compare AI")

    @api.get("/health")
    def health():
        return {"status": "ok", "models": cfg.CANDIDATE_MODELS}

    @api.get("/phones")
    def phones(price_range: Optional[str] = None):
        items = catalog.by_price_range(price_range) if price_range else catalog.all()
        return {"count": len(items), "phones": [p.model_dump() for p in items]}

    @api.post("/compare")
    def compare(req: CompareBody):
        """
        Narrow the catalog, run the AI comparison and return the validated
        result. Failures come back in "error" with comparison set to null.
        """
        state = run_compare_sync(
            pipeline,
            priorities=req.priorities,
            budget=req.budget,
            requirements=req.requirements,
            require_5g=req.require_5g,
            head_to_head=req.head_to_head,
        )
        comparison = state.get("comparison")
        return {
            "comparison": comparison.model_dump() if comparison is not None else None,
            "phones": [p.model_dump() for p in state.get("phones", [])],
            "error": state.get("error"),
            "processing_time_ms": state.get("processing_time_ms", 0),
        }

    return api


api = create_app()
