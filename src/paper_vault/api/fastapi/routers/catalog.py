from fastapi import APIRouter

from paper_vault.papers.catalog import catalog_options
from paper_vault.papers.schemas import CatalogOut

from ..deps import CatalogDep

ROUTER_PREFIX = "/catalog"
ROUTER_TAG = "catalog"

router = APIRouter()


@router.get("", response_model=CatalogOut)
async def get_catalog(catalog: CatalogDep):
    return catalog_options(catalog)
