# controller/lookup_controller.py
from typing import Any, Dict
from fastapi import APIRouter, Depends, Request, status
from starlette.datastructures import QueryParams
from core.lookup_catalog import LOOKUP_ROUTES, LookupRoute
from controller.controller_dependencies import get_journal, rate_limit
from service.journal_coordinator import JournalCoordinator
from service.lookup_service import LookupService
from util.errors import AppError

lookup_router = APIRouter(dependencies=[Depends(rate_limit)])


def collect_params(route: LookupRoute, query: QueryParams) -> Dict[str, str]:
    """Required params (all must be non-empty) plus defaults the caller may override."""
    missing = [name for name in route.required if not query.get(name)]
    if missing:
        raise AppError(f"{', '.join(missing)} required", status.HTTP_400_BAD_REQUEST)
    params = {name: query[name] for name in route.required}
    for name, default in route.defaults.items():
        params[name] = query.get(name) or default
    return params


def _make_handler(route: LookupRoute):
    async def handler(
        request: Request,
        service: LookupService = Depends(LookupService),
        journal: JournalCoordinator = Depends(get_journal),
    ) -> Any:
        params = collect_params(route, request.query_params)
        result = await service.lookup(route, params)
        # Fire-and-forget: the response does not wait for the journal.
        journal.record(route.path, params, result)
        return result

    handler.__name__ = f"lookup_{route.path.strip('/').replace('-', '_')}"
    return handler


for _route in LOOKUP_ROUTES:
    lookup_router.add_api_route(
        _route.path, _make_handler(_route), methods=["GET"], status_code=status.HTTP_200_OK
    )
