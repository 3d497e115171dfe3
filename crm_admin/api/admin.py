from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from typing import Callable, Dict, Optional

from crm_admin.core.logger import logger
from crm_admin.services.record_kinds import RECORD_KINDS, RecordKind
from crm_admin.services.view_controller import DeleteOutcome, ViewController, ViewState

router = APIRouter()


class ControllerRegistry:
    """One ViewController per record kind, created on first use."""

    def __init__(self, factory: Optional[Callable[[RecordKind], ViewController]] = None):
        self._factory = factory or ViewController
        self._controllers: Dict[str, ViewController] = {}

    def get(self, kind_key: str) -> ViewController:
        if kind_key not in RECORD_KINDS:
            raise KeyError(kind_key)
        if kind_key not in self._controllers:
            self._controllers[kind_key] = self._factory(RECORD_KINDS[kind_key])
        return self._controllers[kind_key]


class CriteriaUpdateRequest(BaseModel):
    search_term: Optional[str] = None
    filters: Optional[Dict[str, str]] = None
    sort: Optional[str] = None


async def get_controller(kind: str, request: Request) -> ViewController:
    registry: ControllerRegistry = request.app.state.registry
    try:
        controller = registry.get(kind)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown record kind '{kind}'")

    # First visit behaves like mounting the screen
    if controller.state == ViewState.IDLE:
        await controller.activate()
    return controller


@router.get("/kinds")
async def list_kinds():
    return {"kinds": [kind.describe() for kind in RECORD_KINDS.values()]}


@router.get("/{kind}")
async def get_view(controller: ViewController = Depends(get_controller)):
    return controller.view.to_json()


@router.patch("/{kind}/criteria")
async def update_criteria(req: CriteriaUpdateRequest, controller: ViewController = Depends(get_controller)):
    # Validate everything first so a bad field leaves the criteria untouched
    try:
        sort = controller.criteria.validate_sort(req.sort) if req.sort is not None else None
        for name, value in (req.filters or {}).items():
            controller.criteria.validate_filter(name, value)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    if req.search_term is not None:
        controller.set_search_term(req.search_term)
    for name, value in (req.filters or {}).items():
        controller.set_filter(name, value)
    if sort is not None:
        controller.set_sort(sort)

    return controller.view.to_json()


@router.post("/{kind}/criteria/clear")
async def clear_criteria(controller: ViewController = Depends(get_controller)):
    controller.clear_filters()
    return controller.view.to_json()


@router.post("/{kind}/refresh")
async def refresh(controller: ViewController = Depends(get_controller)):
    snapshot = await controller.refresh()
    return snapshot.to_json()


@router.delete("/{kind}/records/{record_id}")
async def delete_record(record_id: str, confirm: bool = False, controller: ViewController = Depends(get_controller)):
    outcome = await controller.delete(record_id, confirm=lambda _prompt: confirm)

    if outcome == DeleteOutcome.CANCELLED:
        raise HTTPException(
            status_code=409,
            detail={"message": "Confirmation required", "prompt": controller.kind.delete_prompt},
        )
    if outcome == DeleteOutcome.FAILED:
        raise HTTPException(status_code=502, detail=f"Could not delete {controller.kind.singular} {record_id}")

    logger.info(f"🗑️ {controller.kind.singular.capitalize()} {record_id} removed via console API")
    return controller.view.to_json()
