# hf_registry/api/v1/endpoints/filters.py
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ValidationError

from hf_registry.dependencies.registry import get_registry
from hf_registry.schemas.filters import PatientFilter
from hf_registry.services.registry_service import PatientRegistry

router = APIRouter()


class FilterValue(BaseModel):
    value: Any = None  # None clears the dimension


@router.get("", response_model=PatientFilter)
def get_filter(registry: PatientRegistry = Depends(get_registry)) -> PatientFilter:
    """The saved filter applied to every list and dashboard view."""
    return registry.criteria


@router.put("/{key}", response_model=PatientFilter)
def set_filter(
    key: str,
    payload: FilterValue,
    registry: PatientRegistry = Depends(get_registry),
) -> PatientFilter:
    """
    Set one filter dimension, e.g. PUT /filters/lvefGroup {"value": "<20%"}.
    """
    try:
        return registry.set_filter(key, payload.value)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown filter: {key}")
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False, include_input=False),
        )


@router.delete("", response_model=PatientFilter)
def clear_filter(registry: PatientRegistry = Depends(get_registry)) -> PatientFilter:
    return registry.clear_filter()
