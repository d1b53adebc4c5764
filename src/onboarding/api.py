"""
Onboarding API Endpoints.

HTTP surface over the onboarding assistant. The UI sends reducer
actions as JSON; each business has one assistant held in-process, and
its draft is snapshotted after every mutation so a reload can resume.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, ValidationError

from storefront.config import Settings, get_settings
from storefront.db.adapter import StoreClient
from storefront.db.client import get_client

from .actions import AddOffer, parse_action
from .assistant import OnboardingAssistant
from .forms import OfferValidationError, ensure_valid_offer, get_form_options
from .state import Offer, OfferType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/onboarding", tags=["onboarding"])

# In-memory assistants (keyed by business_id); one editor per draft
_assistants: dict[str, OnboardingAssistant] = {}


# =============================================================================
# Dependencies
# =============================================================================


async def get_store_client() -> StoreClient:
    return await get_client()


def get_assistant(business_id: str, client: StoreClient = Depends(get_store_client)) -> OnboardingAssistant:
    assistant = _assistants.get(business_id)
    if assistant is None:
        assistant = OnboardingAssistant(client, business_id)
        _assistants[business_id] = assistant
    return assistant


def reset_assistants() -> None:
    """Forget every in-process assistant."""
    _assistants.clear()


# =============================================================================
# Request/Response Models
# =============================================================================


class OfferRequest(BaseModel):
    type: OfferType
    name: str
    config: dict[str, Any] = Field(default_factory=dict)


class StateResponse(BaseModel):
    business_id: str
    loaded: bool
    saving: bool
    error: str | None = None
    draft: dict


class CompleteResponse(BaseModel):
    success: bool
    error: str | None = None


def _state_response(assistant: OnboardingAssistant) -> StateResponse:
    return StateResponse(
        business_id=assistant.business_id,
        loaded=assistant.loaded,
        saving=assistant.saving,
        error=assistant.error,
        draft=assistant.state.to_dict(),
    )


async def _snapshot(assistant: OnboardingAssistant, settings: Settings) -> None:
    if not settings.onboarding_snapshots_enabled:
        return
    try:
        await assistant.persist_snapshot()
    except Exception:
        raise HTTPException(status_code=500, detail="Failed to save session")


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/options")
async def get_onboarding_options():
    """Choices the wizard renders (payment methods, intervals, offer types)."""
    return get_form_options()


@router.get("/{business_id}/state", response_model=StateResponse)
async def get_onboarding_state(assistant: OnboardingAssistant = Depends(get_assistant)) -> StateResponse:
    return _state_response(assistant)


@router.post("/{business_id}/load", response_model=StateResponse)
async def load_onboarding(assistant: OnboardingAssistant = Depends(get_assistant)) -> StateResponse:
    """Fold persisted data into the draft (first call only)."""
    await assistant.load()
    return _state_response(assistant)


@router.post("/{business_id}/actions", response_model=StateResponse)
async def dispatch_action(
    action: dict[str, Any],
    assistant: OnboardingAssistant = Depends(get_assistant),
    settings: Settings = Depends(get_settings),
) -> StateResponse:
    """Apply one reducer action, e.g. {"type": "add_category", "category": {...}}."""
    try:
        parsed = parse_action(action)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    assistant.store.dispatch(parsed)
    await _snapshot(assistant, settings)
    return _state_response(assistant)


@router.post("/{business_id}/offers", response_model=StateResponse)
async def add_offer(
    request: OfferRequest,
    assistant: OnboardingAssistant = Depends(get_assistant),
    settings: Settings = Depends(get_settings),
) -> StateResponse:
    """Validate a drafted offer against the drafted menu, then add it."""
    offer = Offer(type=request.type, name=request.name, config=request.config)
    try:
        ensure_valid_offer(offer, assistant.state.categories)
    except OfferValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors)

    assistant.store.dispatch(AddOffer(offer=offer))
    await _snapshot(assistant, settings)
    return _state_response(assistant)


@router.post("/{business_id}/next", response_model=StateResponse)
async def next_step(
    assistant: OnboardingAssistant = Depends(get_assistant),
    settings: Settings = Depends(get_settings),
) -> StateResponse:
    """Complete the current step, save its data, and advance."""
    completed = assistant.navigator.current_step
    assistant.navigator.next()

    await assistant.save_step_data(completed)
    try:
        await assistant.update_progress(assistant.navigator.current_step)
    except Exception as e:
        logger.error(f"Failed to update onboarding progress: {e}")
        raise HTTPException(status_code=500, detail="Failed to update progress")

    await _snapshot(assistant, settings)
    return _state_response(assistant)


@router.post("/{business_id}/previous", response_model=StateResponse)
async def previous_step(
    assistant: OnboardingAssistant = Depends(get_assistant),
    settings: Settings = Depends(get_settings),
) -> StateResponse:
    assistant.navigator.previous()
    await _snapshot(assistant, settings)
    return _state_response(assistant)


@router.post("/{business_id}/steps/{step}", response_model=StateResponse)
async def go_to_step(
    step: int,
    assistant: OnboardingAssistant = Depends(get_assistant),
    settings: Settings = Depends(get_settings),
) -> StateResponse:
    if step < 1:
        raise HTTPException(status_code=400, detail="Step must be 1 or more")
    assistant.navigator.go_to(step)
    await _snapshot(assistant, settings)
    return _state_response(assistant)


@router.post("/{business_id}/complete", response_model=CompleteResponse)
async def complete_onboarding(assistant: OnboardingAssistant = Depends(get_assistant)) -> CompleteResponse:
    """Run the full save. Safe to call again after a failure."""
    success = await assistant.save_all()
    return CompleteResponse(success=success, error=assistant.error)
