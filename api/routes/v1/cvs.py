"""
api/routes/v1/cvs.py -- CV document routes for the cvshare REST API.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET    /cvs/public/{cv_id}  -- public share link (no auth, is_public required)
  POST   /cvs                 -- create CV owned by the caller
  GET    /cvs                 -- caller's CVs, most recently updated first
  GET    /cvs/{cv_id}         -- read (owner only)
  PUT    /cvs/{cv_id}         -- update (owner only)
  DELETE /cvs/{cv_id}         -- delete (owner only)

Ownership:
  Every owner-only route loads the CV through cvs.access.get_owned_cv(),
  which raises 404 for a missing CV and 401 for someone else's CV before the
  handler touches it. The owner of a new CV is always the token's user; any
  owner field in the body is ignored by the request model.
"""

from fastapi import APIRouter, Depends, Request

from api.models import CVCreate, CVResponse, CVUpdate, MessageResponse
from auth.dependencies import get_current_user
from auth.models import User
from cvs.access import get_owned_cv, get_public_cv
from cvs.store import CVStore

# The public share route must not require auth, so it lives on its own
# router. Everything on `router` requires a bearer token via the router-level
# dependency.
public_router = APIRouter()
router = APIRouter(dependencies=[Depends(get_current_user)])


# ---------------------------------------------------------------------------
# GET /cvs/public/{cv_id} -- share link
# ---------------------------------------------------------------------------


@public_router.get("/cvs/public/{cv_id}", response_model=CVResponse)
def get_public(request: Request, cv_id: int) -> CVResponse:
    """Return a CV whose owner has made it public. 403 otherwise."""
    cv_store: CVStore = request.app.state.cv_store
    return CVResponse.from_domain(get_public_cv(cv_store, cv_id))


# ---------------------------------------------------------------------------
# POST /cvs -- create
# ---------------------------------------------------------------------------


@router.post("/cvs", response_model=CVResponse, status_code=201)
def create_cv(
    request: Request,
    body: CVCreate,
    current_user: User = Depends(get_current_user),
) -> CVResponse:
    """Create a CV owned by the caller."""
    cv_store: CVStore = request.app.state.cv_store
    cv_id = cv_store.create_cv(body.to_cv(user_id=current_user.id))
    return CVResponse.from_domain(cv_store.get_cv(cv_id))


# ---------------------------------------------------------------------------
# GET /cvs -- list caller's CVs
# ---------------------------------------------------------------------------


@router.get("/cvs", response_model=list[CVResponse])
def list_cvs(request: Request, current_user: User = Depends(get_current_user)) -> list[CVResponse]:
    """Return the caller's CVs, most recently updated first."""
    cv_store: CVStore = request.app.state.cv_store
    return [CVResponse.from_domain(cv) for cv in cv_store.list_for_user(current_user.id)]


# ---------------------------------------------------------------------------
# /cvs/{cv_id} -- owner-only read, update, delete
# ---------------------------------------------------------------------------


@router.get("/cvs/{cv_id}", response_model=CVResponse)
def get_cv(request: Request, cv_id: int, current_user: User = Depends(get_current_user)) -> CVResponse:
    cv_store: CVStore = request.app.state.cv_store
    return CVResponse.from_domain(get_owned_cv(cv_store, cv_id, current_user.id))


@router.put("/cvs/{cv_id}", response_model=CVResponse)
def update_cv(
    request: Request,
    cv_id: int,
    body: CVUpdate,
    current_user: User = Depends(get_current_user),
) -> CVResponse:
    """Replace the sections present in the body; absent sections are kept.

    The body has already been validated section by section, exactly as on
    create, before the ownership check runs.
    """
    cv_store: CVStore = request.app.state.cv_store
    get_owned_cv(cv_store, cv_id, current_user.id)
    cv_store.update_cv(cv_id, **body.to_fields())
    return CVResponse.from_domain(get_owned_cv(cv_store, cv_id, current_user.id))


@router.delete("/cvs/{cv_id}", response_model=MessageResponse)
def delete_cv(request: Request, cv_id: int, current_user: User = Depends(get_current_user)) -> MessageResponse:
    cv_store: CVStore = request.app.state.cv_store
    get_owned_cv(cv_store, cv_id, current_user.id)
    cv_store.delete_cv(cv_id)
    return MessageResponse(message="CV removed")
