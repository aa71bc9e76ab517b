from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from clientdesk.core.deps import SanitizedInput, get_current_user, require_roles, sanitize_request, validated_body
from clientdesk.db.session import get_db
from clientdesk.models.user import ROLE_ADMIN, User
from clientdesk.schemas.clients import ClientCreate, ClientUpdate
from clientdesk.services import clients as client_service
from clientdesk.services.serializers import client_to_dict

router = APIRouter()


@router.get("")
def list_clients(
    inp: SanitizedInput = Depends(sanitize_request),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    page = client_service.parse_page_request(inp.query)
    rows, pagination = client_service.list_clients(db, page)
    return {"data": [client_to_dict(r) for r in rows], "pagination": pagination}


@router.get("/{client_id}")
def get_client(
    inp: SanitizedInput = Depends(sanitize_request),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    client_id = client_service.parse_client_id(inp.path.get("client_id"))
    return client_to_dict(client_service.get_client_or_404(db, client_id))


@router.post("", status_code=201)
def create_client(
    user: User = Depends(get_current_user),
    payload: ClientCreate = Depends(validated_body(ClientCreate)),
    db: Session = Depends(get_db),
):
    return client_to_dict(client_service.create_client(db, payload))


@router.put("/{client_id}")
def update_client(
    inp: SanitizedInput = Depends(sanitize_request),
    user: User = Depends(get_current_user),
    payload: ClientUpdate = Depends(validated_body(ClientUpdate)),
    db: Session = Depends(get_db),
):
    client_id = client_service.parse_client_id(inp.path.get("client_id"))
    return client_to_dict(client_service.update_client(db, client_id, payload))


@router.delete("/{client_id}")
def delete_client(
    inp: SanitizedInput = Depends(sanitize_request),
    user: User = Depends(require_roles(ROLE_ADMIN)),
    db: Session = Depends(get_db),
):
    client_id = client_service.parse_client_id(inp.path.get("client_id"))
    client_service.delete_client(db, client_id)
    return {"message": "Client deleted successfully"}
