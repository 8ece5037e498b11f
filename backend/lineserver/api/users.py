# lineserver/api/users.py

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, StrictStr

from lineserver.infra.state import get_relay
from lineserver.services.relay_service import RelayService

router = APIRouter(prefix="/api")


class RegisterUserSchema(BaseModel):
    hash: Optional[StrictStr] = None


class RegisterJournalistSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    public_key: Optional[StrictStr] = Field(default=None, alias="publicKey")
    secret: Optional[StrictStr] = None


class NukeUserSchema(BaseModel):
    hash: Optional[StrictStr] = None


@router.post("/register-user")
def register_user_endpoint(payload: RegisterUserSchema, relay: RelayService = Depends(get_relay)):
    journalist_key = relay.register_user(payload.hash)
    return {"success": True, "journalistPublicKey": journalist_key}


@router.post("/register-journalist")
def register_journalist_endpoint(payload: RegisterJournalistSchema, relay: RelayService = Depends(get_relay)):
    relay.register_journalist(payload.public_key, payload.secret)
    return {"success": True}


@router.post("/nuke-user")
def nuke_user_endpoint(payload: NukeUserSchema, relay: RelayService = Depends(get_relay)):
    # Removes messages, registry record and pending uploads in one step
    relay.purge_sender(payload.hash)
    return {"success": True}
