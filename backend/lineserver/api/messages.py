# lineserver/api/messages.py

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr

from lineserver.infra.state import get_relay
from lineserver.services.relay_service import RelayService

router = APIRouter(prefix="/api")


class SendMessageSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sender: Optional[StrictStr] = Field(default=None, alias="from")
    to: Optional[StrictStr] = None
    encrypted_data: Optional[StrictStr] = Field(default=None, alias="encryptedData")
    timestamp: Optional[StrictInt] = None
    has_files: Optional[StrictBool] = Field(default=False, alias="hasFiles")
    user_public_key: Optional[StrictStr] = Field(default=None, alias="userPublicKey")


class SendChunkSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sender: Optional[StrictStr] = Field(default=None, alias="from")
    chunk_index: Optional[StrictInt] = Field(default=None, alias="chunkIndex")
    total_chunks: Optional[StrictInt] = Field(default=None, alias="totalChunks")
    chunk_data: Optional[StrictStr] = Field(default=None, alias="chunkData")
    file_name: Optional[StrictStr] = Field(default=None, alias="fileName")
    file_type: Optional[StrictStr] = Field(default=None, alias="fileType")
    file_size: Optional[StrictInt] = Field(default=None, alias="fileSize")


@router.post("/send-message")
def send_message(payload: SendMessageSchema, relay: RelayService = Depends(get_relay)):
    message_id = relay.send_message(
        payload.sender,
        payload.encrypted_data,
        recipient=payload.to,
        timestamp=payload.timestamp,
        has_files=payload.has_files,
        user_public_key=payload.user_public_key,
    )
    return {"success": True, "messageId": message_id}


@router.post("/send-chunk")
def send_chunk(payload: SendChunkSchema, relay: RelayService = Depends(get_relay)):
    progress = relay.send_chunk(
        payload.sender,
        payload.chunk_index,
        payload.total_chunks,
        payload.chunk_data,
        payload.file_name,
        payload.file_type,
        payload.file_size,
    )

    result = {"success": True, "received": progress.received, "total": progress.total}
    if progress.completed:
        result["complete"] = True
    if progress.message_id:
        result["messageId"] = progress.message_id
    return result


@router.get("/get-messages/{user_type}")
def get_messages(user_type: str, hash: Optional[str] = None, relay: RelayService = Depends(get_relay)):
    if user_type == "journalist":
        messages = relay.messages_for_journalist()
    else:
        # Messages from the user and to the user
        messages = relay.messages_for_user(hash)

    return {"messages": [m.to_wire() for m in messages]}
