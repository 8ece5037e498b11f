# lineserver/models/message.py

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class FileBundle(BaseModel):
    """A fully reassembled chunk set, carried verbatim inside a file message"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sender: str = Field(alias="from")
    file_name: str = Field(alias="fileName")
    file_type: Optional[str] = Field(default=None, alias="fileType")
    file_size: Optional[int] = Field(default=None, alias="fileSize")
    total_chunks: int = Field(alias="totalChunks")
    chunks: Dict[int, str]


class Message(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = ""
    sender: str = Field(alias="from")
    recipient: Optional[str] = Field(default=None, alias="to")
    encrypted_data: Optional[str] = Field(default=None, alias="encryptedData")
    # Client supplied display time; retention always uses created_at
    timestamp: int
    created_at: int = Field(alias="createdAt")
    has_files: bool = Field(default=False, alias="hasFiles")
    user_public_key: Optional[str] = Field(default=None, alias="userPublicKey")
    file_data: Optional[FileBundle] = Field(default=None, alias="fileData")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)
