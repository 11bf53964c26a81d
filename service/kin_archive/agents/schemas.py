from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from kin_archive.folders import FolderId


class ClassificationSource(str, Enum):
    COMMAND = "command"
    AI = "ai"
    FALLBACK = "fallback"
    ACTIVE_FOLDER = "active_folder"


class AIAnalysisResult(BaseModel):
    """Exact shape the LLM must return."""
    model_config = ConfigDict(extra="forbid")

    suggestedFolder: FolderId
    reasoning: str = Field(..., min_length=1)


class ClassificationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    suggested_folder: FolderId = Field(..., alias="suggestedFolder")
    reasoning: str
    source: ClassificationSource = ClassificationSource.FALLBACK


class Document(BaseModel):
    """One uploaded file. Created once, never updated."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    name: str
    folder: FolderId
    upload_date: str = Field(
        "",
        alias="uploadDate",
        validation_alias=AliasChoices("uploadDate", "upload_date", "date"),
    )
    size: str = ""
    uploader: str = Field(
        "",
        validation_alias=AliasChoices("uploader", "user"),
    )
    url: str = ""


class ChatSender(str, Enum):
    USER = "user"
    SYSTEM = "system"


class ChatMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    text: str
    sender: ChatSender
    timestamp: str
    attached_doc_id: Optional[str] = Field(None, alias="attachedDocId")


# API Request/Response models

class FolderSummary(BaseModel):
    id: FolderId
    name: str
    description: str
    color: str
    icon: str
    command: str
    count: int
    link: str


class NavigationResponse(BaseModel):
    view: str
    folder: Optional[FolderId] = None
    highlighted_document_id: Optional[str] = None


class UploadResponse(BaseModel):
    document: Document
    classification: ClassificationResult
    navigation: NavigationResponse


class LinkResponse(BaseModel):
    link: str


class ShareRequest(BaseModel):
    param: Optional[str] = Field(None, description="Folder id, command token or document id")
    message: str = "Скопировано!"


class ShareResponse(BaseModel):
    link: str
    delivered: bool


class BotUsernameRequest(BaseModel):
    bot_username: str = Field(..., min_length=1)


class BotUsernameResponse(BaseModel):
    bot_username: str


class ChatPostRequest(BaseModel):
    text: str = Field(..., min_length=1)

