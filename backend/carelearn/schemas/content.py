from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID
from pydantic import Field, HttpUrl
from carelearn.schemas.base import RequestModel, ResponseModel


class ContentType(str, Enum):
    TEXT = "text"
    VIDEO = "video"
    LINK = "link"
    DOCUMENT = "document"
    ASSESSMENT = "assessment"


class ContentBase(RequestModel):
    module_id: UUID = Field(alias="moduleId")
    title: str = Field(min_length=3)
    sequence_number: int = Field(alias="sequenceNumber", gt=0)


class TextContentCreate(ContentBase):
    content: str = Field(min_length=10)


class VideoContentCreate(ContentBase):
    video_url: HttpUrl = Field(alias="videoUrl")
    description: str = Field(min_length=10)


class LinkContentCreate(ContentBase):
    link_url: HttpUrl = Field(alias="linkUrl")
    description: str = Field(min_length=10)


class DocumentContentCreate(ContentBase):
    document_url: HttpUrl = Field(alias="documentUrl")
    file_type: str = Field(alias="fileType", min_length=1)
    description: str = Field(min_length=10)


CONTENT_SCHEMAS = {
    ContentType.TEXT: TextContentCreate,
    ContentType.VIDEO: VideoContentCreate,
    ContentType.LINK: LinkContentCreate,
    ContentType.DOCUMENT: DocumentContentCreate,
}


class ContentItemResponse(ResponseModel):
    id: str
    module_id: str
    title: str
    content_type: ContentType
    content: str
    sequence_number: int
    created_by: Optional[str] = None
    created_by_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
