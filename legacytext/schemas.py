from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel

FileType = Literal["doc", "ppt", "pdf", "docx", "odt"]


class ExtractResponse(BaseModel):
    file_name: str
    file_type: FileType
    text: str
    length: int


class ErrorResponse(BaseModel):
    detail: str
    kind: str


class FormatsResponse(BaseModel):
    extensions: List[str]
