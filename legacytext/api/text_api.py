from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, UploadFile

from legacytext.core.errors import ParseError
from legacytext.schemas import ErrorResponse, ExtractResponse, FormatsResponse
from legacytext.utils.file_reader import extract_from_file, supported_extensions

router = APIRouter(prefix="/text", tags=["text"])
log = logging.getLogger("text.router")


@router.post(
    "/extract",
    response_model=ExtractResponse,
    responses={422: {"model": ErrorResponse}},
    summary="파일에서 텍스트 추출",
    description="업로드한 문서(.doc / .ppt / .pdf / .docx / .odt)에서 본문 텍스트를 추출하여 반환",
)
async def extract_text(file: UploadFile):
    try:
        return await extract_from_file(file)
    except (HTTPException, ParseError):
        # ParseError 는 main 의 예외 핸들러가 422 로 변환
        raise
    except Exception as e:
        log.exception("extract failed for %s", file.filename)
        raise HTTPException(500, detail=f"서버 내부 오류: {e}")


@router.get(
    "/formats",
    response_model=FormatsResponse,
    summary="지원 확장자 목록",
)
async def list_formats():
    return {"extensions": supported_extensions()}
