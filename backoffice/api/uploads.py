"""Uploads API router: multipart file upload."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile

from backoffice.core.response import create_response
from backoffice.core.security import AuthContext, get_current_user
from backoffice.services.upload_service import upload_service

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("/{upload_type}")
async def upload_file(
    upload_type: str,
    request: Request,
    file: Optional[UploadFile] = File(None),
    auth: AuthContext = Depends(get_current_user),
):
    """Store one file under the given upload type and return its public URL."""
    relative_path = await upload_service.save(upload_type, file)
    url = upload_service.public_url(relative_path, str(request.base_url))
    return create_response({"url": [url]}, "Upload successful")
