"""Image upload endpoint."""

from fastapi import APIRouter, File, Form, Request, UploadFile, status
from fastapi.responses import JSONResponse

from onedrive_gateway.api.deps import Gateway
from onedrive_gateway.api.responses import error_response
from onedrive_gateway.config import get_settings
from onedrive_gateway.core.file_utils import UploadTooLargeError, received_upload
from onedrive_gateway.core.logging import get_logger
from onedrive_gateway.core.rate_limit import limiter, upload_limit
from onedrive_gateway.schemas.base import SuccessResponse
from onedrive_gateway.schemas.files import UploadData

logger = get_logger(__name__)

router = APIRouter(prefix="/upload", tags=["upload"])

settings = get_settings()


@router.post("/image", response_model=SuccessResponse[UploadData])
@limiter.limit(upload_limit)
async def upload_image(
    request: Request,
    gateway: Gateway,
    image: UploadFile | None = File(None),
    folder_name: str | None = Form(None, alias="folderName"),
    file_name: str | None = Form(None, alias="fileName"),
) -> SuccessResponse[UploadData] | JSONResponse:
    """
    Upload an image to OneDrive and return its links.

    The image lands in ``Pictures/<folderName>`` (default ``uploads``) and
    gets an anonymous view-only share link. Maximum size is configured by
    MAX_UPLOAD_SIZE_MB.
    """
    if image is None or not image.filename:
        return error_response(status.HTTP_400_BAD_REQUEST, "No file uploaded")

    if not (image.content_type or "").startswith("image/"):
        logger.warning(
            "upload_rejected_type",
            filename=image.filename,
            content_type=image.content_type,
        )
        return error_response(
            status.HTTP_400_BAD_REQUEST, "Only image files are allowed!"
        )

    try:
        async with received_upload(
            image, settings.upload_dir, settings.max_upload_size_bytes
        ) as temp_path:
            result = await gateway.upload_image(
                image.filename,
                temp_path,
                folder_name=folder_name,
                custom_file_name=file_name,
            )
    except UploadTooLargeError as e:
        logger.warning("upload_rejected_size", filename=image.filename)
        return error_response(status.HTTP_400_BAD_REQUEST, str(e))

    logger.info(
        "image_uploaded",
        file_name=result.file_name,
        folder_name=gateway.folder_name_or_default(folder_name),
    )
    return SuccessResponse(
        data=UploadData(
            web_url=result.web_url,
            share_url=result.share_url,
            file_name=result.file_name,
            folder_name=gateway.folder_name_or_default(folder_name),
        )
    )
