"""
ImageKit routes

Product images are stored on ImageKit. The server uploads files on behalf
of the apps (multipart or base64), hands out client-side upload
credentials, and builds transformed or signed delivery URLs. The private
key never leaves the server.
"""

import base64
import binascii
import json
import logging
import re
import time
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from imagekitio import ImageKit
from imagekitio.models.UploadFileRequestOptions import UploadFileRequestOptions
from pydantic import BaseModel, Field

from config import (
    DEFAULT_IMAGE_FOLDER,
    IMAGEKIT_PRIVATE_KEY,
    IMAGEKIT_PUBLIC_KEY,
    IMAGEKIT_URL_ENDPOINT,
    MAX_UPLOAD_BYTES,
    SIGNED_URL_EXPIRE_SECONDS,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/imagekit", tags=["imagekit"])

DATA_URL_PREFIX = re.compile(r"^data:image/(\w+);base64,")


@lru_cache(maxsize=1)
def _build_client(private_key: str, public_key: str, url_endpoint: str) -> ImageKit:
    return ImageKit(private_key=private_key, public_key=public_key, url_endpoint=url_endpoint)


def get_imagekit() -> ImageKit:
    """FastAPI dependency returning the configured ImageKit client."""
    missing = [
        name
        for name, value in (
            ("IMAGEKIT_PUBLIC_KEY", IMAGEKIT_PUBLIC_KEY),
            ("IMAGEKIT_PRIVATE_KEY", IMAGEKIT_PRIVATE_KEY),
            ("IMAGEKIT_URL_ENDPOINT", IMAGEKIT_URL_ENDPOINT),
        )
        if not value
    ]
    if missing:
        logger.warning(f"Missing ImageKit environment variables: {', '.join(missing)}")
        raise HTTPException(status_code=503, detail="ImageKit credentials not configured")
    return _build_client(IMAGEKIT_PRIVATE_KEY, IMAGEKIT_PUBLIC_KEY, IMAGEKIT_URL_ENDPOINT)


class Base64UploadRequest(BaseModel):
    image_base64: str = Field(..., min_length=1)
    file_name: Optional[str] = None
    folder: Optional[str] = None
    tags: Optional[List[str]] = None
    use_signed_url: bool = False
    signed_url_expire: int = Field(SIGNED_URL_EXPIRE_SECONDS, gt=0)
    transformations: Optional[Dict[str, Any]] = None


class TransformRequest(BaseModel):
    image_url: str = Field(..., min_length=1)
    transformations: Dict[str, Any] = Field(..., min_length=1)


class SignedUrlRequest(BaseModel):
    file_path: str = Field(..., min_length=1)
    expire_seconds: int = Field(SIGNED_URL_EXPIRE_SECONDS, gt=0)
    transformations: Dict[str, Any] = Field(default_factory=dict)


def decode_base64_image(data: str) -> bytes:
    """Decode a base64 image, with or without a data: URL prefix."""
    try:
        return base64.b64decode(DATA_URL_PREFIX.sub("", data), validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="Invalid base64 image data")


def file_extension(data: str, file_name: Optional[str] = None) -> str:
    if file_name:
        match = re.search(r"\.([^.]+)$", file_name)
        if match:
            return match.group(1).lower()
    match = DATA_URL_PREFIX.match(data)
    if match:
        return match.group(1).lower()
    return "jpg"


def signed_url(client: ImageKit, file_path: str, expire_seconds: int, transformations: Optional[dict] = None) -> str:
    options = {"path": file_path, "signed": True, "expire_seconds": expire_seconds}
    if transformations:
        options["transformation"] = [transformations]
    return client.url(options)


def transformed_url(client: ImageKit, image_url: str, transformations: dict, url_endpoint: str = IMAGEKIT_URL_ENDPOINT) -> str:
    """Delivery URL with transformations applied; falls back to the original URL."""
    path = image_url[len(url_endpoint):] if url_endpoint and image_url.startswith(url_endpoint) else image_url
    try:
        return client.url({"path": path, "transformation": [transformations]})
    except Exception as e:
        logger.warning(f"Could not apply transformations to {image_url}: {e}")
        return image_url


def upload_image(
    client: ImageKit,
    data: bytes,
    file_name: str,
    folder: Optional[str] = None,
    tags: Optional[List[str]] = None,
    use_signed_url: bool = False,
    signed_url_expire: int = SIGNED_URL_EXPIRE_SECONDS,
    transformations: Optional[dict] = None,
    default_folder: str = DEFAULT_IMAGE_FOLDER,
) -> dict:
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=400, detail="Image exceeds the 10MB upload limit")

    options = UploadFileRequestOptions(folder=folder or default_folder, tags=tags or None)
    try:
        result = client.upload_file(file=data, file_name=file_name, options=options)
    except Exception as e:
        logger.error(f"ImageKit upload of {file_name} failed: {e}")
        raise HTTPException(status_code=500, detail={"error": "Failed to upload image", "details": str(e)})

    url = result.url
    if transformations:
        url = transformed_url(client, result.url, transformations)
    if use_signed_url:
        url = signed_url(client, result.file_path, signed_url_expire, transformations)

    logger.info(f"Uploaded {result.name} to ImageKit at {result.file_path}")
    data_out = {
        "url": url,
        "file_id": result.file_id,
        "file_path": result.file_path,
        "name": result.name,
        "size": result.size,
        "width": result.width,
        "height": result.height,
        "file_type": result.file_type,
        "is_signed_url": use_signed_url,
    }
    if use_signed_url:
        data_out["expires_in"] = signed_url_expire
    return {"success": True, "message": "Image uploaded successfully to ImageKit", "data": data_out}


@router.post("/upload")
def upload_image_file(
    image: UploadFile = File(...),
    file_name: Optional[str] = Form(None),
    folder: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    use_signed_url: bool = Form(False),
    signed_url_expire: int = Form(SIGNED_URL_EXPIRE_SECONDS),
    transformations: Optional[str] = Form(None),
    client: ImageKit = Depends(get_imagekit),
):
    if not (image.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image files are allowed")

    parsed_transformations = None
    if transformations:
        try:
            parsed_transformations = json.loads(transformations)
        except json.JSONDecodeError:
            raise HTTPException(status_code=400, detail="transformations must be a JSON object")
        if not isinstance(parsed_transformations, dict):
            raise HTTPException(status_code=400, detail="transformations must be a JSON object")

    data = image.file.read()
    return upload_image(
        client,
        data,
        file_name or image.filename or f"image-{int(time.time() * 1000)}.jpg",
        folder=folder,
        tags=[t.strip() for t in tags.split(",") if t.strip()] if tags else None,
        use_signed_url=use_signed_url,
        signed_url_expire=signed_url_expire,
        transformations=parsed_transformations,
    )


@router.post("/upload-base64")
def upload_image_base64(payload: Base64UploadRequest, client: ImageKit = Depends(get_imagekit)):
    data = decode_base64_image(payload.image_base64)
    base_name = payload.file_name or f"image-{int(time.time() * 1000)}.jpg"
    file_name = re.sub(r"\.[^.]+$", "", base_name) + "." + file_extension(payload.image_base64, payload.file_name)
    return upload_image(
        client,
        data,
        file_name,
        folder=payload.folder,
        tags=payload.tags,
        use_signed_url=payload.use_signed_url,
        signed_url_expire=payload.signed_url_expire,
        transformations=payload.transformations,
    )


@router.get("/auth")
def get_auth_params(client: ImageKit = Depends(get_imagekit)):
    params = client.get_authentication_parameters()
    return {
        "success": True,
        "data": {
            "token": params["token"],
            "signature": params["signature"],
            "expire": params["expire"],
            "public_key": IMAGEKIT_PUBLIC_KEY,
            "url_endpoint": IMAGEKIT_URL_ENDPOINT,
        },
    }


@router.post("/transform")
def transform_image(payload: TransformRequest, client: ImageKit = Depends(get_imagekit)):
    return {
        "success": True,
        "data": {
            "original_url": payload.image_url,
            "transformed_url": transformed_url(client, payload.image_url, payload.transformations),
            "transformations": payload.transformations,
        },
    }


@router.post("/signed-url")
def create_signed_url(payload: SignedUrlRequest, client: ImageKit = Depends(get_imagekit)):
    try:
        url = signed_url(client, payload.file_path, payload.expire_seconds, payload.transformations)
    except Exception as e:
        logger.error(f"Signed URL generation for {payload.file_path} failed: {e}")
        raise HTTPException(status_code=500, detail={"error": "Failed to generate signed URL", "details": str(e)})
    return {
        "success": True,
        "data": {"signed_url": url, "expires_in": payload.expire_seconds, "file_path": payload.file_path},
    }
