"""参考图编码：原始字节 <-> data URL"""
from __future__ import annotations

import asyncio
import base64
import io
import re

from PIL import Image, UnidentifiedImageError

from dreamweaver.exceptions import EncodingError

_MIME_RE = re.compile(r"data:([^;]+);")


def _detect_mime_type(data: bytes) -> str:
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise EncodingError("Uploaded file is not a readable image", details={"error": str(exc)}) from exc

    mime_type = Image.MIME.get(fmt or "")
    if not mime_type:
        raise EncodingError(f"Unsupported image format: {fmt}")
    return mime_type


async def encode_image(data: bytes) -> str:
    """校验图片并编码为 ``data:<mime>;base64,<data>``"""
    if not data:
        raise EncodingError("Uploaded file is empty")
    mime_type = await asyncio.to_thread(_detect_mime_type, data)
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def extract_base64_data(data_url: str) -> str:
    """去掉 data URL 前缀，只保留 base64 数据"""
    _, _, payload = data_url.partition(",")
    return payload


def get_mime_type(data_url: str) -> str:
    match = _MIME_RE.match(data_url)
    return match.group(1) if match else "image/jpeg"
