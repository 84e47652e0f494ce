"""Pure image and OCR transformation helpers for receipt extraction."""

import io
from typing import Any

from tabscan.domain.errors import InvalidImageInput
from tabscan.domain.extraction import RawTextLine

MAX_IMAGE_DIMENSION = 3000  # Resize if either dimension exceeds this
OCR_IMAGE_PADDING = 50  # White padding around image to prevent edge truncation
UPLOAD_JPEG_QUALITY = 88

MIN_DETECTION_CONFIDENCE = 0.7
MIN_DETECTION_TEXT_LENGTH = 2
ROW_OVERLAP_RATIO = 0.5


def prepare_receipt_jpeg(
    image_bytes: bytes,
    max_dimension: int = MAX_IMAGE_DIMENSION,
    padding: int = 0,
    quality: int = UPLOAD_JPEG_QUALITY,
) -> bytes:
    """
    Decode a captured page and re-encode it as an RGB JPEG.

    Applies EXIF orientation, shrinks the image if either side exceeds
    max_dimension, and optionally adds white padding.

    Raises:
        InvalidImageInput: If the bytes are empty or not a decodable image.
    """
    from PIL import Image, ImageOps, UnidentifiedImageError

    if not image_bytes:
        raise InvalidImageInput("empty image payload")

    try:
        img = Image.open(io.BytesIO(image_bytes))
        img.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidImageInput(f"cannot decode image: {exc}") from exc

    img = ImageOps.exif_transpose(img)

    width, height = img.size
    if width > max_dimension or height > max_dimension:
        if width > height:
            new_size = (max_dimension, max(1, int(height * (max_dimension / width))))
        else:
            new_size = (max(1, int(width * (max_dimension / height))), max_dimension)
        img = img.resize(new_size, Image.Resampling.LANCZOS)

    if padding > 0:
        img = ImageOps.expand(img.convert("RGB"), border=padding, fill="white")

    buffer = io.BytesIO()
    img.convert("RGB").save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def _overlap_ratio(det: dict[str, Any], row: list[dict[str, Any]]) -> float:
    """Vertical overlap between a detection and a row span, relative to the smaller height."""
    row_min = min(d["y_min"] for d in row)
    row_max = max(d["y_max"] for d in row)
    overlap = min(det["y_max"], row_max) - max(det["y_min"], row_min)
    if overlap <= 0:
        return 0.0
    smaller = min(det["y_max"] - det["y_min"], row_max - row_min)
    if smaller <= 0:
        return 0.0
    return overlap / smaller


def _group_rows(detections: list[dict[str, Any]]) -> list[list[dict[str, Any]]]:
    """Group detections sorted by center_y into rows by vertical overlap."""
    rows: list[list[dict[str, Any]]] = []
    for det in detections:
        if rows and _overlap_ratio(det, rows[-1]) >= ROW_OVERLAP_RATIO:
            rows[-1].append(det)
        else:
            rows.append([det])
    for row in rows:
        row.sort(key=lambda d: d["min_x"])
    return rows


def detections_to_text_lines(
    raw_result: dict[str, Any], page_index: int = 0, padding: int = OCR_IMAGE_PADDING
) -> list[RawTextLine]:
    """
    Convert a PaddleOCR-style result into positioned text lines.

    Low-confidence and very short detections are dropped. Detections on the
    same visual row are joined left to right so an item name and its price
    end up on one line. Coordinates are made relative to the unpadded image.
    """
    image_width = max(1, raw_result.get("image_width", 0) - 2 * padding)
    image_height = max(1, raw_result.get("image_height", 0) - 2 * padding)

    detection_data: list[dict[str, Any]] = []
    for detection in raw_result.get("detections", []):
        bbox, (text, confidence) = detection
        if confidence < MIN_DETECTION_CONFIDENCE:
            continue
        if len(text.strip()) < MIN_DETECTION_TEXT_LENGTH:
            continue

        xs = [p[0] - padding for p in bbox]
        ys = [p[1] - padding for p in bbox]
        detection_data.append(
            {
                "text": text.strip(),
                "center_y": sum(ys) / len(ys),
                "y_min": min(ys),
                "y_max": max(ys),
                "min_x": min(xs),
            }
        )

    detection_data.sort(key=lambda d: (d["center_y"], d["min_x"]))

    def clamp(val: float) -> float:
        return max(0.0, min(1.0, val))

    lines: list[RawTextLine] = []
    for row in _group_rows(detection_data):
        center_y = sum(d["center_y"] for d in row) / len(row)
        lines.append(
            RawTextLine(
                text=" ".join(d["text"] for d in row),
                page_index=page_index,
                x=clamp(row[0]["min_x"] / image_width),
                y=clamp(center_y / image_height),
            )
        )
    return lines
