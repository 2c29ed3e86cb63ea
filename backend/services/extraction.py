"""
Text extraction from uploaded files.

Bitmap images go through Tesseract OCR, PDFs through their embedded text
layer. Both engines are blocking, so they run in a worker thread.
"""
import asyncio
import os
import re
from io import BytesIO
from typing import Optional

import pytesseract
from PIL import Image

from utils.logger import get_logger
from utils.pdf_loader import extract_text_from_pdf

logger = get_logger("services.extraction")

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png"}
PDF_EXTENSIONS = {".pdf"}

_LINE_BREAKS = re.compile(r"[\r\n]+")


class ExtractionError(Exception):
    """Base class for extraction failures"""
    pass


class UnsupportedType(ExtractionError):
    def __init__(self, file_name: str):
        self.file_name = file_name
        super().__init__(f"Unsupported file type: {file_name}")


class EmptyInput(ExtractionError):
    def __init__(self):
        super().__init__("File is empty")


class ExtractionFailed(ExtractionError):
    """The OCR or PDF engine raised; carries the engine's message."""
    pass


def classify_file_type(mime_type: Optional[str]) -> str:
    """Map a MIME type onto the stored file type: image, pdf or other."""
    mime_type = (mime_type or "").lower()
    if mime_type.startswith("image/"):
        return "image"
    if mime_type == "application/pdf":
        return "pdf"
    return "other"


def normalize_text(text: Optional[str]) -> str:
    """Collapse every run of CR/LF characters into a single space."""
    if not text:
        return ""
    return _LINE_BREAKS.sub(" ", text)


def engine_for(file_name: str) -> str:
    ext = os.path.splitext(file_name or "")[1].lower()
    if ext in IMAGE_EXTENSIONS:
        return "ocr"
    if ext in PDF_EXTENSIONS:
        return "pdf"
    raise UnsupportedType(file_name)


class TextExtractor:
    def __init__(self, tesseract_cmd: Optional[str] = None, language: str = "eng"):
        self.language = language
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
            logger.info("Tesseract command configured", extra={"tesseract_cmd": tesseract_cmd})

    def _ocr(self, data: bytes) -> str:
        # The image is closed when recognition ends, whether or not it succeeded
        with Image.open(BytesIO(data)) as image:
            if image.mode in ("RGB", "L"):
                text = pytesseract.image_to_string(image, lang=self.language)
            else:
                converted = image.convert("RGB")
                try:
                    text = pytesseract.image_to_string(converted, lang=self.language)
                finally:
                    converted.close()
        return (text or "").strip()

    def _pdf(self, data: bytes) -> str:
        return extract_text_from_pdf(data)

    async def extract(self, data: bytes, file_name: str) -> str:
        """
        Return the best-effort plain text of ``data``.

        Raises UnsupportedType for anything but .jpg/.jpeg/.png/.pdf,
        EmptyInput for a zero-length buffer and ExtractionFailed when the
        engine itself errors. A file with no recognizable text gives "".
        """
        engine = engine_for(file_name)
        if not data:
            raise EmptyInput()

        logger.info("Extracting text", extra={"file_name": file_name, "engine": engine, "size": len(data)})
        try:
            if engine == "ocr":
                text = await asyncio.to_thread(self._ocr, data)
            else:
                text = await asyncio.to_thread(self._pdf, data)
        except Exception as e:
            logger.error("Text extraction failed", extra={"file_name": file_name, "engine": engine, "error": str(e)})
            raise ExtractionFailed(str(e)) from e

        logger.info("Text extracted", extra={"file_name": file_name, "content_length": len(text)})
        return text
