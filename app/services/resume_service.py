"""
Resume Processing Service

Best-effort plain-text extraction from uploaded PDF and DOCX resumes.
Extraction problems never fail the submission: they are reported as an
Unavailable result and the notification shows a placeholder instead.
"""

import asyncio
import re
from dataclasses import dataclass
from io import BytesIO
from typing import Union

from docx import Document
from PyPDF2 import PdfReader
from starlette.concurrency import run_in_threadpool

from app.config import Config
from app.schemas.intake import ResumeUpload
from app.services.intake_service import FileRejected, check_resume_file
from app.utils.exceptions import ExtractionError
from app.utils.logger import get_logger

logger = get_logger(__name__)

PLACEHOLDER_TEXT = "could not extract resume text"

_EXCESS_BLANK_LINES = re.compile(r"\n{3,}")


@dataclass(frozen=True)
class Extracted:
    text: str


@dataclass(frozen=True)
class Unavailable:
    reason: str


ExtractionResult = Union[Extracted, Unavailable]


def normalize_text(text: str, limit: int) -> str:
    """Collapse runs of 3+ newlines to a single blank line and cap the length."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _EXCESS_BLANK_LINES.sub("\n\n", text).strip()
    if len(text) > limit:
        text = text[:limit].rstrip()
    return text


class ResumeService:
    """Service for extracting resume text"""

    def __init__(self, config: Config):
        self.config = config

    def extract(self, upload: ResumeUpload) -> ExtractionResult:
        """
        Extract text from a resume upload.

        Args:
            upload: Uploaded resume (content held in memory)

        Returns:
            Extracted(text) with normalized, truncated text, or Unavailable(reason)
        """
        check = check_resume_file(upload.filename, upload.content_type)
        if isinstance(check, FileRejected):
            logger.info(f"[ResumeService] Skipping extraction for {upload.filename!r}: {check.reason}")
            return Unavailable(check.reason)

        try:
            if check.kind == "pdf":
                raw_text = self._extract_pdf_text(upload.content)
            else:
                raw_text = self._extract_docx_text(upload.content)
        except ExtractionError as e:
            logger.warning(f"[ResumeService] ⚠️ {upload.filename!r}: {e.message}")
            return Unavailable(e.message)
        except Exception as e:
            # Parsers raise a wide range of errors on corrupt input
            logger.warning(
                f"[ResumeService] ⚠️ Failed to parse {upload.filename!r}: {e}", exc_info=True
            )
            return Unavailable(f"{check.kind} parse error")

        text = normalize_text(raw_text, self.config.intake.resume_text_max_chars)
        if not text:
            return Unavailable("no text content found")

        logger.info(
            f"[ResumeService] ✅ Extracted {len(text)} characters from {upload.filename!r}"
        )
        return Extracted(text)

    async def extract_async(self, upload: ResumeUpload) -> ExtractionResult:
        """Run extract() in a worker thread, bounded by the extraction timeout."""
        timeout = self.config.intake.extraction_timeout
        try:
            return await asyncio.wait_for(run_in_threadpool(self.extract, upload), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"[ResumeService] ⚠️ Extraction of {upload.filename!r} timed out after {timeout}s"
            )
            return Unavailable("timed out")

    def _extract_pdf_text(self, file_content: bytes) -> str:
        """Extract text from PDF file, one line per page"""
        if not file_content:
            raise ExtractionError("empty PDF")

        reader = PdfReader(BytesIO(file_content))
        if reader.is_encrypted:
            # Owner-password-only PDFs open with an empty user password
            try:
                reader.decrypt("")
            except Exception:
                raise ExtractionError("PDF is encrypted")

        pages = []
        for page in reader.pages:
            page_text = page.extract_text() or ""
            pages.append(" ".join(page_text.split()))

        full_text = "\n".join(pages)
        if not full_text.strip():
            raise ExtractionError("PDF appears to be image-based (scanned) - no text content found")
        return full_text

    def _extract_docx_text(self, file_content: bytes) -> str:
        """Extract raw text from DOCX file"""
        if not file_content:
            raise ExtractionError("empty document")

        doc = Document(BytesIO(file_content))

        text_parts = [paragraph.text for paragraph in doc.paragraphs]
        for table in doc.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    text_parts.append(" | ".join(cells))

        full_text = "\n".join(text_parts)
        if not full_text.strip():
            raise ExtractionError("Document appears to be empty")
        return full_text
