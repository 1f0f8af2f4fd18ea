import logging
import os
from contextlib import contextmanager
from pathlib import Path
from tempfile import NamedTemporaryFile

from django.conf import settings
from langchain_community.document_loaders import Docx2txtLoader, PyPDFLoader, TextLoader

from QuizMaster.exceptions import UnreadableContentError, UnsupportedType


logger = logging.getLogger("quiz_master")


ALLOWED_EXTENSIONS = ["txt", "pdf", "docx"]

ALLOWED_CONTENT_TYPES = {
    "text/plain": ".txt",
    "application/pdf": ".pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
}


def _text_loader(file_path):
    return TextLoader(file_path, encoding="utf-8")


LOADERS = {
    ".txt": _text_loader,
    ".pdf": PyPDFLoader,
    ".docx": Docx2txtLoader,
}


def file_suffix(name, content_type=None):
    """Pick the loader key from the file name, falling back to the content type."""
    suffix = Path(name or "").suffix.lower()
    if suffix in LOADERS:
        return suffix
    return ALLOWED_CONTENT_TYPES.get(content_type or "", suffix)


@contextmanager
def handle_uploaded_file(uploaded_file):
    """
    Write an uploaded file to the upload directory for the duration of the
    block. The file is removed on the way out whatever happens inside.
    """
    suffix = file_suffix(uploaded_file.name, getattr(uploaded_file, "content_type", None))

    upload_dir = Path(settings.QUIZ_UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)

    tempfile = NamedTemporaryFile(dir=upload_dir, suffix=suffix, delete=False)

    try:
        with tempfile:
            for chunk in uploaded_file.chunks():
                tempfile.write(chunk)
        yield tempfile.name
    finally:
        if os.path.exists(tempfile.name):
            os.remove(tempfile.name)
            logger.debug(f"Removed uploaded file {tempfile.name}")


def extract_text(file_path, content_type=None) -> str:
    suffix = file_suffix(file_path, content_type)
    loader_class = LOADERS.get(suffix)

    if loader_class is None:
        raise UnsupportedType()

    if os.path.getsize(file_path) == 0:
        raise UnreadableContentError("Error reading file: Uploaded file is empty")

    try:
        documents = loader_class(file_path).load()
    except Exception as e:
        logger.error(f"Could not read {suffix} upload: {e}")
        raise UnreadableContentError(f"Error reading file: {e}") from e

    text = "\n".join(document.page_content for document in documents)

    if len(text.strip()) < settings.QUIZ_MIN_EXTRACTED_CHARS:
        raise UnreadableContentError("Error reading file: File content is empty or unreadable")

    logger.info(f"Extracted {len(text)} characters from {suffix} upload")
    return text
