"""
Pytest configuration for PDF Composer
"""

import logging
import sys
import tempfile
from pathlib import Path

import pytest

from pdf_composer.objects import Name, PdfDocument, Reference, Stream


@pytest.fixture(autouse=True)
def configure_logging():
    """Configure logging for tests to avoid file handler issues."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.WARNING)  # Only show warnings and errors during tests
    console_handler.setFormatter(logging.Formatter('%(name)s - %(levelname)s - %(message)s'))

    root_logger.addHandler(console_handler)
    root_logger.setLevel(logging.WARNING)

    yield

    root_logger.handlers.clear()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


def add_font(document, base_font="Helvetica"):
    """Store a Type1 font dictionary and return its id."""
    return document.add_object({
        "Type": Name("Font"),
        "Subtype": Name("Type1"),
        "BaseFont": Name(base_font),
    })


def add_page(document, width=100, height=100, content=b"", resources=None):
    """Append a page with one content stream to ``document``."""
    stream_id = document.add_object(Stream({}, content))
    return document.add_page({
        "Type": Name("Page"),
        "MediaBox": [0, 0, width, height],
        "Resources": resources if resources is not None else {},
        "Contents": Reference(stream_id),
    })


def text_page(document, base_font, text=b"Hello", width=100, height=100):
    """Page that draws ``text`` with a font bound as /F1."""
    font_id = add_font(document, base_font)
    content = b"BT /F1 12 Tf 10 10 Td (" + text + b") Tj ET\n"
    return add_page(document, width, height, content, {"Font": {"F1": Reference(font_id)}})


@pytest.fixture
def target_document():
    """Empty target document."""
    return PdfDocument.new()


@pytest.fixture
def helvetica_document():
    """Two-page source whose pages use /F1 = Helvetica."""
    document = PdfDocument.new()
    text_page(document, "Helvetica", b"One")
    text_page(document, "Helvetica", b"Two")
    return document


@pytest.fixture
def courier_document():
    """One-page source whose page uses /F1 = Courier."""
    document = PdfDocument.new()
    text_page(document, "Courier", b"Mono")
    return document


@pytest.fixture
def sized_document():
    """Source with pages of different sizes."""
    document = PdfDocument.new()
    add_page(document, 100, 200, b"0 0 100 200 re f\n")
    add_page(document, 150, 50, b"0 0 150 50 re f\n")
    add_page(document, 80, 120, b"0 0 80 120 re f\n")
    return document


@pytest.fixture
def reportlab_pdf(temp_dir):
    """Three-page PDF file authored with reportlab."""
    from reportlab.lib.pagesizes import A4
    from reportlab.pdfgen import canvas

    path = temp_dir / "source.pdf"
    pdf = canvas.Canvas(str(path), pagesize=A4)
    pdf.setTitle("Composer fixture")
    for number in range(1, 4):
        pdf.setFont("Helvetica", 14)
        pdf.drawString(72, 760, f"Page {number}")
        pdf.rect(72, 600, 200, 100)
        pdf.showPage()
    pdf.save()
    return path


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    # Ignore logging errors during tests
    logging.raiseExceptions = False


def pytest_collection_modifyitems(config, items):
    """Add the unit marker to tests that carry no other marker."""
    for item in items:
        if "integration" not in item.keywords and "unit" not in item.keywords:
            item.add_marker(pytest.mark.unit)
