"""
Pytest configuration and fixtures for the stamp service tests.
"""

import io
import os

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image
from pypdf import PdfWriter
from reportlab.pdfgen import canvas

# Set test environment variables before importing the app
os.environ["CLOUDINARY_CLOUD_NAME"] = "demo-cloud"
os.environ["CLOUDINARY_UPLOAD_PRESET"] = "unsigned-test"
os.environ.pop("CLOUDINARY_UPLOAD_URL", None)
os.environ.pop("STAMP_UPLOAD_BACKEND", None)

from stamp_service.api_main import app, get_http_client, get_settings  # noqa: E402
from stamp_service.config import Settings  # noqa: E402

SOURCE_URL = "https://files.example.com/doc.pdf"
UPLOAD_URL = "https://api.cloudinary.com/v1_1/demo-cloud/auto/upload"


def make_pdf(pages: int = 1, size=(612, 792)) -> bytes:
    """Build a small PDF with one line of text per page."""
    if pages == 0:
        buf = io.BytesIO()
        PdfWriter().write(buf)
        return buf.getvalue()

    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=size)
    for i in range(pages):
        c.drawString(72, 72, f"Original page {i + 1}")
        c.showPage()
    c.save()
    return buf.getvalue()


def make_image(fmt: str = "PNG", size=(200, 50)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, "white").save(buf, format=fmt)
    return buf.getvalue()


def pdf_from_multipart(content: bytes) -> bytes:
    """Pull the PDF part out of a multipart upload body."""
    start = content.index(b"%PDF-")
    end = content.rindex(b"%%EOF") + len(b"%%EOF")
    return content[start:end]


class FakeRemote:
    """
    Stands in for every outbound HTTP endpoint.

    Routes are registered per (method, url); unknown URLs answer 404.
    Every request is recorded, and upload bodies are kept for inspection.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []
        self.uploads = []

    def add(self, method, url, status=200, content=b"", json=None, exc=None):
        self.routes[(method, url)] = (status, content, json, exc)

    def add_upload(self, status=200, json=None, content=b""):
        if json is None and not content:
            json = {"secure_url": "https://res.cloudinary.com/demo-cloud/raw/upload/stamped.pdf"}
        self.add("POST", UPLOAD_URL, status=status, json=json, content=content)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get((request.method, str(request.url)))
        if route is None:
            return httpx.Response(404, content=b"not found")

        status, content, json, exc = route
        if exc is not None:
            raise exc

        if request.method == "POST":
            self.uploads.append(request.read())

        if json is not None:
            return httpx.Response(status, json=json)
        return httpx.Response(status, content=content)

    @property
    def uploaded_pdf(self) -> bytes:
        assert self.uploads, "no upload was made"
        return pdf_from_multipart(self.uploads[-1])


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def test_settings():
    return Settings(
        cloudinary_cloud_name="demo-cloud",
        cloudinary_upload_preset="unsigned-test",
    )


@pytest.fixture
def client(remote, test_settings):
    """Create a test client whose outbound HTTP goes to the fake remote."""

    def _http_client():
        with httpx.Client(transport=httpx.MockTransport(remote.handler), follow_redirects=True) as c:
            yield c

    app.dependency_overrides[get_http_client] = _http_client
    app.dependency_overrides[get_settings] = lambda: test_settings
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def http_client(remote):
    with httpx.Client(transport=httpx.MockTransport(remote.handler), follow_redirects=True) as c:
        yield c


@pytest.fixture
def one_page_pdf():
    return make_pdf(1)


@pytest.fixture
def three_page_pdf():
    return make_pdf(3)


@pytest.fixture
def png_bytes():
    return make_image("PNG")


@pytest.fixture
def jpeg_bytes():
    return make_image("JPEG")
