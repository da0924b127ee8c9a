"""Shared fixtures: a fake label service mounted through httpx.ASGITransport."""

import asyncio
from typing import Any
from uuid import uuid4

import httpx
import pytest
from fastapi import FastAPI, File, HTTPException, Request, Response, UploadFile, status
from pydantic import BaseModel

from labelprint.core.rest_api import ClientConfig, LabelServiceTransport, TransportPool

BASE_URL = "http://labelservice.test"
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class PostInvert(BaseModel):
    invert: bool


class PostThreshold(BaseModel):
    threshold: int


class FakeLabelService:
    """In-memory stand-in for the label printer service.

    Attributes:
        images: Image records by id, serialized like the real service
        printer: State returned by GET /printer
        device: State the physical device reports on GET /printer/refresh
        requests: (method, path) of every request received
        request_ids: X-Request-ID header of every request received
        completed: Route names in the order their handlers finished
        failures: Route name -> status code to fail the next call with
        delays: Route name -> seconds to wait before handling
        upload_response: Body returned verbatim by POST /images when set
        uploads: Multipart file metadata received by POST /images
    """

    def __init__(self) -> None:
        self.images: dict[str, dict[str, Any]] = {}
        self.printer: dict[str, Any] = {
            "ty": "PtP710Bt",
            "dpi": 180,
            "max_px": 128,
            "media_type": "LaminatedTape",
            "media_width": "Mm12",
            "tape_color": "White",
            "text_color": "Black",
        }
        self.device: dict[str, Any] = dict(self.printer)
        self.requests: list[tuple[str, str]] = []
        self.request_ids: list[str | None] = []
        self.completed: list[str] = []
        self.failures: dict[str, int] = {}
        self.delays: dict[str, float] = {}
        self.upload_response: Any = None
        self.uploads: list[dict[str, Any]] = []
        self.print_jobs = 0

    def add_image(self, **overrides: Any) -> dict[str, Any]:
        record = {
            "id": uuid4().hex,
            "file_name": "label",
            "width": 300,
            "height": 76,
            "original_width": 600,
            "original_height": 152,
            "length_mm": 42.0,
            "threshold": 128,
            "inverted": False,
        }
        record.update(overrides)
        self.images[record["id"]] = record
        return record

    def get_image(self, image_id: str) -> dict[str, Any]:
        if image_id not in self.images:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No such image")
        return self.images[image_id]

    async def hit(self, route: str) -> None:
        if route in self.delays:
            await asyncio.sleep(self.delays[route])
        if route in self.failures:
            raise HTTPException(status_code=self.failures.pop(route), detail=f"{route} failed")
        self.completed.append(route)


def build_app(service: FakeLabelService) -> FastAPI:
    """FastAPI app exposing the label service routes over ``service``."""
    app = FastAPI()

    @app.middleware("http")
    async def record_request(request: Request, call_next):
        service.requests.append((request.method, request.url.path))
        service.request_ids.append(request.headers.get("x-request-id"))
        return await call_next(request)

    @app.get("/images")
    async def get_images():
        await service.hit("list")
        return list(service.images.values())

    @app.post("/images")
    async def new_image(file: UploadFile = File(...)):
        await service.hit("upload")
        content = await file.read()
        service.uploads.append(
            {"filename": file.filename, "content_type": file.content_type, "size": len(content)}
        )
        if service.upload_response is not None:
            return service.upload_response
        return service.add_image(file_name=file.filename.rsplit(".", 1)[0])

    @app.delete("/images")
    async def delete_all():
        await service.hit("delete_all")
        service.images.clear()

    @app.get("/images/{image_id}")
    async def get_image_file(image_id: str):
        await service.hit("image_png")
        service.get_image(image_id)
        return Response(content=PNG_SIGNATURE + image_id.encode(), media_type="image/png")

    @app.delete("/images/{image_id}")
    async def delete_image(image_id: str):
        await service.hit("delete")
        service.get_image(image_id)
        del service.images[image_id]

    @app.post("/images/{image_id}/invert")
    async def invert(image_id: str, body: PostInvert):
        await service.hit("invert")
        service.get_image(image_id)["inverted"] = body.invert

    @app.post("/images/{image_id}/threshold")
    async def threshold(image_id: str, body: PostThreshold):
        await service.hit("threshold")
        service.get_image(image_id)["threshold"] = body.threshold

    @app.get("/printer")
    async def get_printer():
        await service.hit("printer")
        return service.printer

    @app.get("/printer/refresh")
    async def refresh_printer():
        await service.hit("refresh")
        service.printer = dict(service.device)
        return service.printer

    @app.get("/preview")
    async def get_preview():
        await service.hit("preview")
        return Response(content=PNG_SIGNATURE + b"preview", media_type="image/png")

    @app.post("/print")
    async def print_label():
        await service.hit("print")
        service.print_jobs += 1
        service.images.clear()

    return app


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def service() -> FakeLabelService:
    return FakeLabelService()


@pytest.fixture
def app(service: FakeLabelService) -> FastAPI:
    return build_app(service)


@pytest.fixture
async def transport(anyio_backend: str, app: FastAPI) -> LabelServiceTransport:
    """Shared transport wired to the fake service."""
    TransportPool.configure(
        ClientConfig(base_url=BASE_URL),
        http_transport=httpx.ASGITransport(app=app),
    )
    transport = await TransportPool.get_transport()
    yield transport
    await TransportPool.dispose()
