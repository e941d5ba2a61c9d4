import httpx
import pytest


@pytest.fixture(
    params=[
        pytest.param(("asyncio", {"use_uvloop": False}), id="asyncio"),
        pytest.param(
            ("trio", {"restrict_keyboard_interrupt_to_checkpoints": True}), id="trio"
        ),
    ],
    scope="session",
)
def anyio_backend(request):
    return request.param


@pytest.fixture
def requests_seen() -> list[httpx.Request]:
    return []


@pytest.fixture
async def client(requests_seen):
    """An HTTP client answering every request with `{"id": 7}` and status 201."""

    def respond(request: httpx.Request) -> httpx.Response:
        requests_seen.append(request)
        return httpx.Response(201, json={"id": 7, "path": request.url.path})

    async with httpx.AsyncClient(transport=httpx.MockTransport(respond)) as client:
        yield client


@pytest.fixture
def write_resource(tmp_path):
    def _write(relpath: str, content: str | bytes):
        path = tmp_path / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        return path

    return _write
