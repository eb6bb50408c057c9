import httpx
import pytest

_RealAsyncClient = httpx.AsyncClient


@pytest.fixture
def mock_http(monkeypatch):
    """Route every httpx.AsyncClient created by the services through a handler.

    Usage: ``seen = mock_http(handler)`` where ``handler(request)`` returns an
    ``httpx.Response`` or raises. ``seen`` collects the requests made.
    """

    def install(handler):
        seen = []

        def recording(request):
            seen.append(request)
            return handler(request)

        def factory(*args, **kwargs):
            kwargs["transport"] = httpx.MockTransport(recording)
            return _RealAsyncClient(*args, **kwargs)

        monkeypatch.setattr(httpx, "AsyncClient", factory)
        return seen

    return install
