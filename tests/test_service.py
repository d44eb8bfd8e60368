"""Tests for perch.service — flash messages and redirect helpers."""

from perch.http.request import Request
from perch.http.response import Response
from perch.service import ServiceProvider


class TestFlash:
    def test_flashes_grouped_and_consumed(self) -> None:
        service = ServiceProvider()
        service.flash("saved")
        service.flash("oops", "error")
        assert service.flashes() == {"info": ["saved"], "error": ["oops"]}
        assert service.flashes() == {}

    def test_flashes_by_type(self) -> None:
        service = ServiceProvider()
        service.flash("a", "error")
        service.flash("b")
        assert service.flashes("error") == ["a"]
        assert service.flashes("error") == []
        assert service.flashes() == {"info": ["b"]}


class TestRedirects:
    def test_refresh(self) -> None:
        response = Response()
        ServiceProvider(Request(server={"REQUEST_URI": "/page?x=1"}), response).refresh()
        assert response.headers.get("Location") == "/page?x=1"
        assert response.is_locked()

    def test_back_uses_referer(self) -> None:
        response = Response()
        request = Request(server={"REQUEST_URI": "/form", "HTTP_REFERER": "/list"})
        ServiceProvider(request, response).back()
        assert response.headers.get("Location") == "/list"

    def test_back_without_referer_refreshes(self) -> None:
        response = Response()
        ServiceProvider(Request(server={"REQUEST_URI": "/form"}), response).back()
        assert response.headers.get("Location") == "/form"

    def test_unbound_is_noop(self) -> None:
        service = ServiceProvider()
        assert service.back() is service


class TestBind:
    def test_none_keeps_current(self) -> None:
        request = Request()
        service = ServiceProvider(request, Response())
        replacement = Response()
        service.bind(None, replacement)
        assert service.request is request
        assert service.response is replacement

    def test_shared_data(self) -> None:
        service = ServiceProvider()
        service.shared_data.set("user", "ada")
        assert service.shared_data.get("user") == "ada"

    def test_escape(self) -> None:
        assert ServiceProvider.escape('<a href="x">') == "&lt;a href=&quot;x&quot;&gt;"
