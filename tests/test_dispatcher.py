"""Tests for zenith.server.dispatcher: one request, one dispatch cycle."""

from typing import Any

import anyio
import pytest

from zenith.errors import ConfigurationError, ValidationFailure
from zenith.http.request import Request
from zenith.http.response import Redirect, Response
from zenith.middleware.protocol import Reject
from zenith.middleware.sessions import SessionConfig, SessionMiddleware, get_session
from zenith.routing import RouteTable
from zenith.server.dispatcher import Dispatcher, DispatchState
from zenith.templating.returns import Template


class TestMatching:
    async def test_matches_root(self) -> None:
        table = RouteTable()
        table.register("GET", "/", lambda: "home")
        response = await Dispatcher(table).dispatch_raw("GET", "/")
        assert response.status == 200
        assert response.text == "home"

    async def test_query_stripped_before_lookup(self) -> None:
        table = RouteTable()
        table.register("GET", "/login", lambda: "login")
        response = await Dispatcher(table).dispatch_raw("GET", "/login?x=1")
        assert response.text == "login"

    async def test_bare_question_mark(self) -> None:
        table = RouteTable()
        table.register("GET", "/", lambda: "home")
        response = await Dispatcher(table).dispatch_raw("GET", "/?")
        assert response.text == "home"

    async def test_unmatched_is_fixed_404(self) -> None:
        dispatcher = Dispatcher(RouteTable())
        response = await dispatcher.dispatch_raw("GET", "/nope")
        assert response.status == 404
        assert response.text == "404 - Page Not Found"
        assert dispatcher.state is DispatchState.IDLE

    async def test_method_mismatch_is_404(self) -> None:
        table = RouteTable()
        table.register("GET", "/login", lambda: "login")
        response = await Dispatcher(table).dispatch_raw("POST", "/login")
        assert response.status == 404


class TestStates:
    async def test_starts_idle(self) -> None:
        assert Dispatcher(RouteTable()).state is DispatchState.IDLE

    async def test_guard_sees_middleware_check_and_handler_sees_handling(self) -> None:
        seen: list[DispatchState] = []
        table = RouteTable()
        dispatcher = Dispatcher(table)

        def guard(request):
            seen.append(dispatcher.state)

        def handler():
            seen.append(dispatcher.state)
            return "ok"

        table.register("GET", "/", handler, guards=[guard])
        await dispatcher.dispatch_raw("GET", "/")
        assert seen == [DispatchState.MIDDLEWARE_CHECK, DispatchState.HANDLING]
        assert dispatcher.state is DispatchState.IDLE

    async def test_returns_to_idle_after_handler_error(self) -> None:
        def boom():
            raise RuntimeError("boom")

        table = RouteTable()
        table.register("GET", "/", boom, guards=[lambda request: None])
        dispatcher = Dispatcher(table)
        with pytest.raises(RuntimeError, match="boom"):
            await dispatcher.dispatch_raw("GET", "/")
        assert dispatcher.state is DispatchState.IDLE
        assert len(dispatcher.chain) == 0


class TestGuards:
    async def test_rejection_skips_handler(self) -> None:
        called = False

        def secret():
            nonlocal called
            called = True
            return "secret"

        table = RouteTable()
        table.register(
            "GET", "/secret", secret, guards=[lambda request: Reject(Redirect("/login"))]
        )
        response = await Dispatcher(table).dispatch_raw("GET", "/secret")
        assert response.status == 302
        assert response.location == "/login"
        assert called is False

    async def test_guards_after_rejection_do_not_run(self) -> None:
        calls: list[int] = []

        def make(k: int, reject: bool = False):
            def guard(request):
                calls.append(k)
                return Reject("no") if reject else None

            return guard

        table = RouteTable()
        table.register("GET", "/", lambda: "ok", guards=[make(1), make(2, reject=True), make(3)])
        response = await Dispatcher(table).dispatch_raw("GET", "/")
        assert calls == [1, 2]
        assert response.text == "no"

    async def test_rejection_response_is_negotiated(self) -> None:
        table = RouteTable()
        table.register("GET", "/", lambda: "ok", guards=[lambda request: ("Forbidden", 403)])
        response = await Dispatcher(table).dispatch_raw("GET", "/")
        assert response.status == 403
        assert response.text == "Forbidden"

    async def test_chain_empty_after_every_cycle(self) -> None:
        table = RouteTable()
        table.register("GET", "/a", lambda: "a", guards=[lambda request: None])
        table.register("GET", "/b", lambda: "b", guards=[lambda request: Reject("no")])
        dispatcher = Dispatcher(table)
        for target in ("/a", "/b", "/missing"):
            await dispatcher.dispatch_raw("GET", target)
            assert len(dispatcher.chain) == 0

    async def test_guards_do_not_leak_between_routes(self) -> None:
        table = RouteTable()
        table.register("GET", "/private", lambda: "p", guards=[lambda request: Reject("no")])
        table.register("GET", "/public", lambda: "public")
        dispatcher = Dispatcher(table)
        await dispatcher.dispatch_raw("GET", "/private")
        response = await dispatcher.dispatch_raw("GET", "/public")
        assert response.text == "public"

    async def test_attached_guards_run_before_route_guards(self) -> None:
        calls: list[str] = []
        table = RouteTable()
        table.register("GET", "/", lambda: "ok", guards=[lambda request: calls.append("route")])
        dispatcher = Dispatcher(table)
        dispatcher.attach([lambda request: calls.append("attached")])
        await dispatcher.dispatch_raw("GET", "/")
        assert calls == ["attached", "route"]

    async def test_attached_guards_last_one_cycle(self) -> None:
        calls: list[str] = []
        table = RouteTable()
        table.register("GET", "/", lambda: "ok")
        dispatcher = Dispatcher(table)
        dispatcher.attach([lambda request: calls.append("attached")])
        await dispatcher.dispatch_raw("GET", "/")
        await dispatcher.dispatch_raw("GET", "/")
        assert calls == ["attached"]


class TestHandlerInvocation:
    async def test_request_injected_by_name(self) -> None:
        def handler(request):
            return request.query.get("q", "")

        table = RouteTable()
        table.register("GET", "/search", handler)
        response = await Dispatcher(table).dispatch_raw("GET", "/search?q=zen")
        assert response.text == "zen"

    async def test_request_injected_by_annotation(self) -> None:
        def handler(req: Request):
            return req.method

        table = RouteTable()
        table.register("GET", "/", handler)
        response = await Dispatcher(table).dispatch_raw("GET", "/")
        assert response.text == "GET"

    async def test_provider_injected_by_annotation(self) -> None:
        class Greeter:
            def greet(self) -> str:
                return "hi"

        def handler(greeter: Greeter):
            return greeter.greet()

        table = RouteTable()
        table.register("GET", "/", handler)
        dispatcher = Dispatcher(table, providers={Greeter: Greeter})
        response = await dispatcher.dispatch_raw("GET", "/")
        assert response.text == "hi"

    async def test_async_handler(self) -> None:
        async def handler():
            return {"ok": True}

        table = RouteTable()
        table.register("GET", "/", handler)
        response = await Dispatcher(table).dispatch_raw("GET", "/")
        assert response.content_type == "application/json"
        assert response.text == '{"ok": true}'

    async def test_post_body(self) -> None:
        async def handler(request):
            form = await request.form()
            return form["email"]

        table = RouteTable()
        table.register("POST", "/login", handler)
        response = await Dispatcher(table).dispatch_raw(
            "POST",
            "/login",
            headers={"content-type": "application/x-www-form-urlencoded"},
            body=b"email=a%40b.c&password=x",
        )
        assert response.text == "a@b.c"

    async def test_template_without_environment(self) -> None:
        table = RouteTable()
        table.register("GET", "/", lambda: Template("home/index.html"))
        with pytest.raises(ConfigurationError, match="template directory"):
            await Dispatcher(table).dispatch_raw("GET", "/")

    async def test_predicate_guard_is_configuration_error(self) -> None:
        def signed_in(request):
            return True

        table = RouteTable()
        table.register("GET", "/", lambda: "ok", guards=[signed_in])
        dispatcher = Dispatcher(table)
        with pytest.raises(ConfigurationError, match="signed_in"):
            await dispatcher.dispatch_raw("GET", "/")
        assert len(dispatcher.chain) == 0


class TestTimeout:
    async def test_slow_handler_times_out(self) -> None:
        async def slow():
            await anyio.sleep(5)
            return "late"

        table = RouteTable()
        table.register("GET", "/", slow)
        dispatcher = Dispatcher(table, timeout=0.01)
        with pytest.raises(TimeoutError):
            await dispatcher.dispatch_raw("GET", "/")
        assert dispatcher.state is DispatchState.IDLE

    async def test_no_timeout_by_default(self) -> None:
        async def brief():
            await anyio.sleep(0.01)
            return "done"

        table = RouteTable()
        table.register("GET", "/", brief)
        response = await Dispatcher(table).dispatch_raw("GET", "/")
        assert response.text == "done"


class TestValidationFailure:
    async def test_redirects_without_session(self, caplog: pytest.LogCaptureFixture) -> None:
        def handler():
            raise ValidationFailure("All fields are required", redirect_to="/register")

        table = RouteTable()
        table.register("POST", "/register", handler)
        with caplog.at_level("WARNING", logger="zenith.server"):
            response = await Dispatcher(table).dispatch_raw("POST", "/register")
        assert response.status == 302
        assert response.location == "/register"
        assert "All fields are required" in caplog.text

    async def test_flashes_into_session(self) -> None:
        def handler():
            raise ValidationFailure("Email already exists", redirect_to="/register")

        table = RouteTable()
        table.register("POST", "/register", handler)
        dispatcher = Dispatcher(table)
        captured: dict[str, Any] = {}

        async def next_(request: Request) -> Response:
            response = await dispatcher.dispatch(request)
            captured.update(get_session())
            return response

        middleware = SessionMiddleware(SessionConfig(secret_key="test"))
        response = await middleware(Request.from_target("POST", "/register"), next_)
        assert response.location == "/register"
        assert captured["_flash"] == {"error": "Email already exists"}
