"""Tests for invocation contexts, errors and exit hooks."""

import sys
import pytest
from unittest.mock import Mock, patch

from profile_collector.core.context import (
    ProcessContext, RequestContext, guess_operation_name
)
from profile_collector.core.decision import HeaderForcedDecision, StaticDecision
from profile_collector.core.errors import (
    BackendError, ConfigurationError, ErrorKind, FatalError, FATAL_KINDS
)
from profile_collector.core.hooks import AtexitRegistrar, ExitHookRegistrar, ManualRegistrar


class TestGuessOperationName:
    """Test cases for operation name derivation."""

    def test_worker_uses_program_basename(self):
        context = ProcessContext(argv=["/usr/local/bin/import-feed", "--since", "yesterday"])

        assert guess_operation_name(context) == "import-feed"

    def test_worker_defaults_to_sys_argv(self):
        with patch.object(sys, "argv", ["/srv/jobs/cleanup.py"]):
            assert guess_operation_name(ProcessContext()) == "cleanup.py"

    def test_worker_without_program(self):
        assert guess_operation_name(ProcessContext(argv=[])) is None

    def test_web_strips_query_string(self):
        context = RequestContext("post", "/orders/42?expand=items&x=1")

        assert guess_operation_name(context) == "POST /orders/42"

    def test_web_without_query_string(self):
        assert guess_operation_name(RequestContext("GET", "/health")) == "GET /health"

    def test_web_root(self):
        assert guess_operation_name(RequestContext("GET", "/?q=1")) == "GET /"


class TestProcessContext:
    """Test cases for ProcessContext."""

    def test_is_worker(self):
        assert ProcessContext(argv=["x"]).is_worker()

    def test_no_response_status(self):
        assert ProcessContext(argv=["x"]).response_status() is None

    def test_record_exception(self):
        context = ProcessContext(argv=["x"])

        try:
            raise RuntimeError("disk full")
        except RuntimeError as exc:
            context.record_exception(exc)

        error = context.last_error()
        assert error.kind == ErrorKind.ERROR
        assert error.message == "RuntimeError: disk full"
        assert error.file.endswith("test_context.py")
        assert error.is_fatal

    def test_system_exit_is_not_an_error(self):
        context = ProcessContext(argv=["x"])

        context.record_exception(SystemExit(0))
        context.record_exception(KeyboardInterrupt())

        assert context.last_error() is None

    def test_watch_exceptions_chains_excepthook(self):
        previous = Mock()
        context = ProcessContext(argv=["x"])

        with patch.object(sys, "excepthook", previous):
            context.watch_exceptions()
            exc = ValueError("bad row")
            sys.excepthook(ValueError, exc, None)
            context.unwatch_exceptions()

            assert sys.excepthook is previous

        previous.assert_called_once_with(ValueError, exc, None)
        assert context.last_error().message == "ValueError: bad row"


class TestRequestContext:
    """Test cases for RequestContext."""

    def test_accessors(self):
        context = RequestContext("get", "/a?b=c", headers={"X-Force-Profile": "1"})

        assert not context.is_worker()
        assert context.request_method() == "GET"
        assert context.request_uri() == "/a?b=c"
        assert context.header("x-force-profile") == "1"
        assert context.response_status() is None

    def test_status_and_error(self):
        context = RequestContext("GET", "/")
        context.set_status(502)
        context.record_exception(KeyError("id"))

        assert context.response_status() == 502
        assert context.last_error().kind == ErrorKind.ERROR
        assert context.to_dict()["status"] == 502


class TestFatalError:
    """Test cases for FatalError records."""

    def test_fatal_kinds(self):
        assert FATAL_KINDS == {ErrorKind.ERROR, ErrorKind.PARSE, ErrorKind.COMPILE_ERROR}
        assert not ErrorKind.USER_ERROR.is_fatal
        assert not ErrorKind.WARNING.is_fatal

    def test_syntax_error_maps_to_parse(self):
        try:
            compile("x = (", "broken.py", "exec")
        except SyntaxError as exc:
            error = FatalError.from_exception(exc)

        assert error.kind == ErrorKind.PARSE
        assert error.file == "broken.py"
        assert error.line == 1

    def test_exception_without_traceback(self):
        error = FatalError.from_exception(ValueError())

        assert error.message == "ValueError"
        assert error.file is None
        assert error.line is None

    def test_to_dict(self):
        error = FatalError("boom", "a.py", 3, ErrorKind.COMPILE_ERROR)

        assert error.to_dict() == {
            "message": "boom", "file": "a.py", "line": 3, "kind": "COMPILE_ERROR"
        }

    def test_collector_errors(self):
        assert "storage down" in str(BackendError("s3", "storage down"))
        assert ConfigurationError("bad", config_key="log_level").config_key == "log_level"


class TestExitHooks:
    """Test cases for exit hook registrars."""

    def test_install_once(self):
        registrar = ManualRegistrar()
        first, second = Mock(), Mock()

        assert registrar.install(first)
        assert not registrar.install(second)

        registrar.fire()
        first.assert_called_once_with()
        second.assert_not_called()

    def test_fire_without_callback(self):
        ManualRegistrar().fire()

    def test_atexit_registrar(self):
        callback = Mock()
        registrar = AtexitRegistrar()

        with patch("profile_collector.core.hooks.atexit.register") as register:
            registrar.install(callback)
            registrar.install(callback)

        register.assert_called_once_with(callback)
        assert registrar.installed

    def test_base_registrar_is_abstract(self):
        with pytest.raises(TypeError):
            ExitHookRegistrar()


class TestDecisions:
    """Test cases for start decision adapters."""

    def test_static_decision(self):
        assert StaticDecision(True).should_profile()
        assert not StaticDecision(False).should_profile()

    def test_header_forces_profiling(self):
        inner = Mock()
        inner.should_profile.return_value = False
        context = RequestContext("GET", "/", headers={"X-Profile": "yes"})

        decision = HeaderForcedDecision(inner, context, "x-profile")

        assert decision.should_profile()
        inner.should_profile.assert_not_called()

    @pytest.mark.parametrize("header", [None, "x-profile"])
    def test_defers_without_header(self, header):
        inner = Mock()
        inner.should_profile.return_value = False

        decision = HeaderForcedDecision(inner, RequestContext("GET", "/"), header)

        assert not decision.should_profile()
        inner.should_profile.assert_called_once()
