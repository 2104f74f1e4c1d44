"""
Tests for the docker_sandbox tool surface.
"""

import json
import typing

import pytest
from hypothesis import given
from hypothesis import strategies as st

from ironbox.core.exceptions import (
    ContainerRuntimeError,
    ContainerStartError,
    ImagePullError,
    InputError,
    UnsupportedLanguageError,
)
from ironbox.sandbox.executor import SandboxExecutor
from ironbox.sandbox.languages import LanguageCatalog
from ironbox.tools.docker_sandbox import (
    TOOL_DESCRIPTION,
    TOOL_NAME,
    DockerSandboxTool,
    SandboxInput,
    SandboxLanguage,
    parse_arguments,
    result_to_json,
)


def _tool(runtime, **executor_kwargs):
    return DockerSandboxTool(SandboxExecutor(runtime, **executor_kwargs))


class TestSchema:
    def test_definition(self, make_runtime):
        definition = _tool(make_runtime()).definition()
        schema = definition.input_schema

        assert definition.name == TOOL_NAME == "docker_sandbox"
        assert definition.description == TOOL_DESCRIPTION
        assert schema["type"] == "object"
        assert schema["required"] == ["language", "code"]
        assert schema["additionalProperties"] is False
        assert schema["properties"]["language"]["enum"] == ["python", "bash", "javascript"]
        assert schema["properties"]["code"]["minLength"] == 1

    def test_timeout_ceiling_follows_executor(self, make_runtime):
        schema = _tool(make_runtime(), max_timeout=60).definition().input_schema
        timeout = schema["properties"]["timeout"]
        assert "60" in json.dumps(timeout)

    def test_schema_languages_match_catalog(self):
        assert sorted(typing.get_args(SandboxLanguage)) == LanguageCatalog().languages()

    def test_mcp_and_function_formats(self, make_runtime):
        definition = _tool(make_runtime()).definition()
        assert definition.to_mcp_schema()["inputSchema"] is definition.input_schema
        function = definition.to_function_schema()
        assert function["type"] == "function"
        assert function["function"]["name"] == "docker_sandbox"


class TestParseArguments:
    def test_accepts_json_text(self):
        payload = parse_arguments('{"language": "python", "code": "print(1)", "timeout": 5}')
        assert payload == SandboxInput(language="python", code="print(1)", timeout=5)

    def test_accepts_bytes_and_dict(self):
        assert parse_arguments(b'{"language": "bash", "code": "echo"}').language == "bash"
        assert parse_arguments({"language": "bash", "code": "echo"}).timeout is None

    @pytest.mark.parametrize(
        "arguments, fragment",
        [
            ('{"language": "cobol", "code": "DISPLAY \'HI\'"}', "language"),
            ('{"language": "python"}', "code"),
            ('{"language": "python", "code": ""}', "code"),
            ('{"code": "print(1)"}', "language"),
            ('{"language": "python", "code": "1", "timeout": 31}', "timeout"),
            ('{"language": "python", "code": "1", "timeout": "soon"}', "timeout"),
            ('{"language": "python", "code": "1", "network": true}', "network"),
            ('{"language": "python", "code": 5}', "code"),
            ("not json", "arguments"),
            ("[]", "arguments"),
        ],
    )
    def test_rejects_invalid_payloads(self, arguments, fragment):
        with pytest.raises(InputError) as exc_info:
            parse_arguments(arguments)
        assert str(exc_info.value).startswith("invalid arguments:")
        assert fragment in str(exc_info.value)

    @pytest.mark.parametrize("timeout", ['"5"', "5.0", "true"])
    def test_timeout_must_be_a_json_integer(self, timeout):
        with pytest.raises(InputError, match="timeout"):
            parse_arguments('{"language": "python", "code": "1", "timeout": %s}' % timeout)

    @pytest.mark.parametrize("timeout", ["5", 5.0, True])
    def test_timeout_type_checked_for_mappings(self, timeout):
        with pytest.raises(InputError, match="timeout"):
            parse_arguments({"language": "python", "code": "1", "timeout": timeout})

    def test_timeout_type_checked_with_raised_ceiling(self):
        with pytest.raises(InputError, match="timeout"):
            parse_arguments({"language": "python", "code": "1", "timeout": "45"}, max_timeout=60)
        assert parse_arguments({"language": "python", "code": "1", "timeout": 45}, max_timeout=60).timeout == 45

    def test_zero_and_negative_timeouts_accepted(self):
        assert parse_arguments({"language": "bash", "code": "x", "timeout": 0}).timeout == 0
        assert parse_arguments({"language": "bash", "code": "x", "timeout": -3}).timeout == -3

    @given(language=st.text(min_size=1).filter(lambda s: s not in ("python", "bash", "javascript")))
    def test_unknown_languages_rejected_by_schema(self, language):
        with pytest.raises(InputError):
            parse_arguments({"language": language, "code": "1"})

    @given(language=st.text(min_size=1).filter(lambda s: s not in ("python", "bash", "javascript")))
    def test_unknown_languages_rejected_by_catalog(self, language):
        with pytest.raises(UnsupportedLanguageError):
            LanguageCatalog().resolve(language)


class TestCall:
    def test_python_scenario(self, make_runtime):
        runtime = make_runtime(logs="42\n")
        result = _tool(runtime).call('{"language":"python","code":"print(42)"}')

        assert "42" in result.data
        assert result.metadata == {
            "language": "python",
            "image": "python:3.12-slim",
            "exit_code": "0",
        }
        assert result.artifacts == []

    def test_bash_scenario(self, make_runtime):
        runtime = make_runtime(logs="hi\n")
        result = _tool(runtime).call('{"language":"bash","code":"echo hi"}')
        assert result.data.strip() == "hi"
        assert result.metadata["image"] == "alpine:3.20"

    def test_non_zero_exit_scenario(self, make_runtime):
        runtime = make_runtime(exit_code=3)
        result = _tool(runtime).call('{"language":"python","code":"import sys; sys.exit(3)"}')
        assert result.metadata["exit_code"] == "3"

    def test_image_pull_failure_scenario(self, make_runtime):
        runtime = make_runtime(failures={"ensure_image": ContainerRuntimeError("denied")})
        with pytest.raises(ImagePullError, match="failed to pull image"):
            _tool(runtime).call('{"language":"python","code":"print(42)"}')
        assert runtime.count("remove") == 0

    def test_start_failure_scenario(self, make_runtime):
        runtime = make_runtime(failures={"start": ContainerRuntimeError("oci runtime error")})
        with pytest.raises(ContainerStartError):
            _tool(runtime).call('{"language":"python","code":"print(42)"}')
        assert runtime.count("remove") == 1

    def test_unknown_exit_code(self, make_runtime):
        runtime = make_runtime(exit_code=None)
        result = _tool(runtime).call({"language": "bash", "code": "true"})
        assert result.metadata["exit_code"] == "unknown"

    def test_cleanup_error_in_metadata(self, make_runtime):
        runtime = make_runtime(failures={"remove": ContainerRuntimeError("busy")})
        result = _tool(runtime).call({"language": "bash", "code": "true"})
        assert "busy" in result.metadata["cleanup_error"]

    def test_invalid_payload_never_reaches_runtime(self, make_runtime):
        runtime = make_runtime()
        with pytest.raises(InputError):
            _tool(runtime).call('{"language":"cobol","code":"DISPLAY \'HI\'"}')
        assert runtime.calls == []

    def test_timeout_forwarded(self, make_runtime):
        captured = []

        def wait(handle, scope):
            captured.append(scope.remaining())
            return 0

        runtime = make_runtime(wait=wait)
        _tool(runtime).call({"language": "bash", "code": "echo", "timeout": 3})
        assert 2 < captured[0] <= 3

    def test_result_to_json(self, make_runtime):
        result = _tool(make_runtime(logs="x")).call({"language": "bash", "code": "echo x"})
        decoded = json.loads(result_to_json(result))
        assert decoded["data"] == "x"
        assert decoded["metadata"]["exit_code"] == "0"
