# Tests for environment variable expansion
import warnings

from mcpsync.models import ServerDefinition
from mcpsync.utils.env import ENV_VAR_PATTERN, expand_definition, expand_env_vars, find_env_references


def test_expand_single_env_var(monkeypatch):
    """Test expanding a single environment variable."""
    monkeypatch.setenv("HOME", "/home/user")

    result = expand_env_vars("${HOME}/projects")
    assert result == "/home/user/projects"


def test_expand_multiple_vars(monkeypatch):
    """Test expanding multiple variables in one string."""
    monkeypatch.setenv("HOME", "/home/user")
    monkeypatch.setenv("PROJECT", "myproject")

    result = expand_env_vars("${HOME}/${PROJECT}")
    assert result == "/home/user/myproject"


def test_expand_from_explicit_mapping():
    """An explicit mapping is used instead of os.environ."""
    result = expand_env_vars("--token=${API_TOKEN}", {"API_TOKEN": "abc"})
    assert result == "--token=abc"


def test_missing_var_returns_original(monkeypatch):
    """Test that missing variables are preserved with warning."""
    monkeypatch.delenv("MISSING_VAR", raising=False)

    with warnings.catch_warnings(record=True) as w:
        warnings.simplefilter("always")
        result = expand_env_vars("command ${MISSING_VAR} arg")

        assert result == "command ${MISSING_VAR} arg"
        assert len(w) == 1
        assert "MISSING_VAR" in str(w[0].message)
        assert "not found" in str(w[0].message)


def test_no_vars_in_string():
    """Test string without variables passes through unchanged."""
    assert expand_env_vars("npx -y server-name") == "npx -y server-name"
    assert expand_env_vars("") == ""


def test_pattern_rejects_lowercase_names():
    """Only upper-case names are treated as references."""
    assert ENV_VAR_PATTERN.search("${lowercase}") is None
    assert ENV_VAR_PATTERN.search("${123NUM}") is None
    assert ENV_VAR_PATTERN.search("${_PRIVATE_VAR}").group(1) == "_PRIVATE_VAR"


def test_nested_braces_not_supported():
    """Test that nested braces are not expanded."""
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        result = expand_env_vars("${OUTER${INNER}}", {})
    assert "${OUTER" in result


def test_find_env_references():
    assert find_env_references("${A}/x/${B_2}") == ["A", "B_2"]
    assert find_env_references("plain") == []


def test_expand_definition_expands_command_args_and_env():
    """All string fields are expanded; the rest pass through."""
    definition = ServerDefinition(
        command="${BIN}/server",
        args=["--root", "${ROOT}"],
        env={"TOKEN": "${SECRET}", "PLAIN": "value"},
        settings={"k": "${NOT_EXPANDED}"},
        source="registry",
        enabled=False,
    )
    environ = {"BIN": "/opt/bin", "ROOT": "/srv", "SECRET": "s3cr3t"}

    resolved = expand_definition(definition, environ)

    assert resolved.command == "/opt/bin/server"
    assert resolved.args == ["--root", "/srv"]
    assert resolved.env == {"TOKEN": "s3cr3t", "PLAIN": "value"}
    assert resolved.settings == {"k": "${NOT_EXPANDED}"}
    assert resolved.source == "registry"
    assert resolved.enabled is False


def test_expand_definition_keeps_absent_env():
    resolved = expand_definition(ServerDefinition(command="node"), {})
    assert resolved.env is None
