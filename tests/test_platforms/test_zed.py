# Tests for Zed platform adapter
import json
from pathlib import Path

import pytest

from mcpsync.models import ServerDefinition
from mcpsync.platforms.zed import ZedAdapter, is_managed_entry


def test_zed_adapter_properties(tmp_path: Path) -> None:
    settings_file = tmp_path / "settings.json"
    adapter = ZedAdapter(config_path=settings_file)

    assert adapter.name == "Zed"
    assert adapter.locate() == settings_file
    assert not adapter.is_present()


def test_is_managed_entry() -> None:
    assert is_managed_entry({"command": "npx"})
    assert is_managed_entry({"command": {"path": "npx", "args": []}})
    assert not is_managed_entry({"command": "npx", "source": "custom"})
    assert not is_managed_entry({"settings": {}})
    assert not is_managed_entry("npx")


def test_zed_read_flat_and_legacy_entries(tmp_path: Path) -> None:
    """Both the flat and the nested {path, args, env} forms are read."""
    settings_file = tmp_path / "settings.json"
    settings_file.write_text("""{
  // Zed settings are JSONC
  "theme": "One Dark",
  "context_servers": {
    "web": {"source": "extension", "command": "npx", "args": ["server-web"], "env": null, "enabled": true},
    "legacy": {"command": {"path": "node", "args": ["l.js"], "env": {"A": "1"}}, "settings": {"k": 1}},
    "mine": {"source": "custom", "command": "my-server", "args": []},
  },
}""")

    servers = ZedAdapter(config_path=settings_file).read()

    assert set(servers) == {"web", "legacy"}
    assert servers["web"] == ServerDefinition(
        command="npx", args=["server-web"], source="extension", enabled=True
    )
    assert servers["legacy"] == ServerDefinition(
        command="node", args=["l.js"], env={"A": "1"}, settings={"k": 1}
    )


def test_zed_write_shape_and_preservation(tmp_path: Path) -> None:
    settings_file = tmp_path / "settings.json"
    settings_file.write_text(json.dumps({
        "theme": "One Dark",
        "context_servers": {
            "mine": {"source": "custom", "command": "my-server", "args": []},
            "old": {"command": "node", "args": ["old.js"]},
        },
    }))
    adapter = ZedAdapter(config_path=settings_file)

    assert adapter.write({"web": ServerDefinition(command="npx", args=["server-web"])})

    data = json.loads(settings_file.read_text())
    assert data["theme"] == "One Dark"
    assert data["context_servers"] == {
        "mine": {"source": "custom", "command": "my-server", "args": []},
        "web": {"command": "npx", "args": ["server-web"], "env": None, "enabled": True},
    }


def test_zed_never_writes_custom_source(tmp_path: Path) -> None:
    settings_file = tmp_path / "settings.json"
    adapter = ZedAdapter(config_path=settings_file)

    adapter.write({"web": ServerDefinition(command="npx", source="custom")})

    entry = json.loads(settings_file.read_text())["context_servers"]["web"]
    assert "source" not in entry
    assert "web" in adapter.read()


def test_zed_rewrite_keeps_enabled_state(tmp_path: Path) -> None:
    settings_file = tmp_path / "settings.json"
    settings_file.write_text(json.dumps({
        "context_servers": {"web": {"command": "npx", "args": [], "enabled": False}}
    }))
    adapter = ZedAdapter(config_path=settings_file)

    adapter.write({"web": ServerDefinition(command="npx", args=["v2"])})

    assert adapter.read()["web"].enabled is False


def test_zed_read_rejects_malformed_legacy_args(tmp_path: Path) -> None:
    settings_file = tmp_path / "settings.json"
    settings_file.write_text(json.dumps({
        "context_servers": {"web": {"command": {"path": "npx", "args": "server-web"}}}
    }))

    with pytest.raises(ValueError, match="'web' has invalid 'args'"):
        ZedAdapter(config_path=settings_file).read()
