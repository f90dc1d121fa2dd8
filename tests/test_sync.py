# ABOUTME: Tests for SyncService orchestration
# ABOUTME: Intents write targets first, registry membership follows the outcome
import json

import pytest

from mcpsync.models import ServerNotFoundError
from mcpsync.sync import SyncService


def write_servers(path, servers: dict, **extra) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({**extra, "mcpServers": servers}))


def file_servers(path) -> dict:
    return json.loads(path.read_text())["mcpServers"]


class TestScenario:
    def test_alpha_beta_walkthrough(self, service, alpha_path):
        write_servers(alpha_path, {"web": {"command": "npx", "args": ["server-web"]}})

        service.sync()
        assert [server.id for server in service.get_all()] == ["web"]
        assert service.get_server("web").apps == {"Alpha"}

        result = service.add_server("web", "npx server-web", targets=["Beta"])
        assert result.ok
        assert "web" in service.get_for_target("Beta")
        assert service.get_server("web").apps == {"Alpha", "Beta"}

        service.remove_server("web", ["Alpha"])
        assert "web" not in service.get_for_target("Alpha")
        assert service.get_server("web").apps == {"Beta"}

        service.remove_server("web", ["Beta"])
        assert service.get_all() == []
        with pytest.raises(ServerNotFoundError):
            service.get_server("web")


class TestStart:
    def test_first_detection_backup(self, service, alpha_path):
        write_servers(alpha_path, {"orig": {"command": "node", "args": ["orig.js"]}})

        report = service.start()

        assert report.created == ["orig"]
        assert set(service.backups.get_backup("Alpha")) == {"orig"}
        assert service.backups.get_backup("Beta") == {}

    def test_existing_backup_kept(self, service, alpha_path):
        write_servers(alpha_path, {"orig": {"command": "node"}})
        service.start()

        write_servers(alpha_path, {"orig": {"command": "node"}, "later": {"command": "uvx"}})
        service.start()

        assert set(service.backups.get_backup("Alpha")) == {"orig"}
        assert service.get_server("later").apps == {"Alpha"}

    def test_unreadable_target_skipped(self, service, alpha_path, beta_path):
        write_servers(alpha_path, {"web": {"command": "npx"}})
        beta_path.parent.mkdir(parents=True)
        beta_path.write_text("{broken")

        report = service.start()

        assert report.created == ["web"]
        assert not service.backups.has_backup("Beta")
        assert "Beta" in service.manager.read_errors

    def test_malformed_entry_marks_target_unreadable(self, service, alpha_path, beta_path):
        write_servers(alpha_path, {"web": {"command": "npx", "args": 5}})
        write_servers(beta_path, {"git": {"command": "uvx"}})

        report = service.sync()

        assert report.created == ["git"]
        assert set(service.manager.read_errors) == {"Alpha"}

    def test_list_targets(self, service, alpha_path):
        write_servers(alpha_path, {})
        service.start()

        statuses = {status.name: status for status in service.list_targets()}

        assert set(statuses) == {"Alpha", "Beta"}
        assert statuses["Alpha"].present
        assert not statuses["Beta"].present
        assert statuses["Alpha"].synced and statuses["Alpha"].has_backup
        assert statuses["Alpha"].path == alpha_path


class TestAdd:
    def test_add_to_all_synced_targets(self, service, alpha_path, beta_path):
        result = service.add_server("web", "npx -y server-web", env={"TOKEN": "x"})

        assert result.succeeded == ["Alpha", "Beta"]
        for path in (alpha_path, beta_path):
            assert file_servers(path)["web"] == {
                "command": "npx",
                "args": ["-y", "server-web"],
                "env": {"TOKEN": "x"},
            }
        server = service.get_server("web")
        assert server.name == "Web"
        assert server.env == {"TOKEN": "x"}
        assert server.permissions == "always_ask"
        assert [s.id for s in service.get_applied_servers("Beta")] == ["web"]

    def test_empty_command_line_rejected(self, service):
        with pytest.raises(ValueError, match="Empty command"):
            service.add_server("web", "   ")

    def test_empty_id_rejected(self, service, alpha_path):
        with pytest.raises(ValueError, match="id"):
            service.add_server("", "npx server-web")
        assert not alpha_path.exists()

    def test_unknown_target_rejected(self, service):
        with pytest.raises(ValueError, match="Unknown target"):
            service.add_server("web", "npx server-web", targets=["Gamma"])

    def test_partial_failure_tracks_written_targets(self, service, beta_path):
        beta_path.parent.mkdir(parents=True)
        beta_path.write_text("{broken")

        result = service.add_server("web", "npx server-web")

        assert not result
        assert list(result.failed) == ["Beta"]
        assert service.get_server("web").apps == {"Alpha"}

    def test_total_failure_records_nothing(self, service, alpha_path, beta_path):
        for path in (alpha_path, beta_path):
            path.parent.mkdir(parents=True)
            path.write_text("{broken")

        result = service.add_server("web", "npx server-web")

        assert not result.succeeded
        assert service.get_all() == []

    def test_readd_keeps_settings_and_source(self, service, alpha_path):
        write_servers(alpha_path, {
            "web": {"command": "npx", "settings": {"port": 8080}, "source": "extension"}
        })
        service.sync()

        result = service.add_server("web", "npx server-web", targets=["Alpha"])

        assert result.ok
        entry = file_servers(alpha_path)["web"]
        assert entry["args"] == ["server-web"]
        assert entry["settings"] == {"port": 8080}
        assert entry["source"] == "extension"


class TestUpdate:
    def test_update_where_synced(self, service, alpha_path, beta_path):
        service.add_server("web", "npx server-web", targets=["Alpha"])

        result = service.update_server("web", "uvx web --port 8080")

        assert result.succeeded == ["Alpha"]
        assert file_servers(alpha_path)["web"]["args"] == ["web", "--port", "8080"]
        assert not beta_path.exists()
        assert service.get_server("web").command == "uvx"

    def test_update_unknown_server(self, service):
        with pytest.raises(ServerNotFoundError):
            service.update_server("ghost", "npx ghost")

    def test_update_disabled_server_touches_registry_only(self, service, alpha_path):
        service.add_server("web", "npx server-web", targets=["Alpha"])
        service.toggle_server("web", False)

        result = service.update_server("web", "uvx web")

        assert not result.succeeded
        assert "web" not in file_servers(alpha_path)
        assert service.get_server("web").command == "uvx"

    def test_update_failing_everywhere_leaves_registry(self, service, alpha_path):
        service.add_server("web", "npx server-web", targets=["Alpha"])
        alpha_path.write_text("{broken")

        result = service.update_server("web", "node other.js")

        assert not result.succeeded
        assert list(result.failed) == ["Alpha"]
        server = service.get_server("web")
        assert server.command == "npx"
        assert server.args == ["server-web"]

    def test_update_partial_failure_records_new_fields(self, service, alpha_path, beta_path):
        service.add_server("web", "npx server-web")
        beta_path.write_text("{broken")

        result = service.update_server("web", "uvx web")

        assert result.succeeded == ["Alpha"]
        assert list(result.failed) == ["Beta"]
        server = service.get_server("web")
        assert server.command == "uvx"
        assert server.apps == {"Alpha", "Beta"}


class TestRemove:
    def test_remove_everywhere(self, service, alpha_path, beta_path):
        service.add_server("web", "npx server-web")

        result = service.remove_server("web")

        assert result.ok
        assert file_servers(alpha_path) == {}
        assert file_servers(beta_path) == {}
        assert service.get_all() == []

    def test_partial_remove_keeps_unwritten_membership(self, service, beta_path):
        service.add_server("web", "npx server-web")
        beta_path.write_text("{broken")

        result = service.remove_server("web")

        assert not result
        assert service.get_server("web").apps == {"Beta"}

    def test_foreign_entries_survive(self, service, alpha_path):
        write_servers(alpha_path, {"remote": {"url": "https://example.com/mcp"}}, theme="dark")
        service.add_server("web", "npx server-web")

        service.remove_server("web")

        data = json.loads(alpha_path.read_text())
        assert data["theme"] == "dark"
        assert data["mcpServers"] == {"remote": {"url": "https://example.com/mcp"}}


class TestToggle:
    def test_global_toggle_keeps_membership(self, service, alpha_path, beta_path):
        service.add_server("web", "npx server-web")

        service.toggle_server("web", False)
        assert "web" not in file_servers(alpha_path)
        assert "web" not in file_servers(beta_path)
        server = service.get_server("web")
        assert server.enabled is False
        assert server.apps == {"Alpha", "Beta"}

        service.toggle_server("web", True)
        assert file_servers(alpha_path)["web"]["enabled"] is True
        assert "web" in file_servers(beta_path)
        assert service.get_server("web").enabled is True

    def test_per_target_toggle_moves_membership(self, service, alpha_path):
        service.add_server("web", "npx server-web")

        service.toggle_server("web", False, ["Alpha"])
        server = service.get_server("web")
        assert "web" not in file_servers(alpha_path)
        assert server.apps == {"Beta"}
        assert server.enabled is True

        service.toggle_server("web", False, ["Beta"])
        server = service.get_server("web")
        assert server.apps == set()
        assert server.enabled is False

        service.toggle_server("web", True, ["Alpha"])
        server = service.get_server("web")
        assert server.apps == {"Alpha"}
        assert server.enabled is True

    def test_toggle_unknown_server(self, service):
        with pytest.raises(ServerNotFoundError):
            service.toggle_server("ghost", True)


class TestTargetSync:
    def test_opt_out_restores_backup(self, service, settings, alpha_path):
        write_servers(
            alpha_path,
            {"orig": {"command": "node", "args": ["orig.js"]}, "remote": {"url": "https://x"}},
            theme="dark",
        )
        service.start()
        service.add_server("web", "npx server-web")
        service.remove_server("orig", ["Alpha"])

        assert service.set_target_sync("Alpha", False)

        data = json.loads(alpha_path.read_text())
        assert data["theme"] == "dark"
        assert data["mcpServers"] == {
            "remote": {"url": "https://x"},
            "orig": {"command": "node", "args": ["orig.js"]},
        }
        assert service.backups.get_backup("Alpha") == service.get_for_target("Alpha")
        assert json.loads(settings.target_state_path.read_text()) == {"syncEnabled": {"Alpha": False}}

    def test_opted_out_target_is_left_alone(self, service, settings, alpha_path):
        service.start()
        service.set_target_sync("Alpha", False)

        service.add_server("web", "npx server-web")
        assert not alpha_path.exists() or "web" not in file_servers(alpha_path)
        assert service.get_server("web").apps == {"Beta"}

        with pytest.raises(ValueError, match="disabled"):
            service.add_server("web", "npx server-web", targets=["Alpha"])

        write_servers(alpha_path, {"manual": {"command": "node"}})
        service.sync()
        with pytest.raises(ServerNotFoundError):
            service.get_server("manual")

    def test_state_persists_across_instances(self, service, settings, alpha, beta):
        service.set_target_sync("Beta", False)

        reopened = SyncService.from_settings(settings, adapters=[alpha, beta])

        assert reopened.synced_targets() == ["Alpha"]
        assert not reopened.is_target_synced("Beta")

    def test_opt_in_captures_fresh_backup(self, service, alpha_path):
        write_servers(alpha_path, {"orig": {"command": "node"}})
        service.start()
        service.set_target_sync("Alpha", False)

        write_servers(alpha_path, {"orig": {"command": "node"}, "new": {"command": "uvx"}})
        assert service.set_target_sync("Alpha", True)

        assert set(service.backups.get_backup("Alpha")) == {"orig", "new"}
        assert service.is_target_synced("Alpha")

    def test_opt_out_without_backup(self, service, alpha_path):
        write_servers(alpha_path, {"web": {"command": "npx"}})

        assert service.set_target_sync("Alpha", False)
        assert "web" in file_servers(alpha_path)
        assert not service.is_target_synced("Alpha")

    def test_failed_restore_keeps_state(self, service, alpha_path):
        service.start()
        alpha_path.parent.mkdir(parents=True, exist_ok=True)
        alpha_path.write_text("{broken")

        assert service.set_target_sync("Alpha", False) is False
        assert service.is_target_synced("Alpha")

    def test_unknown_target(self, service):
        with pytest.raises(ValueError, match="Unknown target"):
            service.set_target_sync("Gamma", False)

    def test_unreadable_state_file_defaults_to_synced(self, settings, alpha, beta):
        settings.target_state_path.parent.mkdir(parents=True)
        settings.target_state_path.write_text("{oops")

        service = SyncService.from_settings(settings, adapters=[alpha, beta])

        assert service.synced_targets() == ["Alpha", "Beta"]


class TestResolve:
    def test_resolve_expands_environment(self, service, monkeypatch):
        monkeypatch.setenv("MY_TOKEN", "s3cr3t")
        monkeypatch.setenv("MCP_ROOT", "/srv")
        service.add_server("fs", "npx server-fs ${MCP_ROOT}", env={"TOKEN": "${MY_TOKEN}"})

        resolved = service.resolve_server("fs")

        assert resolved.args == ["server-fs", "/srv"]
        assert resolved.env == {"TOKEN": "s3cr3t"}
        assert service.get_server("fs").env == {"TOKEN": "${MY_TOKEN}"}

    def test_resolve_unknown(self, service):
        with pytest.raises(ServerNotFoundError):
            service.resolve_server("ghost")
