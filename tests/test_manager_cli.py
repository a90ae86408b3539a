"""
Tests for the manager command line
"""

import json
import logging

import pytest

from manager import SchemaguardManager
from schemaguard.logging_utils import clear_trigger_context

from conftest import write_config


@pytest.fixture
def manager(tmp_path):
    """Manager over a fresh project directory using the bundled migrations."""
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level

    instance = SchemaguardManager(str(write_config(tmp_path)))
    yield instance

    instance.cleanup()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)
    clear_trigger_context()


def run_json(manager, capsys, argv):
    capsys.readouterr()
    assert manager.run(argv) == 0
    return json.loads(capsys.readouterr().out)


class TestManagerCLI:
    """Test module discovery and routing"""

    def test_modules_discovered(self, manager):
        assert set(manager.modules) == {'backup', 'migrations'}

    def test_no_module_shows_overview(self, manager):
        assert manager.run([]) == 0

    def test_unknown_module(self, manager):
        assert manager.run(['sessions', '--list']) == 1

    def test_module_requires_command(self, manager):
        assert manager.run(['migrations']) == 1

    def test_status_json(self, manager, capsys):
        status = run_json(manager, capsys, ['migrations', '--status', '--format', 'json'])

        assert status['current_version'] == -1
        assert status['required_version'] == 3
        assert [m['version'] for m in status['pending_migrations']] == [1, 2, 3]

    def test_apply_with_consent(self, manager, capsys):
        assert manager.run(['migrations', '--apply', '--yes']) == 0

        status = run_json(manager, capsys, ['migrations', '--status', '--format', 'json'])
        assert status['current_version'] == 3
        assert status['pending_migrations'] == []

        backups = run_json(manager, capsys, ['backup', '--list', '--format', 'json'])
        assert backups['stats']['total_backups'] == 1
        assert backups['backups'][0]['file_name'].startswith('pre_migration_manual_')

    def test_init_then_verify(self, manager, capsys):
        assert manager.run(['migrations', '--init']) == 0

        result = run_json(manager, capsys, ['migrations', '--verify', '--format', 'json'])
        assert result == {'valid': True, 'issues': []}

    def test_check_takes_backup_without_applying(self, manager, capsys):
        result = run_json(manager, capsys, ['migrations', '--check', '--format', 'json'])

        assert result['requires_consent'] is True
        assert result['trigger']['kind'] == 'manual_request'
        assert result['backup_created']

        status = run_json(manager, capsys, ['migrations', '--status', '--format', 'json'])
        assert status['current_version'] == -1

    def test_backup_create_and_cleanup(self, manager, capsys):
        assert manager.run(['migrations', '--init']) == 0
        assert manager.run(['backup', '--create', '--label', 'nightly']) == 0
        assert manager.run(['backup', '--create', '--label', 'nightly']) == 0

        assert manager.run(['backup', '--cleanup', '--keep', '0', '--dry-run']) == 0
        backups = run_json(manager, capsys, ['backup', '--list', '--format', 'json'])
        assert backups['stats']['total_backups'] == 2

        assert manager.run(['backup', '--cleanup', '--keep', '1', '--yes']) == 0
        backups = run_json(manager, capsys, ['backup', '--list', '--format', 'json'])
        assert backups['stats']['total_backups'] == 1

    def test_restore_reports_pending_migrations(self, manager, capsys):
        manager.services['connection_manager'].execute_query("SELECT 1", fetch='one')
        created = run_json(manager, capsys, ['backup', '--create', '--format', 'json'])
        assert manager.run(['migrations', '--init']) == 0

        assert manager.run(['backup', '--restore', created['backup_path'], '--yes']) == 0

        status = run_json(manager, capsys, ['migrations', '--status', '--format', 'json'])
        assert status['current_version'] == -1
