"""Tests for the girder command line."""
import pytest
from typer.testing import CliRunner

from girderpy.cli.main import app, parse_node
from girderpy.core.models import NodeRef, NodeType, ROOT_NODE, USERS_NODE


UNREACHABLE = 'http://127.0.0.1:1/api/v1'


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def no_girder_env(monkeypatch):
    for name in ('GIRDER_API_URL', 'GIRDER_API_KEY', 'GIRDER_TOKEN'):
        monkeypatch.delenv(name, raising=False)


class TestParseNode:
    """Test suite for node arguments."""

    def test_virtual(self):
        assert parse_node('root', None) == ROOT_NODE
        assert parse_node('Users', None) == USERS_NODE

    def test_real(self):
        assert parse_node('folder', 'f1') == NodeRef('f1', 'f1', NodeType.FOLDER)


class TestCommands:
    """Test suite for CLI commands that need no server."""

    def test_ls_root(self, runner):
        """Test root is listed without contacting the server."""
        result = runner.invoke(app, ['--api-url', UNREACHABLE, 'ls'])

        assert result.exit_code == 0
        assert 'Collections' in result.output
        assert 'Users' in result.output

    def test_unknown_item_mode(self, runner):
        result = runner.invoke(app, ['--item-mode', 'sideways', 'ls'])

        assert result.exit_code == 1
        assert 'Unknown item mode' in result.output

    def test_missing_id(self, runner):
        result = runner.invoke(app, ['ls', 'folder'])

        assert result.exit_code == 1
        assert 'needs an id' in result.output

    def test_unknown_type(self, runner):
        result = runner.invoke(app, ['ls', 'assetstore', 'x'])

        assert result.exit_code == 1
        assert 'Unknown node type' in result.output

    def test_unreachable_server(self, runner):
        """Test request failures are reported and exit with code 1."""
        result = runner.invoke(app, ['--api-url', UNREACHABLE, 'whoami'])

        assert result.exit_code == 1
        assert 'Network error' in result.output

    def test_ls_file(self, runner):
        """Test a file is refused instead of listed."""
        result = runner.invoke(app, ['--api-url', UNREACHABLE, 'ls', 'file', 'f9'])

        assert result.exit_code == 1
        assert 'Cannot list the contents of file:f9' in result.output
