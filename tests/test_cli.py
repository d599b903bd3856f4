"""Tests for the showbridge command-line interface."""

import json
import os
from unittest.mock import patch

import pytest

from showbridge.cli import build_parser, main
from showbridge.core.models import FieldMergeMode, SourceChoice


@pytest.fixture
def override_path(tmp_path, monkeypatch):
    """Isolated environment with the override file under tmp_path."""
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "override.json"
    with patch.dict(os.environ, {"DATA_SOURCE_OVERRIDE_PATH": str(path)}, clear=True):
        yield path


class TestParser:
    def test_set_arguments(self):
        args = build_parser().parse_args(
            ["set", "--list", "Hybrid", "--list-field", "name=preferContract"]
        )

        assert args.list_choice is SourceChoice.HYBRID
        assert args.detail_choice is None
        assert args.list_field == [("name", FieldMergeMode.PREFER_CONTRACT)]

    @pytest.mark.parametrize(
        "argv",
        [
            ["set", "--list", "chain"],
            ["set", "--list-field", "name"],
            ["set", "--detail-field", "name=newest"],
            [],
        ],
    )
    def test_invalid_arguments_exit(self, argv):
        with pytest.raises(SystemExit):
            build_parser().parse_args(argv)


class TestMain:
    """End-to-end runs of main() against a temporary override file."""

    def test_show_prints_defaults(self, override_path, capsys):
        assert main(["show"]) == 0

        document = json.loads(capsys.readouterr().out)
        assert document == {
            "listSourceChoice": "contract",
            "detailSourceChoice": "contract",
            "mergePolicy": {"defaultMode": "coalesce", "listFields": {}, "detailFields": {}},
        }

    def test_set_persists_override(self, override_path, capsys):
        assert main(["set", "--list", "hybrid", "--list-field", "description=preferBackend"]) == 0

        printed = json.loads(capsys.readouterr().out)
        stored = json.loads(override_path.read_text(encoding="utf-8"))
        assert printed["listSourceChoice"] == "hybrid"
        assert printed["mergePolicy"]["listFields"] == {"description": "preferBackend"}
        assert stored["listSourceChoice"] == "hybrid"
        assert stored["mergePolicy"]["listFields"] == {"description": "preferBackend"}

        assert main(["show"]) == 0
        assert json.loads(capsys.readouterr().out)["listSourceChoice"] == "hybrid"

    def test_set_without_changes_fails(self, override_path, capsys):
        assert main(["set"]) == 2
        assert not override_path.exists()

    def test_reset_removes_override(self, override_path, capsys):
        main(["set", "--detail", "backend"])
        capsys.readouterr()

        assert main(["reset"]) == 0

        assert not override_path.exists()
        assert json.loads(capsys.readouterr().out)["detailSourceChoice"] == "contract"
