"""Tests for the run state store."""

import json
from pathlib import Path

from gho.state import RunStateStore
from gho.storage import ConfigPaths, JSONDocumentStore


class TestRunStateStore:
    """Tests for RunStateStore."""

    def test_empty(self, state_store: RunStateStore) -> None:
        """Test loading before anything is recorded."""
        state = state_store.load()
        assert state.last_org is None
        assert state.last_repo is None

    def test_record_org_and_repo(self, state_store: RunStateStore) -> None:
        """Test recorded values persist independently."""
        state_store.record_org("acme")
        state_store.record_repo("acme/widgets")

        state = state_store.load()
        assert state.last_org == "acme"
        assert state.last_repo == "acme/widgets"

    def test_unset_fields_not_written(
        self, state_store: RunStateStore, paths: ConfigPaths
    ) -> None:
        """Test None values are left out of the document."""
        state_store.record_org("acme")
        assert json.loads(paths.state_path.read_text()) == {"last_org": "acme"}

    def test_clear(self, state_store: RunStateStore) -> None:
        """Test clear() forgets everything."""
        state_store.record_org("acme")
        state_store.clear()
        assert state_store.load().last_org is None

    def test_corrupt_document_is_ignored(
        self, state_store: RunStateStore, paths: ConfigPaths, caplog
    ) -> None:
        """Test unreadable state falls back to empty with a warning."""
        paths.root.mkdir(parents=True)
        paths.state_path.write_text("{broken")

        state = state_store.load()

        assert state.last_org is None
        assert "Ignoring unreadable run state" in caplog.text

    def test_invalid_shape_is_ignored(
        self, state_store: RunStateStore, paths: ConfigPaths
    ) -> None:
        """Test a document with wrong field types falls back to empty."""
        paths.root.mkdir(parents=True)
        paths.state_path.write_text('{"last_org": ["not", "a", "string"]}')

        assert state_store.load().last_org is None

    def test_unwritable_state_does_not_fail_recording(self, tmp_path: Path, caplog) -> None:
        """Test a failed write is logged and the recorded state still returned."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = RunStateStore(JSONDocumentStore(blocker / "state.json"))

        state = store.record_org("acme")
        store.record_repo("acme/widgets")

        assert state.last_org == "acme"
        assert "Could not save run state" in caplog.text
