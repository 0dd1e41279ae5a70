"""Run state store: last organization and repository used."""

import logging

from pydantic import ValidationError

from gho.errors import PersistenceError
from gho.models import RunState
from gho.storage import DocumentStore

logger = logging.getLogger(__name__)


class RunStateStore:
    """Persists advisory last-used context.

    The state only biases future prompts, so an unreadable document is
    logged and treated as empty instead of failing the command.
    """

    def __init__(self, documents: DocumentStore) -> None:
        self._documents = documents

    def load(self) -> RunState:
        """Load the run state, falling back to an empty state."""
        try:
            data = self._documents.load()
        except PersistenceError as e:
            logger.warning("Ignoring unreadable run state: %s", e)
            return RunState()

        if data is None:
            return RunState()

        try:
            return RunState.model_validate(data)
        except ValidationError as e:
            logger.warning("Ignoring invalid run state: %s", e)
            return RunState()

    def save(self, state: RunState) -> None:
        """Write the run state."""
        self._documents.save(state.model_dump(mode="json", exclude_none=True))

    def record_org(self, org: str) -> RunState:
        """Remember the last organization browsed."""
        state = self.load()
        state.last_org = org
        self._save_quietly(state)
        return state

    def record_repo(self, full_name: str) -> RunState:
        """Remember the last repository touched (owner/repo)."""
        state = self.load()
        state.last_repo = full_name
        self._save_quietly(state)
        return state

    def _save_quietly(self, state: RunState) -> None:
        try:
            self.save(state)
        except PersistenceError as e:
            logger.warning("Could not save run state: %s", e)

    def clear(self) -> None:
        """Forget all last-used context."""
        self.save(RunState())
