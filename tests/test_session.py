"""Tests for workflow stage transitions."""

from unittest import mock

import pytest

from codetective import token_store
from codetective.code_group import CodeGroup
from codetective.models import DetectionState, Stage, UploadedFile
from codetective.providers.base import Classifier
from codetective.session import Session


def _session() -> Session:
    with mock.patch.object(token_store, "load", return_value=None):
        return Session(code_group=CodeGroup(), poll_interval=0)


def _client() -> Classifier:
    return mock.create_autospec(Classifier, instance=True)


def _import(session: Session, *names: str) -> None:
    session.code_group.import_upload([UploadedFile(n, b"x = 1") for n in names])


class TestAdvance:
    def test_starts_initial(self):
        session = _session()
        assert session.stage is Stage.INITIAL
        assert session.client_slot.is_empty()

    def test_full_workflow(self):
        session = _session()
        client = _client()
        session.provide_client(client)
        assert session.stage is Stage.API_PROVIDED
        assert session.client_slot.peek() is client

        _import(session, "b.py", "a.py")
        assert session.finish_import() == 2
        assert session.stage is Stage.CODE_IMPORTED
        assert [t.path for t in session.results] == ["a.py", "b.py"]
        assert len(session.queue) == 2
        assert all(t.cell.status.state is DetectionState.PENDING for t in session.results)

    def test_cannot_skip_stage(self):
        session = _session()
        _import(session, "a.py")
        with pytest.raises(ValueError, match="skip"):
            session.advance(Stage.CODE_IMPORTED)

    def test_api_stage_requires_client(self):
        session = _session()
        with pytest.raises(ValueError, match="no API client"):
            session.advance(Stage.API_PROVIDED)

    def test_import_stage_requires_files(self):
        session = _session()
        session.provide_client(_client())
        with pytest.raises(ValueError, match="no code files"):
            session.finish_import()
        assert session.stage is Stage.API_PROVIDED

    def test_same_stage_is_noop(self):
        session = _session()
        session.provide_client(_client())
        session.advance(Stage.API_PROVIDED)
        assert session.stage is Stage.API_PROVIDED

    def test_advance_backwards_refused(self):
        session = _session()
        session.provide_client(_client())
        with pytest.raises(ValueError):
            session.advance(Stage.INITIAL)

    def test_provider_locked_after_import(self):
        session = _session()
        session.provide_client(_client())
        _import(session, "a.py")
        session.finish_import()
        with pytest.raises(ValueError):
            session.provide_client(_client())

    def test_new_client_replaces_old(self):
        session = _session()
        session.provide_client(_client())
        newer = _client()
        session.provide_client(newer)
        assert session.client_slot.peek() is newer


class TestStepBack:
    def _imported(self) -> Session:
        session = _session()
        session.provide_client(_client())
        _import(session, "a.py", "b.py")
        session.finish_import()
        return session

    def test_back_to_api_stage_clears_code(self):
        session = self._imported()
        session.step_back(Stage.API_PROVIDED)
        assert session.stage is Stage.API_PROVIDED
        assert session.code_group.num_files() == 0
        assert len(session.queue) == 0
        assert len(session.results) == 0
        assert session.finished == 0
        assert session.complete is False
        assert not session.client_slot.is_empty()
        assert session.epoch == 1

    def test_back_to_initial_clears_client(self):
        session = self._imported()
        session.step_back(Stage.INITIAL)
        assert session.stage is Stage.INITIAL
        assert session.client_slot.is_empty()
        assert session.code_group.num_files() == 0

    def test_forwards_refused(self):
        session = _session()
        with pytest.raises(ValueError):
            session.step_back(Stage.API_PROVIDED)

    def test_reimport_after_step_back(self):
        session = self._imported()
        session.step_back(Stage.API_PROVIDED)
        _import(session, "a.py")
        assert session.finish_import() == 1
        assert [t.path for t in session.results] == ["a.py"]
