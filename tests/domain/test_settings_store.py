"""
Tests for SettingsStore.
"""

import logging

import pytest

from athenaeum.domain.errors import ValidationError
from athenaeum.domain.services import SettingsStore
from athenaeum.domain.value_objects import AppSettings


@pytest.fixture
def store():
    return SettingsStore()


class TestGet:

    def test_starts_with_defaults(self, store):
        assert store.get() == AppSettings()

    def test_starts_with_given_settings(self):
        store = SettingsStore(AppSettings(theme="Dark"))

        assert store.get_value("theme") == "Dark"

    def test_unknown_name(self, store):
        with pytest.raises(ValidationError, match="Unknown setting"):
            store.get_value("font_size")


class TestSet:

    def test_set_value_replaces_snapshot(self, store):
        # Arrange
        before = store.get()

        # Act
        store.set_value("max_renewals", 5)

        # Assert
        assert store.get().max_renewals == 5
        assert before.max_renewals == 2

    def test_wrong_type_is_rejected_and_nothing_changes(self, store):
        with pytest.raises(ValidationError):
            store.set_value("default_loan_days", "21")

        assert store.get() == AppSettings()

    def test_unknown_name_is_rejected(self, store):
        with pytest.raises(ValidationError) as exc_info:
            store.set_value("font_size", 12)

        assert exc_info.value.field == "font_size"

    def test_update_is_all_or_nothing(self, store):
        with pytest.raises(ValidationError):
            store.update(max_renewals=4, theme=3)

        assert store.get().max_renewals == 2

    def test_update_several(self, store):
        updated = store.update(default_loan_days=21, theme="Dark")

        assert updated.default_loan_days == 21
        assert updated.theme == "Dark"

    def test_changes_are_logged(self, store, caplog):
        with caplog.at_level(logging.INFO, logger="athenaeum.domain.services.settings_store"):
            store.set_value("theme", "Dark")

        assert "theme" in caplog.text

    def test_reset_restores_defaults(self, store):
        store.update(max_renewals=9, background_scanning_enabled=True)

        store.reset()

        assert store.get() == AppSettings()
