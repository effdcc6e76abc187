"""Unit tests for preferences, business profile and subscription plans."""
import json

import pytest

from pavilo.core.exceptions import NotFound, SerializationError, ValidationError
from pavilo.core.storage import APP_SETTINGS_KEY, BUSINESS_SETTINGS_KEY, SUBSCRIPTIONS_KEY
from pavilo.models.records import AppPreferencesData
from pavilo.services.plans import PLANS, get_plan, list_subscriptions, request_subscription
from pavilo.services.preferences import AppPreferences, load_business, save_business


class TestAppPreferences:
    def test_defaults(self):
        prefs = AppPreferences()
        assert (prefs.language, prefs.dark_mode) == ("en", False)

    def test_update_calls_persist(self):
        saved = []
        prefs = AppPreferences(persist=saved.append)
        prefs.update(language="gu")
        prefs.update(dark_mode=True)
        assert [(d.language, d.dark_mode) for d in saved] == [("gu", False), ("gu", True)]

    def test_invalid_language_not_persisted(self):
        saved = []
        prefs = AppPreferences(persist=saved.append)
        with pytest.raises(ValidationError):
            prefs.update(language="fr")
        assert saved == []
        assert prefs.language == "en"

    def test_empty_update_is_noop(self):
        saved = []
        AppPreferences(persist=saved.append).update()
        assert saved == []

    def test_snapshot_is_a_copy(self):
        prefs = AppPreferences(AppPreferencesData(language="hi"))
        snap = prefs.snapshot()
        snap.language = "en"
        assert prefs.language == "hi"

    def test_from_storage_round_trip(self, storage):
        AppPreferences.from_storage(storage).update(language="hi", dark_mode=True)
        assert json.loads(storage.load(APP_SETTINGS_KEY)) == {"language": "hi", "darkMode": True}
        reloaded = AppPreferences.from_storage(storage)
        assert (reloaded.language, reloaded.dark_mode) == ("hi", True)

    def test_from_corrupt_storage_uses_defaults(self, storage):
        storage.save(APP_SETTINGS_KEY, "{{{")
        assert AppPreferences.from_storage(storage).language == "en"


class TestBusinessSettings:
    def test_defaults(self, storage):
        profile = load_business(storage)
        assert profile.business_name == "Pavilo Store"
        assert profile.owner_name == "Owner Name"

    def test_save_merges(self, storage):
        save_business(storage, {"phone": "12345"})
        save_business(storage, {"business_name": "Asha Stores"})
        profile = load_business(storage)
        assert (profile.business_name, profile.phone) == ("Asha Stores", "12345")
        assert json.loads(storage.load(BUSINESS_SETTINGS_KEY))["businessName"] == "Asha Stores"

    def test_blank_phone_rejected(self, storage):
        with pytest.raises(ValidationError):
            save_business(storage, {"phone": "  "})


class TestPlans:
    def test_three_plans(self):
        assert [(p.key, p.price) for p in PLANS.values()] == [
            ("basic", 999), ("pro", 1499), ("advanced", 2499),
        ]
        assert get_plan("PRO").popular is True

    def test_unknown_plan(self):
        with pytest.raises(NotFound):
            get_plan("enterprise")

    def test_request_is_pending_and_stored(self, storage):
        request = request_subscription(storage, "user-1", "basic", email="a@b.c")
        assert request.status == "pending"
        assert request.price == 999
        request_subscription(storage, "user-2", "pro")
        assert [r.plan_name for r in list_subscriptions(storage, user_id="user-1")] == ["basic"]
        assert len(list_subscriptions(storage)) == 2

    def test_unreadable_requests_are_not_overwritten(self, storage):
        storage.save(SUBSCRIPTIONS_KEY, "oops")
        with pytest.raises(SerializationError):
            request_subscription(storage, "user-1", "basic")
        assert storage.load(SUBSCRIPTIONS_KEY) == "oops"
        assert list_subscriptions(storage) == []
