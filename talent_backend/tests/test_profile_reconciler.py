import json

import pytest

from talent_backend.domain.questionnaire import QuestionnaireFieldSet
from talent_backend.infrastructure.persistence.profile_repository import (
    ProfileRepository,
)
from talent_backend.models import UserProfile
from talent_backend.services.exceptions import (
    MalformedPayloadError,
    PersistenceError,
    ProfileNotFoundError,
)
from talent_backend.services.profile_reconciler import (
    ProfileReconciler,
    build_field_registry,
)


def _raw(db_session, subject_id):
    db_session.expire_all()
    return db_session.query(UserProfile).filter(UserProfile.subject_id == subject_id).all()


def _event_outcomes(events, name):
    return [fields["outcome"] for event, fields in events if event == name]


def test_get_profile_returns_none_for_fresh_subject(reconciler, events):
    assert reconciler.get_profile("nobody") is None
    assert _event_outcomes(events, "profile.get") == ["not_found"]


def test_create_profile_partitions_flat_and_questionnaire_fields(reconciler, db_session):
    record = reconciler.create_profile(
        "u1",
        {
            "role": "talent",
            "displayName": "Jordan Lee",
            "bio": "Stage and screen",
            "yearsExperience": "5",
            "roleTypes": ["lead"],
        },
    )

    assert record["display_name"] == "Jordan Lee"
    assert record["bio"] == "Stage and screen"
    acting = record["questionnaire_responses"]["acting"]
    assert acting["yearsExperience"] == "5"
    assert acting["roleTypes"] == ["lead"]
    # unset fields defaulted by kind
    assert acting["stageCombat"] == ""
    assert acting["primarySpecialty"] == []
    assert "yearsExperience" not in record

    (row,) = _raw(db_session, "u1")
    assert row.display_name == "Jordan Lee"
    assert not hasattr(row, "yearsExperience")


def test_create_profile_defaults_role_when_missing(reconciler):
    record = reconciler.create_profile("u1", {"displayName": "No Role"})
    assert record["role"] == "talent"


def test_second_create_behaves_like_update(db_session, reconciler, events):
    reconciler.create_profile("u1", {"displayName": "First", "yearsExperience": "2"})
    second = reconciler.create_profile("u1", {"bio": "Added later", "stageCombat": "yes"})

    rows = _raw(db_session, "u1")
    assert len(rows) == 1
    assert second["display_name"] == "First"
    assert second["bio"] == "Added later"
    assert second["questionnaire_responses"]["acting"]["yearsExperience"] == "2"
    assert second["questionnaire_responses"]["acting"]["stageCombat"] == "yes"
    assert _event_outcomes(events, "profile.create") == ["created", "redirected"]


def test_second_create_matches_update_result(db_session, events):
    payload_a = {"displayName": "A", "actingMethod": ["meisner"]}
    payload_b = {"location": "Austin", "actingMethod": ["stanislavski"]}

    def sink(event, **fields):
        pass

    via_create = ProfileReconciler(ProfileRepository(db_session), event_sink=sink)
    via_create.create_profile("a", payload_a)
    created = via_create.create_profile("a", payload_b)

    via_update = ProfileReconciler(ProfileRepository(db_session), event_sink=sink)
    via_update.create_profile("b", payload_a)
    updated = via_update.update_profile("b", payload_b)

    for key in ("display_name", "location", "role", "questionnaire_responses"):
        assert created[key] == updated[key]


def test_update_with_only_flat_fields_leaves_questionnaire_untouched(reconciler):
    reconciler.create_profile("u1", {"yearsExperience": "5", "roleTypes": ["villain"]})
    before = json.dumps(reconciler.get_questionnaire_responses("u1"), sort_keys=True)

    record = reconciler.update_profile("u1", {"location": "Chicago"})

    assert record["location"] == "Chicago"
    after = json.dumps(reconciler.get_questionnaire_responses("u1"), sort_keys=True)
    assert after == before


def test_update_with_only_questionnaire_fields_leaves_flat_untouched(reconciler):
    created = reconciler.create_profile(
        "u1", {"displayName": "Sam", "bio": "Bio", "location": "NYC"}
    )

    record = reconciler.update_profile("u1", {"stageCombat": "certified"})

    for column in ("role", "talent_type", "display_name", "bio", "location"):
        assert record[column] == created[column]
    assert record["questionnaire_responses"]["acting"]["stageCombat"] == "certified"


def test_update_merges_fields_instead_of_replacing(reconciler):
    reconciler.save_questionnaire_responses("u1", {"custom": {"a": 1, "b": 2}})

    reconciler.update_profile("u1", {"questionnaire_responses": {"custom": {"a": 99}}})

    assert reconciler.get_questionnaire_responses("u1")["custom"] == {"a": 99, "b": 2}


def test_update_missing_profile_raises_not_found(reconciler, db_session, events):
    with pytest.raises(ProfileNotFoundError):
        reconciler.update_profile("ghost", {"bio": "x"})

    assert _raw(db_session, "ghost") == []
    assert _event_outcomes(events, "profile.update") == ["not_found"]


def test_update_ignores_managed_columns(reconciler):
    created = reconciler.create_profile("u1", {"displayName": "Sam"})

    record = reconciler.update_profile("u1", {"subject_id": "hijack", "id": 999})

    assert record["subject_id"] == "u1"
    assert record["id"] == created["id"]


def test_update_rejects_null_for_required_column(reconciler, db_session, events):
    reconciler.create_profile("u1", {"role": "manager"})

    with pytest.raises(MalformedPayloadError):
        reconciler.update_profile("u1", {"role": None})

    assert _raw(db_session, "u1")[0].role == "manager"
    assert _event_outcomes(events, "profile.update") == ["failed"]


def test_redirected_create_skips_null_for_required_column(reconciler):
    reconciler.create_profile("u1", {"role": "producer"})

    record = reconciler.create_profile("u1", {"role": None, "bio": "Later"})

    assert record["role"] == "producer"
    assert record["bio"] == "Later"


def test_update_rejects_nested_value_for_questionnaire_field(reconciler):
    reconciler.create_profile("u1", {"stageCombat": "yes"})

    with pytest.raises(MalformedPayloadError):
        reconciler.update_profile("u1", {"stageCombat": {"level": 3}})

    with pytest.raises(MalformedPayloadError):
        reconciler.create_profile("u2", {"unknownField": {"deep": True}})

    assert reconciler.get_questionnaire_responses("u1")["acting"]["stageCombat"] == "yes"
    assert reconciler.get_profile("u2") is None


def test_failed_redirected_create_is_reported_once(reconciler, events, monkeypatch):
    reconciler.create_profile("u1", {"displayName": "Sam"})
    events.clear()

    def broken_update(profile, values):
        raise PersistenceError("datastore unavailable")

    monkeypatch.setattr(reconciler.repository, "update", broken_update)

    with pytest.raises(PersistenceError):
        reconciler.create_profile("u1", {"bio": "x"})

    failed = [event for event, fields in events if fields["outcome"] == "failed"]
    assert failed == ["profile.create"]


def test_save_on_existing_profile_loads_it_once(reconciler, monkeypatch):
    reconciler.save_questionnaire_responses("u1", {"acting": {"stageCombat": "yes"}})

    calls = []
    original = reconciler.repository.get_by_subject

    def counting_get(subject_id):
        calls.append(subject_id)
        return original(subject_id)

    monkeypatch.setattr(reconciler.repository, "get_by_subject", counting_get)

    reconciler.save_questionnaire_responses("u1", {"acting": {"yearsExperience": "4"}})

    assert calls == ["u1"]
    assert reconciler.get_questionnaire_responses("u1")["acting"] == {
        "stageCombat": "yes",
        "yearsExperience": "4",
    }


def test_read_overlay_does_not_mutate_stored_record(reconciler, db_session):
    reconciler.create_profile("u1", {"displayName": "Sam", "stageCombat": "yes"})

    first = reconciler.get_profile("u1")
    second = reconciler.get_profile("u1")

    assert first == second
    assert first["stageCombat"] == "yes"
    (row,) = _raw(db_session, "u1")
    stored = ProfileRepository(db_session).to_dict(row)
    assert "stageCombat" not in stored
    assert stored["questionnaire_responses"]["acting"]["stageCombat"] == "yes"


def test_read_overlay_keeps_flat_column_on_collision(reconciler, db_session):
    reconciler.save_questionnaire_responses(
        "u1", {"acting": {"bio": "stray nested bio", "stageCombat": "yes"}}
    )
    reconciler.update_profile("u1", {"bio": "Real bio"})

    profile = reconciler.get_profile("u1")

    assert profile["bio"] == "Real bio"
    assert profile["stageCombat"] == "yes"


def test_questionnaire_responses_empty_then_saved(reconciler):
    assert reconciler.get_questionnaire_responses("u1") == {}

    reconciler.save_questionnaire_responses("u1", {"acting": {"yearsExperience": "5"}})

    assert reconciler.get_questionnaire_responses("u1") == {
        "acting": {"yearsExperience": "5"}
    }
    assert reconciler.get_profile("u1") is not None


def test_first_save_creates_profile_with_defaults(reconciler, events):
    reconciler.save_questionnaire_responses("u1", {"acting": {"stageCombat": "yes"}})

    record, created = reconciler.ensure_profile("u1")
    assert created is False
    assert record["role"] == "talent"
    assert record["talent_type"] == "actor"
    assert record["display_name"] == ""
    assert record["questionnaire_responses"]["acting"]["stageCombat"] == "yes"
    assert _event_outcomes(events, "profile.save_questionnaire") == ["created"]


def test_legacy_flat_read_after_first_save(reconciler):
    reconciler.save_questionnaire_responses("u1", {"acting": {"stageCombat": "yes"}})

    assert reconciler.get_profile("u1")["stageCombat"] == "yes"


def test_second_save_merges_into_existing_document(reconciler, events):
    reconciler.save_questionnaire_responses("u1", {"acting": {"stageCombat": "yes"}})
    reconciler.save_questionnaire_responses(
        "u1", {"acting": {"yearsExperience": "3"}, "music": {"instrument": "cello"}}
    )

    assert reconciler.get_questionnaire_responses("u1") == {
        "acting": {"stageCombat": "yes", "yearsExperience": "3"},
        "music": {"instrument": "cello"},
    }
    assert _event_outcomes(events, "profile.save_questionnaire") == ["created", "merged"]


def test_cross_namespace_updates_are_isolated(db_session, events):
    voiceover = QuestionnaireFieldSet.build(
        "voiceover", scalar=["microphoneSetup"], multi=["voiceStyles"]
    )
    reconciler = ProfileReconciler(
        ProfileRepository(db_session),
        field_sets=build_field_registry([voiceover]),
        default_namespace="acting",
        event_sink=lambda event, **fields: events.append((event, fields)),
    )
    reconciler.create_profile(
        "u1", {"yearsExperience": "4", "voiceStyles": ["narration", "animation"]}
    )
    voiceover_before = json.dumps(
        reconciler.get_questionnaire_responses("u1")["voiceover"], sort_keys=True
    )

    reconciler.update_profile("u1", {"yearsExperience": "6", "stageCombat": "basic"})

    document = reconciler.get_questionnaire_responses("u1")
    assert json.dumps(document["voiceover"], sort_keys=True) == voiceover_before
    assert document["voiceover"]["microphoneSetup"] == ""
    assert document["acting"]["yearsExperience"] == "6"


def test_unknown_fields_go_to_fallback_namespace(reconciler):
    record = reconciler.create_profile("u1", {"displayName": "Sam", "favouriteColour": "teal"})

    assert record["questionnaire_responses"]["additional"] == {"favouriteColour": "teal"}

    reconciler.update_profile("u1", {"shoeSize": "9"})
    assert reconciler.get_questionnaire_responses("u1")["additional"] == {
        "favouriteColour": "teal",
        "shoeSize": "9",
    }


def test_save_rejects_malformed_document(reconciler, db_session, events):
    with pytest.raises(MalformedPayloadError):
        reconciler.save_questionnaire_responses("u1", {"acting": "not a mapping"})

    assert _raw(db_session, "u1") == []
    assert _event_outcomes(events, "profile.save_questionnaire") == ["failed"]


def test_create_rejects_non_mapping_payload(reconciler):
    with pytest.raises(MalformedPayloadError):
        reconciler.create_profile("u1", ["role", "talent"])


def test_returned_document_is_a_copy(reconciler):
    reconciler.save_questionnaire_responses("u1", {"acting": {"roleTypes": ["lead"]}})

    document = reconciler.get_questionnaire_responses("u1")
    document["acting"]["roleTypes"].append("villain")
    document["acting"]["stageCombat"] = "yes"

    assert reconciler.get_questionnaire_responses("u1") == {
        "acting": {"roleTypes": ["lead"]}
    }
