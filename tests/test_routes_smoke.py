"""Smoke tests for API routes."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tms_companion.api.routes import router
from tms_companion.api.services import build_services, get_services
from tms_companion.config import Settings

PROFILE = {
    "id": "user-1",
    "personal_info": {"name": "Alex", "age": 40, "occupation": "Teacher", "lifestyle": "active"},
    "psychological_profile": {"personality_type": ["perfectionist"]},
    "pain_history": {
        "pain_locations": ["lower back"],
        "pain_intensity": 6,
        "pain_frequency": "intermittent",
        "onset_date": "2023-01-01T00:00:00",
        "triggers": ["stress"],
    },
}


@pytest.fixture
def services(tmp_path):
    return build_services(Settings(storage_dir=tmp_path, user_id="user-1", chat_seed=1))


@pytest.fixture
def client(services):
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_services] = lambda: services
    with TestClient(app) as c:
        yield c


class TestHealthCheck:
    def test_health_returns_ok(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestAssessment:
    def test_assessment_scored_and_saved(self, client, services):
        response = client.post("/api/assessment", json=PROFILE)
        assert response.status_code == 200
        data = response.json()
        assert 0 <= data["tms_likelihood"] <= 100
        assert services.store.get_user_profile().is_assessed
        assert services.gamification.get_stats().has_badge("assessment_complete")

    def test_incomplete_profile_rejected(self, client):
        response = client.post("/api/assessment", json={"id": "user-1"})
        assert response.status_code == 422

    def test_eligible_profile_moves_to_education(self, client, services):
        client.post("/api/assessment", json=PROFILE)
        assert services.store.get_treatment_progress().current_phase == "education"

    def test_excluded_profile_stays_in_assessment(self, client, services):
        profile = {**PROFILE, "medical_history": {"recent_trauma": True}}
        assert client.post("/api/assessment", json=profile).status_code == 200
        assert services.progress().current_phase == "assessment"

    def test_emergency_screening_blocks_education(self, client, services):
        client.post("/api/safety/screening", json={"responses": {"bowel_bladder": "yes"}})
        client.post("/api/assessment", json=PROFILE)
        assert services.progress().current_phase == "assessment"

    def test_utc_onset_date(self, client):
        pain = {**PROFILE["pain_history"], "onset_date": "2023-01-01T00:00:00.000Z"}
        profile = {**PROFILE, "pain_history": pain}
        assert client.post("/api/assessment", json=profile).status_code == 200


class TestSafety:
    def test_screening_records_flags(self, client, services):
        response = client.post("/api/safety/screening", json={"responses": {"bowel_bladder": "yes"}})
        assert response.status_code == 200
        data = response.json()
        assert data["check"]["outcome"] == "emergency"
        assert data["red_flags"] == ["bowel_bladder_dysfunction"]
        saved = services.store.get_safety_profile()
        assert [rf.flag_id for rf in saved.red_flags_triggered] == ["bowel_bladder_dysfunction"]

    def test_unknown_check(self, client):
        response = client.post("/api/safety/screening", json={"check_id": "nope"})
        assert response.status_code == 404

    def test_monitor_worsening(self, client):
        levels = [1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 10, 10, 10, 10]
        response = client.post("/api/safety/monitor", json={"pain_levels": levels})
        assert response.status_code == 200
        assert [a["title"] for a in response.json()] == ["Symptoms Worsening"]

    def test_acknowledging_flag_clears_referral(self, client):
        referral = "Consider consultation with a healthcare provider familiar with TMS"
        client.post("/api/safety/screening", json={"responses": {"bowel_bladder": "yes"}})
        client.post("/api/assessment", json=PROFILE)
        assert referral in client.get("/api/safety/recommendations").json()

        response = client.post(
            "/api/safety/red-flags/bowel_bladder_dysfunction/acknowledge",
            json={"medical_consultation_sought": True},
        )
        assert response.status_code == 200
        entry = response.json()["red_flags_triggered"][0]
        assert entry["acknowledged"] is True
        assert entry["medical_consultation_sought"] is True
        assert referral not in client.get("/api/safety/recommendations").json()

    def test_acknowledge_untriggered_flag(self, client):
        response = client.post("/api/safety/red-flags/fever_with_pain/acknowledge")
        assert response.status_code == 404

    def test_disclaimers(self, client, services):
        pending = [d["id"] for d in client.get("/api/safety/disclaimers").json()]
        assert "general_medical_disclaimer" in pending

        response = client.post("/api/safety/disclaimers/general_medical_disclaimer/acknowledge")
        assert response.status_code == 200
        pending = [d["id"] for d in client.get("/api/safety/disclaimers").json()]
        assert "general_medical_disclaimer" not in pending
        saved = services.store.get_safety_profile()
        assert saved.acknowledged_disclaimers == ["general_medical_disclaimer"]

    def test_unknown_disclaimer(self, client):
        assert client.post("/api/safety/disclaimers/nope/acknowledge").status_code == 404

    def test_medical_clearance(self, client, services):
        response = client.post(
            "/api/safety/clearance",
            json={"provided_by": "Dr. Lee", "valid_until": "2999-01-01T00:00:00Z"},
        )
        assert response.json() == {"valid": True}
        assert services.store.get_safety_profile().medical_clearance.provided_by == "Dr. Lee"

    def test_recommendations_need_profile(self, client):
        assert client.get("/api/safety/recommendations").status_code == 404
        client.post("/api/assessment", json=PROFILE)
        response = client.get("/api/safety/recommendations")
        assert response.status_code == 200
        assert isinstance(response.json(), list)


class TestGamification:
    def test_event_and_stats(self, client, services):
        response = client.post("/api/gamification/events", json={"type": "PAIN_LEVEL_LOGGED", "level": 5})
        assert response.status_code == 200
        assert response.json()["experience_gained"] == 5

        stats = client.get("/api/gamification/stats").json()
        assert stats["stats"]["total_experience"] == 5
        assert stats["level_progress"]["required"] == 100
        assert services.store.get_user_stats().total_experience == 5

    def test_unknown_event_type(self, client):
        response = client.post("/api/gamification/events", json={"type": "NOPE"})
        assert response.status_code == 422


class TestJournalAndSessions:
    def test_journal_entry(self, client):
        response = client.post("/api/journal", json={"prompt": "Anger", "response": "I was angry"})
        assert response.status_code == 200
        assert response.json()["experience_gained"] == 10
        entries = client.get("/api/journal").json()
        assert [e["response"] for e in entries] == ["I was angry"]

    def test_lower_pain_counts_as_improvement(self, client, services):
        first = client.post("/api/sessions", json={"pain_level": 7}).json()
        second = client.post("/api/sessions", json={"pain_level": 4}).json()
        assert first["experience_gained"] == 5
        assert second["experience_gained"] == 15
        assert services.store.get_treatment_progress().pain_levels == [7, 4]

    def test_utc_session_date(self, client, services):
        client.post("/api/sessions", json={"pain_level": 7, "date": "2024-01-02T00:00:00Z"})
        response = client.post("/api/sessions", json={"pain_level": 4})
        assert response.status_code == 200
        assert services.store.get_treatment_progress().pain_levels == [7, 4]
        assert client.post("/api/safety/monitor", json={}).status_code == 200

    def test_corrupt_journal_log(self, client, services):
        (services.settings.data_dir / "journal" / "user-1.json").write_text("{not json")
        response = client.get("/api/journal")
        assert response.status_code == 200
        assert response.json() == []


class TestChat:
    def test_crisis_message_persists_flag(self, client, services):
        response = client.post("/api/chat", json={"message": "I want to end it all", "session_id": "s1"})
        assert response.status_code == 200
        assert "crisis_language" in response.json()["red_flags"]
        saved = services.store.get_safety_profile()
        assert [rf.flag_id for rf in saved.red_flags_triggered] == ["suicidal_ideation"]

    def test_second_turn_has_no_greeting(self, client):
        first = client.post("/api/chat", json={"message": "Is exercise safe?", "session_id": "s2", "user_name": "Sam"})
        second = client.post("/api/chat", json={"message": "Is exercise safe?", "session_id": "s2", "user_name": "Sam"})
        assert "Hello Sam." in first.json()["message"]
        assert "Hello Sam." not in second.json()["message"]

    def test_empty_message_rejected(self, client):
        assert client.post("/api/chat", json={"message": ""}).status_code == 422


class TestEducation:
    def test_module_list(self, client):
        modules = client.get("/api/education/modules").json()
        assert len(modules) == 5
        assert modules[0]["unlocked"] is True
        assert modules[1]["unlocked"] is False

    def test_unknown_module(self, client):
        assert client.get("/api/education/modules/nope").status_code == 404
        assert client.post("/api/education/modules/nope/complete", json={}).status_code == 404

    def test_module_detail(self, client):
        response = client.get("/api/education/modules/tms-intro")
        assert response.status_code == 200
        assert response.json()["quiz"]["passing_score"] == 70

    def test_locked_module(self, client):
        response = client.post("/api/education/modules/mind-body-connection/complete", json={})
        assert response.status_code == 409

    def test_failed_quiz_records_nothing(self, client, services):
        response = client.post(
            "/api/education/modules/tms-intro/complete", json={"answers": {"q1": 0}}
        )
        assert response.json() == {"score": 0, "passed": False, "reward": None}
        assert services.store.get_treatment_progress() is None

    def test_passing_quiz_unlocks_next(self, client):
        response = client.post(
            "/api/education/modules/tms-intro/complete",
            json={"answers": {"q1": 1, "q2": "false", "q3": 1}, "time_spent": 12},
        )
        data = response.json()
        assert data["passed"] is True
        assert data["score"] == 100
        assert data["reward"]["experience_gained"] == 80

        modules = {m["id"]: m for m in client.get("/api/education/modules").json()}
        assert modules["tms-intro"]["completed"] is True
        assert modules["mind-body-connection"]["unlocked"] is True
        recommended = client.get("/api/education/recommended").json()
        assert [m["id"] for m in recommended] == ["mind-body-connection"]

    def test_repeat_completion_earns_nothing(self, client, services):
        answers = {"answers": {"q1": 1, "q2": "false", "q3": 1}}
        client.post("/api/education/modules/tms-intro/complete", json=answers)
        total = services.gamification.get_stats().total_experience

        response = client.post("/api/education/modules/tms-intro/complete", json={"answers": {}})
        assert response.json() == {"score": 100, "passed": True, "reward": None}
        stats = services.gamification.get_stats()
        assert stats.total_experience == total
        assert len(stats.activities("education")) == 1


class TestBackup:
    def test_export_then_import(self, client, services):
        client.post("/api/assessment", json=PROFILE)
        exported = client.get("/api/export")
        assert exported.status_code == 200
        bundle = exported.json()
        assert bundle["profile"]["id"] == "user-1"

        services.store.clear_all_data()
        response = client.post("/api/import", json=bundle)
        assert response.status_code == 200
        assert services.store.get_user_profile().id == "user-1"

    def test_import_rejects_invalid_bundle(self, client):
        response = client.post("/api/import", json={"profile": {"age": 3}})
        assert response.status_code == 400
