"""FlowController tests — next question, visibility gating, progress, store policy.

Uses the packaged catalog and an ``InMemorySessionStore``; no network.
"""

import pytest

from legal_intake.catalog import QuestionCatalog
from legal_intake.errors import SessionNotFound, ValidationError
from legal_intake.flow import FlowController
from legal_intake.models.session import IntakeSession

from conftest import FULL_ANSWERS


@pytest.fixture
def flow(catalog, session_store):
    return FlowController(catalog, session_store)


# =====================================================================
# Pure flow
# =====================================================================


class TestNextQuestion:
    def test_first_question_is_situation(self, flow):
        session = IntakeSession(session_id="s")
        assert flow.next_question(session).id == "situation"

    def test_catalog_order(self, flow):
        session = IntakeSession(session_id="s")
        flow.record_answer(session, "situation", FULL_ANSWERS["situation"])
        assert flow.next_question(session).id == "category"

    def test_contract_hidden_until_opponent_answered(self, flow):
        session = IntakeSession(session_id="s")
        for qid in ("situation", "category", "city", "dates", "parties", "evidence",
                    "amount", "urgency", "procedure", "goal"):
            flow.record_answer(session, qid, FULL_ANSWERS[qid])
        assert flow.next_question(session).id == "opponentType"
        assert "contractExist" not in [q.id for q in flow.visible_questions(session)]

    def test_contract_skipped_for_administration(self, flow):
        session = IntakeSession(session_id="s")
        session.answers["opponentType"] = "Administration"
        visible = [q.id for q in flow.visible_questions(session)]
        assert "contractExist" not in visible, (
            "contractExist must stay hidden when the opponent is an administration"
        )

    def test_contract_shown_for_employer(self, flow):
        session = IntakeSession(session_id="s")
        session.answers["opponentType"] = "Employeur"
        assert "contractExist" in [q.id for q in flow.visible_questions(session)]

    def test_transitively_hidden_question(self):
        catalog = QuestionCatalog.from_questions([
            {"id": "a", "type": "choice", "text": "A", "options": ["oui", "non"]},
            {"id": "b", "type": "choice", "text": "B", "options": ["oui", "non"],
             "visibility": {"depends_on": "a", "value": "oui"}},
            {"id": "c", "type": "free_text", "text": "C",
             "visibility": {"depends_on": "b", "value": "oui"}},
        ])
        flow = FlowController(catalog, None)
        # Stale answer for b after a switched to "non"
        session = IntakeSession(session_id="s", answers={"a": "non", "b": "oui"})
        assert not flow.is_visible(catalog.get("c"), session.answers), (
            "c depends on a hidden question and must be hidden too"
        )
        assert flow.is_complete(session)


class TestTermination:
    def test_full_answers_complete(self, flow):
        session = IntakeSession(session_id="s")
        for qid, value in FULL_ANSWERS.items():
            flow.record_answer(session, qid, value)
        assert flow.is_complete(session)
        assert flow.next_question(session) is None
        progress = flow.progress(session)
        assert progress.answered == progress.total == 18

    def test_walk_terminates_within_catalog_size(self, flow, catalog):
        """Answering whatever is asked reaches completion in <= len(catalog) steps."""
        session = IntakeSession(session_id="s")
        steps = 0
        while (q := flow.next_question(session)) is not None:
            flow.record_answer(session, q.id, FULL_ANSWERS[q.id])
            steps += 1
            assert steps <= len(catalog), "Flow did not terminate"
        assert steps == 18

    def test_administration_path_has_17_questions(self, flow):
        session = IntakeSession(session_id="s")
        answers = dict(FULL_ANSWERS, opponentType="Administration")
        steps = 0
        while (q := flow.next_question(session)) is not None:
            flow.record_answer(session, q.id, answers[q.id])
            steps += 1
        assert steps == 17, "contractExist should be skipped on this path"
        assert "contractExist" not in session.answers

    def test_optional_skip_counts_as_answered(self, flow):
        session = IntakeSession(session_id="s")
        flow.record_answer(session, "freeAdd", "")
        assert session.answers["freeAdd"] is None
        assert session.has_answer("freeAdd")


class TestRecordAnswer:
    def test_unknown_question(self, flow):
        with pytest.raises(ValidationError, match="Unknown question"):
            flow.record_answer(IntakeSession(session_id="s"), "nope", "x")

    def test_invalid_value_not_stored(self, flow):
        session = IntakeSession(session_id="s")
        with pytest.raises(ValidationError) as info:
            flow.record_answer(session, "urgency", 42)
        assert info.value.question_id == "urgency"
        assert "urgency" not in session.answers, "A rejected answer must not be stored"

    def test_overwrite(self, flow):
        session = IntakeSession(session_id="s")
        flow.record_answer(session, "city", "Lyon")
        flow.record_answer(session, "city", "Paris")
        assert session.answers["city"] == "Paris"


class TestPayload:
    def test_number_constraints(self, catalog):
        payload = FlowController.question_to_payload(catalog.get("urgency"))
        assert payload.constraints == {"min": 1, "max": 10, "step": 1}

    def test_choice_options(self, catalog):
        payload = FlowController.question_to_payload(catalog.get("category"))
        assert "Droit du travail" in payload.options


# =====================================================================
# Store-backed operations
# =====================================================================


class TestStoreOperations:
    @pytest.mark.asyncio
    async def test_start_generates_id(self, flow):
        step = await flow.start()
        assert step.session_id, "A server-generated id should be returned"
        assert step.next_question.id == "situation"
        assert step.progress.answered == 0

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, flow):
        await flow.start("abc")
        await flow.answer("abc", "situation", FULL_ANSWERS["situation"])
        step = await flow.start("abc")
        assert "situation" in step.answers, "Restarting an existing id must keep its answers"

    @pytest.mark.asyncio
    async def test_answer_persists(self, flow, session_store):
        await flow.start("s1")
        step = await flow.answer("s1", "situation", FULL_ANSWERS["situation"])
        assert step.next_question.id == "category"
        stored = await session_store.get("s1")
        assert stored.answers["situation"] == FULL_ANSWERS["situation"]

    @pytest.mark.asyncio
    async def test_answer_auto_creates_missing_session(self, flow, session_store):
        step = await flow.answer("ghost", "city", "Lyon")
        assert step.session_id == "ghost"
        assert await session_store.get("ghost") is not None

    @pytest.mark.asyncio
    async def test_get_step_unknown_raises(self, flow):
        with pytest.raises(SessionNotFound):
            await flow.get_step("missing")

    @pytest.mark.asyncio
    async def test_delete(self, flow, session_store):
        await flow.start("s1")
        await flow.delete("s1")
        assert await session_store.get("s1") is None
        with pytest.raises(SessionNotFound):
            await flow.delete("s1")


class TestInMemoryStore:
    @pytest.mark.asyncio
    async def test_returned_session_is_a_copy(self, session_store):
        await session_store.put(IntakeSession(session_id="s1", answers={"city": "Lyon"}))
        loaded = await session_store.get("s1")
        loaded.answers["city"] = "Paris"
        again = await session_store.get("s1")
        assert again.answers["city"] == "Lyon", "Mutating a loaded session must not alter the store"

    @pytest.mark.asyncio
    async def test_delete_missing(self, session_store):
        assert await session_store.delete("nope") is False
