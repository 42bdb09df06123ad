"""Tests for the SubmissionCoordinator pipeline.

Covers validation gating, clip upload paths and ordering, progress reporting,
the shape of the persisted record, failure recovery and resubmission guards.
All gateway traffic goes through the ``mock_gateway`` fixture.
"""

import asyncio
from datetime import UTC, datetime

import pytest

from voiceform.core.exceptions import (
    AlreadySubmittedError,
    ConsentRequiredError,
    IncompleteAnswersError,
    PersistFailedError,
    PersonalInfoIncompleteError,
    SubmissionInProgressError,
    UploadFailedError,
)
from voiceform.core.models import PersonalInfo, SubmissionPhase
from voiceform.core.questions import build_questions
from voiceform.services.submission import (
    FormStatus,
    SubmissionCoordinator,
    build_submission,
    clip_path,
)

SUBMITTED_AT = datetime(2024, 5, 1, 12, 30, 0, 250000, tzinfo=UTC)
TIMESTAMP = "2024-05-01T12:30:00.250Z"


@pytest.fixture
def events():
    return []


@pytest.fixture
def make_coordinator(questions, mock_gateway, events):
    def _make(qs=None, **kwargs):
        return SubmissionCoordinator(
            qs or questions,
            mock_gateway,
            on_progress=events.append,
            clock=lambda: SUBMITTED_AT,
            **kwargs,
        )

    return _make


def _answer_all(coordinator, text="Antwort"):
    for question in coordinator.questions:
        coordinator.report_answer(question.id, text, [])


def _percents(events):
    return [e.percent for e in events]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestClipPath:
    def test_one_based_index(self):
        assert clip_path("interviews", TIMESTAMP, "q3", 0, "wav") == (
            f"interviews/{TIMESTAMP}/q3_audio1.wav"
        )
        assert clip_path("interviews", TIMESTAMP, "q3", 1, "wav").endswith("q3_audio2.wav")


class TestBuildSubmission:
    def test_text_trimmed_and_ordered(self, questions):
        from voiceform.core.models import Answer

        answers = {"q2": Answer(text=" c "), "q0": Answer(text="a\n"), "q1": Answer(text="b")}
        record = build_submission(questions, answers, {}, TIMESTAMP, SUBMITTED_AT)
        assert [a.question_id for a in record.answers] == ["q0", "q1", "q2"]
        assert [a.text_answer for a in record.answers] == ["a", "b", "c"]
        assert record.metadata.questions_with_audio == 0

    def test_record_is_immutable(self, questions):
        from pydantic import ValidationError

        record = build_submission(questions, {}, {}, TIMESTAMP, SUBMITTED_AT)
        with pytest.raises(ValidationError):
            record.timestamp = "other"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    """Nothing reaches the gateway unless every precondition holds."""

    async def test_unanswered_question_blocks(self, make_coordinator, mock_gateway, events):
        coordinator = make_coordinator()
        coordinator.report_answer("q0", "a", [])
        coordinator.report_answer("q1", "   ", [])

        result = await coordinator.submit(consent=True)

        assert result.ok is False
        assert isinstance(result.error, IncompleteAnswersError)
        assert result.error.missing == ["q1", "q2"]
        mock_gateway.upload_blob.assert_not_awaited()
        mock_gateway.create_document.assert_not_awaited()
        assert coordinator.status == FormStatus.form
        assert events[-1].phase == SubmissionPhase.failed

    async def test_consent_required(self, make_coordinator, mock_gateway):
        coordinator = make_coordinator()
        _answer_all(coordinator)

        result = await coordinator.submit(consent=False)

        assert isinstance(result.error, ConsentRequiredError)
        mock_gateway.create_document.assert_not_awaited()

    async def test_personal_info_required_when_enabled(self, make_coordinator, mock_gateway):
        coordinator = make_coordinator(collect_personal_info=True)
        _answer_all(coordinator)

        result = await coordinator.submit(True, PersonalInfo(name="Ada", company=""))

        assert isinstance(result.error, PersonalInfoIncompleteError)
        assert result.error.missing == ["company", "position"]
        mock_gateway.create_document.assert_not_awaited()

    def test_can_submit(self, make_coordinator):
        coordinator = make_coordinator()
        assert coordinator.can_submit(consent=True) is False
        _answer_all(coordinator)
        assert coordinator.can_submit(consent=False) is False
        assert coordinator.can_submit(consent=True) is True

    def test_unknown_question_rejected(self, make_coordinator):
        with pytest.raises(ValueError, match="Unknown question"):
            make_coordinator().report_answer("q99", "x", [])


# ---------------------------------------------------------------------------
# Successful submission
# ---------------------------------------------------------------------------


class TestSubmitTextOnly:
    """No clips: no uploads, progress 0 -> 50 -> 100, one document write."""

    async def test_single_write(self, make_coordinator, mock_gateway, events):
        coordinator = make_coordinator()
        _answer_all(coordinator)

        result = await coordinator.submit(consent=True)

        assert result.ok is True
        assert result.document_id == "doc-1"
        mock_gateway.upload_blob.assert_not_awaited()
        mock_gateway.create_document.assert_awaited_once()
        assert _percents(events) == [0.0, 50.0, 100.0]
        assert coordinator.status == FormStatus.submitted
        assert coordinator.document_id == "doc-1"

    async def test_record_shape(self, make_coordinator, mock_gateway):
        coordinator = make_coordinator()
        _answer_all(coordinator, text="  Antwort  ")

        await coordinator.submit(consent=True)

        collection, record = mock_gateway.create_document.await_args.args
        assert collection == "interviews"
        assert record["timestamp"] == TIMESTAMP
        assert record["submittedAt"] == SUBMITTED_AT
        assert "personalInfo" not in record
        assert record["metadata"] == {
            "totalQuestions": 3,
            "answeredQuestions": 3,
            "questionsWithAudio": 0,
        }
        first = record["answers"][0]
        assert first["questionId"] == "q0"
        assert first["questionText"] == "Erste Frage?"
        assert first["textAnswer"] == "Antwort"
        assert list(first["audioUrls"]) == []
        assert first["hasAudio"] is False

    async def test_personal_info_included_when_enabled(self, make_coordinator, mock_gateway):
        coordinator = make_coordinator(collect_personal_info=True)
        _answer_all(coordinator)
        info = PersonalInfo(name="Ada Lovelace", company="Analytical", position="CTO")

        result = await coordinator.submit(True, info)

        assert result.ok is True
        record = mock_gateway.create_document.await_args.args[1]
        assert record["personalInfo"] == {
            "name": "Ada Lovelace",
            "company": "Analytical",
            "position": "CTO",
        }


class TestSubmitWithAudio:
    """Clips are uploaded under deterministic paths before the write."""

    async def test_upload_paths_and_urls(self, make_coordinator, mock_gateway, make_clip):
        coordinator = make_coordinator()
        _answer_all(coordinator)
        coordinator.report_answer("q1", "", [make_clip(b"a"), make_clip(b"b")])

        result = await coordinator.submit(consent=True)

        assert result.ok is True
        paths = sorted(call.args[1] for call in mock_gateway.upload_blob.await_args_list)
        assert paths == [
            f"interviews/{TIMESTAMP}/q1_audio1.wav",
            f"interviews/{TIMESTAMP}/q1_audio2.wav",
        ]
        record = mock_gateway.create_document.await_args.args[1]
        entry = record["answers"][1]
        assert list(entry["audioUrls"]) == [
            f"https://files.test/interviews/{TIMESTAMP}/q1_audio1.wav",
            f"https://files.test/interviews/{TIMESTAMP}/q1_audio2.wav",
        ]
        assert entry["hasAudio"] is True
        assert entry["textAnswer"] == ""
        assert record["metadata"]["questionsWithAudio"] == 1

    async def test_upload_carries_content_type_and_time(
        self, make_coordinator, mock_gateway, make_clip
    ):
        coordinator = make_coordinator()
        _answer_all(coordinator)
        clip = make_clip(b"data", content_type="audio/webm")
        coordinator.report_answer("q0", "", [clip])

        await coordinator.submit(consent=True)

        data, _path, content_type, metadata = mock_gateway.upload_blob.await_args.args
        assert data == b"data"
        assert content_type == "audio/webm"
        assert metadata["timeCreated"].endswith("Z")

    async def test_write_happens_after_every_upload(
        self, make_coordinator, mock_gateway, make_clip
    ):
        order = []

        async def _upload(data, path, content_type, metadata=None):
            await asyncio.sleep(0)
            order.append(("upload", path))
            return f"https://files.test/{path}"

        async def _create(collection, record):
            order.append(("write", collection))
            return "doc-1"

        mock_gateway.upload_blob.side_effect = _upload
        mock_gateway.create_document.side_effect = _create
        coordinator = make_coordinator()
        for question in coordinator.questions:
            coordinator.report_answer(question.id, "", [make_clip()])

        await coordinator.submit(consent=True)

        assert [kind for kind, _ in order] == ["upload", "upload", "upload", "write"]

    async def test_progress_monotonic(self, make_coordinator, make_clip, events):
        coordinator = make_coordinator()
        for question in coordinator.questions:
            coordinator.report_answer(question.id, "", [make_clip()])

        await coordinator.submit(consent=True)

        percents = _percents(events)
        assert percents == sorted(percents)
        assert percents[0] == 0.0
        assert percents[-1] == 100.0
        # 3 uploads + the write: 100 is reserved for the write
        assert 100.0 not in percents[:-1]
        uploads = [e for e in events if e.phase == SubmissionPhase.uploading]
        assert [e.completed_clips for e in uploads] == [1, 2, 3]
        assert uploads[-1].upload_percent == 100.0

    async def test_sequential_uploads_one_at_a_time(
        self, make_coordinator, mock_gateway, make_clip
    ):
        in_flight = 0
        peak = 0

        async def _upload(data, path, content_type, metadata=None):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            in_flight -= 1
            return f"https://files.test/{path}"

        mock_gateway.upload_blob.side_effect = _upload
        coordinator = make_coordinator(concurrent_uploads=False)
        for question in coordinator.questions:
            coordinator.report_answer(question.id, "", [make_clip(), make_clip()])

        result = await coordinator.submit(consent=True)

        assert result.ok is True
        assert peak == 1
        assert mock_gateway.upload_blob.await_count == 6

    async def test_concurrent_uploads_overlap(self, make_coordinator, mock_gateway, make_clip):
        in_flight = 0
        peak = 0

        async def _upload(data, path, content_type, metadata=None):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            in_flight -= 1
            return f"https://files.test/{path}"

        mock_gateway.upload_blob.side_effect = _upload
        coordinator = make_coordinator()
        for question in coordinator.questions:
            coordinator.report_answer(question.id, "", [make_clip()])

        await coordinator.submit(consent=True)

        assert peak == 3

    async def test_edits_during_upload_not_included(
        self, make_coordinator, mock_gateway, make_clip
    ):
        """The record reflects the answers at the moment submit started."""
        coordinator = make_coordinator()
        _answer_all(coordinator, text="original")
        coordinator.report_answer("q0", "original", [make_clip()])

        async def _upload(data, path, content_type, metadata=None):
            coordinator.report_answer("q1", "changed", [])
            return f"https://files.test/{path}"

        mock_gateway.upload_blob.side_effect = _upload

        await coordinator.submit(consent=True)

        record = mock_gateway.create_document.await_args.args[1]
        assert record["answers"][1]["textAnswer"] == "original"


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestUploadFailure:
    """Any failed upload aborts the submission before the write."""

    @pytest.fixture
    def five_questions(self):
        return build_questions([f"Frage {i}?" for i in range(1, 6)])

    async def test_failed_question_reported(
        self, make_coordinator, five_questions, mock_gateway, make_clip, events
    ):
        async def _upload(data, path, content_type, metadata=None):
            if "/q3_" in path:
                raise ConnectionError("network down")
            return f"https://files.test/{path}"

        mock_gateway.upload_blob.side_effect = _upload
        coordinator = make_coordinator(five_questions)
        for question in five_questions:
            coordinator.report_answer(question.id, "", [make_clip()])

        result = await coordinator.submit(consent=True)

        assert result.ok is False
        assert isinstance(result.error, UploadFailedError)
        assert result.error.question_id == "q3"
        mock_gateway.create_document.assert_not_awaited()
        assert coordinator.status == FormStatus.form
        assert coordinator.submit_progress == 0.0
        assert coordinator.last_error is result.error
        assert events[-1].phase == SubmissionPhase.failed
        assert events[-1].percent == 0.0
        # answers kept for a retry
        assert all(len(a.clips) == 1 for a in coordinator.answers.values())

    async def test_first_failure_in_question_order(
        self, make_coordinator, five_questions, mock_gateway, make_clip
    ):
        async def _upload(data, path, content_type, metadata=None):
            if "/q4_" in path:
                raise ConnectionError("first to fail in time")
            await asyncio.sleep(0)
            if "/q2_" in path:
                raise ConnectionError("later in time, earlier in order")
            return f"https://files.test/{path}"

        mock_gateway.upload_blob.side_effect = _upload
        coordinator = make_coordinator(five_questions)
        for question in five_questions:
            coordinator.report_answer(question.id, "", [make_clip()])

        result = await coordinator.submit(consent=True)

        assert result.error.question_id == "q2"

    async def test_no_progress_after_failure(
        self, make_coordinator, mock_gateway, make_clip, events
    ):
        """Uploads still running when one fails cannot move the bar afterwards."""

        async def _upload(data, path, content_type, metadata=None):
            if "/q0_" in path:
                raise ConnectionError("boom")
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            return f"https://files.test/{path}"

        mock_gateway.upload_blob.side_effect = _upload
        coordinator = make_coordinator()
        for question in coordinator.questions:
            coordinator.report_answer(question.id, "", [make_clip()])

        await coordinator.submit(consent=True)

        assert events[-1].phase == SubmissionPhase.failed
        failed_at = next(i for i, e in enumerate(events) if e.phase == SubmissionPhase.failed)
        assert failed_at == len(events) - 1


class TestPersistFailure:
    async def test_write_failure_reported(self, make_coordinator, mock_gateway, events):
        mock_gateway.create_document.side_effect = RuntimeError("quota exceeded")
        coordinator = make_coordinator()
        _answer_all(coordinator)

        result = await coordinator.submit(consent=True)

        assert result.ok is False
        assert isinstance(result.error, PersistFailedError)
        assert coordinator.status == FormStatus.form
        assert coordinator.submit_progress == 0.0
        assert _percents(events) == [0.0, 50.0, 0.0]

    async def test_retry_after_failure_succeeds(
        self, make_coordinator, mock_gateway, make_clip
    ):
        """A retry re-uploads every clip and writes one document."""
        mock_gateway.create_document.side_effect = [RuntimeError("offline"), "doc-2"]
        coordinator = make_coordinator()
        _answer_all(coordinator)
        coordinator.report_answer("q0", "", [make_clip()])

        first = await coordinator.submit(consent=True)
        second = await coordinator.submit(consent=True)

        assert first.ok is False
        assert second.ok is True
        assert second.document_id == "doc-2"
        assert mock_gateway.upload_blob.await_count == 2
        assert coordinator.last_error is None


class TestUnexpectedFailure:
    """Errors outside the gateway calls still return the form to editable."""

    async def test_raising_progress_callback(self, questions, mock_gateway, make_clip):
        def on_progress(update):
            if update.phase == SubmissionPhase.uploading:
                raise RuntimeError("widget gone")

        coordinator = SubmissionCoordinator(
            questions, mock_gateway, on_progress=on_progress, clock=lambda: SUBMITTED_AT
        )
        _answer_all(coordinator)
        coordinator.report_answer("q0", "", [make_clip()])

        result = await coordinator.submit(consent=True)

        assert result.ok is False
        assert isinstance(result.error, PersistFailedError)
        assert coordinator.status == FormStatus.form
        assert coordinator.submit_progress == 0.0
        mock_gateway.create_document.assert_not_awaited()

        coordinator.set_progress_callback(None)
        retry = await coordinator.submit(consent=True)

        assert retry.ok is True
        assert coordinator.status == FormStatus.submitted

    async def test_malformed_upload_url(self, make_coordinator, mock_gateway, make_clip, events):
        mock_gateway.upload_blob.side_effect = None
        mock_gateway.upload_blob.return_value = {"url": "not a string"}
        coordinator = make_coordinator()
        _answer_all(coordinator)
        coordinator.report_answer("q0", "", [make_clip()])

        result = await coordinator.submit(consent=True)

        assert result.ok is False
        assert coordinator.status == FormStatus.form
        assert coordinator.is_pending is False
        assert events[-1].phase == SubmissionPhase.failed
        mock_gateway.create_document.assert_not_awaited()


# ---------------------------------------------------------------------------
# Resubmission guards
# ---------------------------------------------------------------------------


class TestResubmission:
    async def test_already_submitted(self, make_coordinator, mock_gateway):
        coordinator = make_coordinator()
        _answer_all(coordinator)
        await coordinator.submit(consent=True)

        again = await coordinator.submit(consent=True)

        assert isinstance(again.error, AlreadySubmittedError)
        mock_gateway.create_document.assert_awaited_once()
        assert coordinator.status == FormStatus.submitted

    async def test_submit_while_pending(self, make_coordinator, mock_gateway, make_clip):
        release = asyncio.Event()

        async def _upload(data, path, content_type, metadata=None):
            await release.wait()
            return f"https://files.test/{path}"

        mock_gateway.upload_blob.side_effect = _upload
        coordinator = make_coordinator()
        _answer_all(coordinator)
        coordinator.report_answer("q0", "", [make_clip()])

        task = asyncio.create_task(coordinator.submit(consent=True))
        await asyncio.sleep(0)
        assert coordinator.is_pending is True
        assert coordinator.can_submit(consent=True) is False

        duplicate = await coordinator.submit(consent=True)
        release.set()
        first = await task

        assert isinstance(duplicate.error, SubmissionInProgressError)
        assert first.ok is True
        mock_gateway.create_document.assert_awaited_once()


# ---------------------------------------------------------------------------
# End-to-end properties
# ---------------------------------------------------------------------------


class TestRoundTrip:
    async def test_text_and_audio_record(self, mock_gateway, events, make_clip):
        """{q0: text, q1: one clip} -> two answered, one with audio."""
        questions = build_questions(["Frage 1?", "Frage 2?"])
        coordinator = SubmissionCoordinator(
            questions, mock_gateway, on_progress=events.append, clock=lambda: SUBMITTED_AT
        )
        clip_a = make_clip(b"clip-a")
        coordinator.report_answer("q0", "hello", [])
        coordinator.report_answer("q1", "", [clip_a])

        result = await coordinator.submit(consent=True)

        record = mock_gateway.create_document.await_args.args[1]
        assert record["metadata"]["answeredQuestions"] == 2
        assert record["metadata"]["questionsWithAudio"] == 1
        assert record["answers"][0]["textAnswer"] == "hello"
        assert record["answers"][1]["hasAudio"] is True
        assert list(record["answers"][1]["audioUrls"]) == [
            f"https://files.test/interviews/{TIMESTAMP}/q1_audio1.wav"
        ]
        assert result.record.answers[1].audio_urls == (
            f"https://files.test/interviews/{TIMESTAMP}/q1_audio1.wav",
        )
        assert _percents(events) == [0.0, 50.0, 100.0]

    async def test_ten_text_answers(self, mock_gateway, events):
        from voiceform.core.questions import resolve_questions

        coordinator = SubmissionCoordinator(
            resolve_questions(), mock_gateway, on_progress=events.append
        )
        for question in coordinator.questions:
            coordinator.report_answer(question.id, f"Antwort {question.index}", [])

        result = await coordinator.submit(consent=True)

        assert result.ok is True
        assert _percents(events) == [0.0, 50.0, 100.0]
        record = mock_gateway.create_document.await_args.args[1]
        assert record["metadata"]["totalQuestions"] == 10
        assert record["metadata"]["answeredQuestions"] == 10
