# tests/services/test_content.py
"""Tests for questions, answers, comments, reports and profile bootstrap."""

from __future__ import annotations

import pytest

from clarion.models import Answer, Comment, Question, Report, User
from clarion.services.content import (
    get_question_thread,
    list_questions,
    list_user_questions,
    report_content,
    submit_answer,
    submit_comment,
    submit_question,
)
from clarion.services.errors import TargetNotFound, ValidationError
from clarion.services.profiles import get_or_create_profile, get_profile


def test_submit_question_starts_with_zero_counters(coordinator, make_user, load) -> None:
    make_user("alice1234")

    record = submit_question(coordinator, "alice1234", "  How do tides work?  ", ["#Physics", "physics", "sea"])

    stored = load(Question, record.id)
    assert stored.title == "How do tides work?"
    assert stored.tags == ["physics", "sea"]
    assert stored.author_handle == "@anon_alice1"
    assert stored.author_initial == "A"
    assert (stored.upvotes, stored.downvotes, stored.vote_count) == (0, 0, 0)
    assert (stored.answer_count, stored.comment_count) == (0, 0)
    assert record.author_handle == stored.author_handle


@pytest.mark.parametrize("title", ["", "   ", "x" * 301])
def test_submit_question_rejects_bad_titles(coordinator, make_user, count_rows, title) -> None:
    make_user("alice")
    with pytest.raises(ValidationError):
        submit_question(coordinator, "alice", title)
    assert count_rows(Question) == 0


def test_submit_question_requires_profile(coordinator, count_rows) -> None:
    with pytest.raises(TargetNotFound):
        submit_question(coordinator, "ghost", "Anyone there?")
    assert count_rows(Question) == 0


def test_answer_increments_answer_count(coordinator, make_question, make_user, load) -> None:
    question_id = make_question()
    make_user("bob")

    answer = submit_answer(coordinator, "bob", question_id, "Gravity from the moon.")
    submit_answer(coordinator, "bob", question_id, "And the sun, a little.")

    assert load(Answer, answer.id).question_id == question_id
    assert load(Question, question_id).answer_count == 2


def test_answer_on_missing_question(coordinator, make_user, count_rows) -> None:
    make_user("bob")
    with pytest.raises(TargetNotFound, match="Question not found"):
        submit_answer(coordinator, "bob", "missing", "Hello")
    assert count_rows(Answer) == 0


def test_comments_increment_their_parent(coordinator, make_question, make_user, load) -> None:
    question_id = make_question()
    make_user("bob")
    answer = submit_answer(coordinator, "bob", question_id, "An answer")

    submit_comment(coordinator, "bob", question_id, "On the question")
    submit_comment(
        coordinator, "bob", question_id, "On the answer",
        parent_type="answer", parent_id=answer.id,
    )
    submit_comment(
        coordinator, "bob", question_id, "Also on the answer",
        parent_type="answer", parent_id=answer.id,
    )

    assert load(Question, question_id).comment_count == 1
    assert load(Answer, answer.id).comment_count == 2


def test_comment_on_answer_from_another_thread(coordinator, make_question, make_user, count_rows) -> None:
    first = make_question()
    second = make_question()
    make_user("bob")
    answer = submit_answer(coordinator, "bob", first, "Answer to the first")

    with pytest.raises(ValidationError):
        submit_comment(
            coordinator, "bob", second, "Wrong thread",
            parent_type="answer", parent_id=answer.id,
        )
    assert count_rows(Comment) == 0


def test_comment_on_missing_answer(coordinator, make_question, make_user) -> None:
    question_id = make_question()
    make_user("bob")
    with pytest.raises(TargetNotFound, match="Answer not found"):
        submit_comment(
            coordinator, "bob", question_id, "Hi",
            parent_type="answer", parent_id="nope",
        )


def test_question_thread_groups_comments(coordinator, make_question, make_user, db_session) -> None:
    question_id = make_question()
    make_user("bob")
    older = submit_answer(coordinator, "bob", question_id, "Older answer")
    newer = submit_answer(coordinator, "bob", question_id, "Newer answer")
    submit_comment(coordinator, "bob", question_id, "first")
    submit_comment(coordinator, "bob", question_id, "second")
    submit_comment(
        coordinator, "bob", question_id, "under older",
        parent_type="answer", parent_id=older.id,
    )

    thread = get_question_thread(db_session, question_id)

    assert thread.question.id == question_id
    assert [answer.id for answer in thread.answers] == [newer.id, older.id]
    assert [comment.text for comment in thread.comments] == ["first", "second"]
    assert [comment.text for comment in thread.answers[1].comments] == ["under older"]
    assert thread.answers[0].comments == []


def test_question_thread_missing(db_session) -> None:
    with pytest.raises(TargetNotFound):
        get_question_thread(db_session, "missing")


def test_question_listings_newest_first(coordinator, make_user, db_session) -> None:
    make_user("alice")
    make_user("bob")
    first = submit_question(coordinator, "alice", "First?")
    second = submit_question(coordinator, "bob", "Second?")
    third = submit_question(coordinator, "alice", "Third?")

    assert [q.id for q in list_questions(db_session)] == [third.id, second.id, first.id]
    assert [q.id for q in list_user_questions(db_session, "alice")] == [third.id, first.id]


def test_report_content(coordinator, make_question, make_user, load) -> None:
    question_id = make_question()
    make_user("carol")

    report = report_content(coordinator, "carol", "question", question_id, "  spam ")

    stored = load(Report, report.id)
    assert stored.target_id == question_id
    assert stored.reason == "spam"


def test_report_missing_or_unknown_target(coordinator, make_user, count_rows) -> None:
    make_user("carol")
    with pytest.raises(TargetNotFound):
        report_content(coordinator, "carol", "answer", "missing")
    with pytest.raises(ValidationError):
        report_content(coordinator, "carol", "profile", "carol")
    assert count_rows(Report) == 0


def test_profile_bootstrap_is_idempotent(coordinator, count_rows) -> None:
    created = get_or_create_profile(coordinator, "f00dfacecafe")
    again = get_or_create_profile(coordinator, "f00dfacecafe")

    assert created.username == "Anonymous User #f00dfa"
    assert created.user_id_handle == "@anon_f00dfa"
    assert again == created
    assert count_rows(User) == 1


def test_get_profile_missing(coordinator) -> None:
    with pytest.raises(TargetNotFound, match="User not found"):
        get_profile(coordinator, "ghost")
