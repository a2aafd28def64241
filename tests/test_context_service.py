from datetime import datetime, timedelta, timezone

import pytest

from app.chat.entity.chat import ChatTurn
from app.chat.service.context_service import (
    ANALYSIS_CONTENT_CHARS,
    CHAT_HISTORY_LIMIT,
    TRUNCATION_NOTICE,
    ContextAssembler,
    format_date,
    truncate,
)
from app.file.entity.file import AnalysisRecord, UploadedFile
from app.llm.entity.result import ResultStatus

BASE = datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)


def make_turn(session_id, i, reply="reply"):
    return ChatTurn(
        session_id=session_id,
        user_message=f"question {i}",
        ai_response=f"{reply} {i}",
        model="gpt-4",
        provider="openai",
        response_time=10,
        status=ResultStatus.SUCCESS,
        created_at=BASE + timedelta(minutes=i),
    )


def make_file(session_id, name, content="hello world", minutes=0, analyses=None):
    return UploadedFile(
        session_id=session_id,
        original_name=name,
        filename=f"stored-{name}",
        mimetype="text/plain",
        size=len(content),
        content=content,
        analysis_prompts=analyses or [],
        uploaded_at=BASE + timedelta(minutes=minutes),
    )


class BrokenChatRepository:
    async def recent_turns(self, session_id, limit):
        raise ConnectionError("store down")


class BrokenFileRepository:
    async def list_files(self, session_id, limit=None, exclude_id=None):
        raise ConnectionError("store down")


def test_truncate_and_format_date():
    assert truncate("abcdef", 3) == "abc..."
    assert truncate("abc", 3) == "abc"
    assert format_date(BASE) == "3/5/2024"


@pytest.mark.anyio
async def test_empty_session_leaves_message_untouched(chat_repo, file_repo):
    assembler = ContextAssembler(chat_repo, file_repo)

    ctx = await assembler.build_chat_context("session_empty", "hello")

    assert ctx.prompt == "hello"
    assert ctx.history_count == 0
    assert ctx.files_count == 0


@pytest.mark.anyio
async def test_history_keeps_last_ten_in_chronological_order(chat_repo, file_repo):
    for i in range(12):
        await chat_repo.save_turn(make_turn("s1", i))
    assembler = ContextAssembler(chat_repo, file_repo)

    ctx = await assembler.build_chat_context("s1", "next question")

    assert ctx.history_count == CHAT_HISTORY_LIMIT
    assert "question 0\n" not in ctx.prompt
    assert "question 1\n" not in ctx.prompt
    positions = [ctx.prompt.index(f"User: question {i}\n") for i in range(2, 12)]
    assert positions == sorted(positions)
    assert "[1] User: question 2" in ctx.prompt
    assert ctx.prompt.rstrip().endswith("use the provided context to give a relevant response.")
    assert "Current user message: next question" in ctx.prompt


@pytest.mark.anyio
async def test_long_replies_are_cut_to_preview(chat_repo, file_repo):
    await chat_repo.save_turn(make_turn("s1", 0, reply="x" * 300))
    assembler = ContextAssembler(chat_repo, file_repo)

    ctx = await assembler.build_chat_context("s1", "hi")

    assert "Assistant: " + "x" * 200 + "...\n" in ctx.prompt


@pytest.mark.anyio
async def test_files_block_includes_preview_and_last_analysis(chat_repo, file_repo):
    analysis = AnalysisRecord(prompt="summarize", response="a short summary", model="gpt-4", provider="openai")
    await file_repo.save_file(make_file("s1", "notes.txt", content="n" * 600, analyses=[analysis]))
    assembler = ContextAssembler(chat_repo, file_repo)

    ctx = await assembler.build_chat_context("s1", "what is in my notes?")

    assert ctx.files_count == 1
    assert ctx.history_count == 0
    assert 'File 1: "notes.txt" (uploaded 3/5/2024)' in ctx.prompt
    assert "Content preview: " + "n" * 500 + "..." in ctx.prompt
    assert "Previous analyses: 1 analysis(es) performed" in ctx.prompt
    assert 'Last analysis: "summarize" - a short summary' in ctx.prompt


@pytest.mark.anyio
async def test_store_failures_degrade_to_no_context():
    assembler = ContextAssembler(BrokenChatRepository(), BrokenFileRepository())

    ctx = await assembler.build_chat_context("s1", "hello")

    assert ctx.prompt == "hello"


@pytest.mark.anyio
async def test_analysis_truncates_content_and_excludes_target(chat_repo, file_repo):
    target = make_file("s1", "big.txt", content="a" * 9000, minutes=5)
    other = make_file("s1", "other.txt", minutes=1)
    await file_repo.save_file(other)
    await file_repo.save_file(target)
    assembler = ContextAssembler(chat_repo, file_repo)

    ctx = await assembler.build_analysis_context(target, "find patterns")

    assert ctx.files_count == 1
    assert 'File 1: "other.txt"' in ctx.prompt
    assert '"big.txt"' not in ctx.prompt
    assert 'Please analyze the following file based on this request: "find patterns"' in ctx.prompt
    assert "File Name: big.txt\nFile Type: text/plain\nFile Size: 9000 bytes\n" in ctx.prompt
    body = ctx.prompt.split("File Content:\n", 1)[1]
    assert body.startswith("a" * ANALYSIS_CONTENT_CHARS + "\n\n" + TRUNCATION_NOTICE)
    assert "a" * (ANALYSIS_CONTENT_CHARS + 1) not in ctx.prompt


@pytest.mark.anyio
async def test_analysis_history_uses_five_turns(chat_repo, file_repo):
    for i in range(8):
        await chat_repo.save_turn(make_turn("s1", i))
    target = make_file("s1", "doc.txt")
    assembler = ContextAssembler(chat_repo, file_repo)

    ctx = await assembler.build_analysis_context(target, "review")

    assert ctx.history_count == 5
    assert "question 2\n" not in ctx.prompt
    assert "[1] User: question 3" in ctx.prompt
