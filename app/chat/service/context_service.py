# app/chat/service/context_service.py
"""
Builds the text preamble that gives a provider memory of the session.

Providers are called with a single user message, so recent turns and
uploaded-file excerpts are flattened into that message. Two shapes exist:
a chat prompt (history + file previews + the new message) and a file
analysis prompt (smaller history, other files, most of the target file).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List

from app.chat.entity.chat import ChatTurn
from app.chat.service.service import IChatRepository
from app.core.logger import get_logger
from app.file.entity.file import UploadedFile
from app.file.service.service import IFileRepository
from app.llm.service.provider.base_provider import FILE_CONTENT_MARKER

logger = get_logger("ContextAssembler")

# Chat prompt limits
CHAT_HISTORY_LIMIT = 10
CHAT_FILES_LIMIT = 5
RESPONSE_PREVIEW_CHARS = 200
FILE_PREVIEW_CHARS = 500

# File analysis prompt limits
ANALYSIS_HISTORY_LIMIT = 5
ANALYSIS_OTHER_FILES_LIMIT = 3
ANALYSIS_PREVIEW_CHARS = 150
ANALYSIS_CONTENT_CHARS = 8000

TRUNCATION_NOTICE = f"[Content truncated - showing first {ANALYSIS_CONTENT_CHARS:,} characters]"

CHAT_INSTRUCTION = (
    "Please respond to the current user message while being aware of our previous conversation "
    "and any uploaded files. If the user refers to previous messages or files, use the provided "
    "context to give a relevant response."
)
ANALYSIS_INSTRUCTION = (
    "Please provide a comprehensive analysis while being aware of our conversation context and "
    "any other files in this session. If relevant, reference previous discussions or other files."
)


@dataclass
class AssembledContext:
    prompt: str
    history_count: int = 0
    files_count: int = 0


def truncate(text: str, limit: int) -> str:
    """Cut to limit characters, marking the cut with an ellipsis."""
    if text is None:
        return ""
    return text[:limit] + "..." if len(text) > limit else text


def format_date(value: datetime) -> str:
    return f"{value.month}/{value.day}/{value.year}"


def render_history(turns: List[ChatTurn], header: str, footer: str, user_chars: int | None, reply_chars: int) -> str:
    """turns must already be in chronological order."""
    if not turns:
        return ""
    lines = [f"\n\n--- {header} ---\n"]
    for i, turn in enumerate(turns, start=1):
        user = truncate(turn.user_message, user_chars) if user_chars else turn.user_message
        lines.append(f"[{i}] User: {user}\n")
        lines.append(f"[{i}] Assistant: {truncate(turn.ai_response, reply_chars)}\n\n")
    lines.append(f"--- {footer} ---\n\n")
    return "".join(lines)


def render_files(files: List[UploadedFile]) -> str:
    if not files:
        return ""
    lines = ["\n\n--- Available Files Context ---\n"]
    for i, file in enumerate(files, start=1):
        lines.append(f'File {i}: "{file.original_name}" (uploaded {format_date(file.uploaded_at)})\n')
        if file.content:
            lines.append(f"Content preview: {truncate(file.content, FILE_PREVIEW_CHARS)}\n")
        last = file.last_analysis
        if last:
            lines.append(f"Previous analyses: {len(file.analysis_prompts)} analysis(es) performed\n")
            lines.append(f'Last analysis: "{last.prompt}" - {truncate(last.response, RESPONSE_PREVIEW_CHARS)}\n')
        lines.append("\n")
    lines.append("--- End of Files Context ---\n\n")
    return "".join(lines)


def render_other_files(files: List[UploadedFile]) -> str:
    if not files:
        return ""
    lines = ["\n\n--- Other Files in Session ---\n"]
    for i, file in enumerate(files, start=1):
        lines.append(f'File {i}: "{file.original_name}" (uploaded {format_date(file.uploaded_at)})\n')
        last = file.last_analysis
        if last:
            lines.append(f'  Last analysis: "{last.prompt}"\n')
    lines.append("--- End of Other Files ---\n\n")
    return "".join(lines)


def render_file_content(content: str) -> str:
    if len(content) > ANALYSIS_CONTENT_CHARS:
        return content[:ANALYSIS_CONTENT_CHARS] + "\n\n" + TRUNCATION_NOTICE
    return content


class ContextAssembler:
    """Reads recent session state and folds it into an outgoing prompt."""

    def __init__(self, chat_repository: IChatRepository, file_repository: IFileRepository):
        self.chat_repository = chat_repository
        self.file_repository = file_repository

    async def _recent_turns(self, session_id: str, limit: int) -> List[ChatTurn]:
        try:
            turns = await self.chat_repository.recent_turns(session_id, limit)
        except Exception as e:
            logger.warning(f"Conversation history unavailable for session {session_id}: {e}")
            return []
        # store returns newest first; prompts read oldest first
        return list(reversed(turns))

    async def _recent_files(self, session_id: str, limit: int, exclude_id: str | None = None) -> List[UploadedFile]:
        try:
            return await self.file_repository.list_files(session_id, limit=limit, exclude_id=exclude_id)
        except Exception as e:
            logger.warning(f"File context unavailable for session {session_id}: {e}")
            return []

    async def build_chat_context(self, session_id: str, message: str) -> AssembledContext:
        turns = await self._recent_turns(session_id, CHAT_HISTORY_LIMIT)
        files = await self._recent_files(session_id, CHAT_FILES_LIMIT)

        conversation_block = render_history(
            turns,
            "Previous Conversation Context",
            "End of Previous Context",
            user_chars=None,
            reply_chars=RESPONSE_PREVIEW_CHARS,
        )
        files_block = render_files(files)

        if turns:
            logger.info(f"Added context from {len(turns)} previous exchanges")
        if files:
            logger.info(f"Added context from {len(files)} uploaded files")

        if not conversation_block and not files_block:
            return AssembledContext(prompt=message)

        prompt = f"{conversation_block}{files_block}Current user message: {message}\n\n{CHAT_INSTRUCTION}"
        return AssembledContext(prompt=prompt, history_count=len(turns), files_count=len(files))

    async def build_analysis_context(self, file: UploadedFile, request: str) -> AssembledContext:
        turns = await self._recent_turns(file.session_id, ANALYSIS_HISTORY_LIMIT)
        others = await self._recent_files(file.session_id, ANALYSIS_OTHER_FILES_LIMIT, exclude_id=file.id)

        conversation_block = render_history(
            turns,
            "Recent Conversation Context",
            "End of Context",
            user_chars=ANALYSIS_PREVIEW_CHARS,
            reply_chars=ANALYSIS_PREVIEW_CHARS,
        )
        others_block = render_other_files(others)
        file_info = f"File Name: {file.original_name}\nFile Type: {file.mimetype}\nFile Size: {file.size} bytes\n"

        prompt = (
            f"{conversation_block}{others_block}"
            f'Please analyze the following file based on this request: "{request}"\n\n'
            f"{file_info}\n{FILE_CONTENT_MARKER}\n{render_file_content(file.content)}\n\n"
            f"{ANALYSIS_INSTRUCTION}"
        )
        return AssembledContext(prompt=prompt, history_count=len(turns), files_count=len(others))
