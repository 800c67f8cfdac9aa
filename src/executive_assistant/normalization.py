"""
Inbound message normalization for the executive assistant.
"""

import re
import logging
from typing import Any, Dict, List, Tuple
from pydantic import BaseModel, ValidationError

from .exceptions import EmptyMessageError, InvalidRequestError
from .models import LegacyChatRequest, MessagePart, MessageSendRequest, RequestContext


TAG_PATTERN = re.compile(r"<[^>]*>")
WHITESPACE_PATTERN = re.compile(r"\s+")


class NormalizedMessage(BaseModel):
    """Plain text extracted from an inbound request plus its identifiers."""
    text: str
    context: RequestContext = RequestContext()


class MessageNormalizer:
    """Extracts clean user text from the supported inbound envelopes."""

    def __init__(self, logger: logging.Logger):
        """Initialize message normalizer."""
        self.logger = logger

    def normalize(self, payload: Dict[str, Any]) -> NormalizedMessage:
        """Normalize a raw request payload into plain text."""
        if not isinstance(payload, dict):
            raise InvalidRequestError("Request body must be a JSON object")

        if "params" in payload:
            parts, context = self._from_message_send(payload)
        elif "messages" in payload:
            parts, context = self._from_legacy_chat(payload)
        else:
            raise InvalidRequestError("Request does not contain a message")

        text = self.extract_text(parts)
        self.logger.info(f"Normalized inbound message: {len(text)} characters")
        return NormalizedMessage(text=text, context=context)

    def extract_text(self, parts: List[MessagePart]) -> str:
        """Join the text parts of a message and strip markup and extra whitespace."""
        texts = [
            part.text for part in parts
            if part.kind == "text" and part.text and not isinstance(part.data, list)
        ]
        if not texts:
            raise EmptyMessageError("No text content found in the request message")

        cleaned = self.clean_text("\n".join(texts))
        if not cleaned:
            raise EmptyMessageError("Message text is empty after removing markup")

        return cleaned

    @staticmethod
    def clean_text(text: str) -> str:
        """Remove tags and collapse whitespace."""
        without_tags = TAG_PATTERN.sub("", text)
        return WHITESPACE_PATTERN.sub(" ", without_tags).strip()

    def _from_message_send(self, payload: Dict[str, Any]) -> Tuple[List[MessagePart], RequestContext]:
        try:
            request = MessageSendRequest.model_validate(payload)
        except ValidationError as e:
            raise InvalidRequestError(f"Invalid message/send request: {self._first_error(e)}")

        message = request.params.message
        metadata = message.metadata
        context = RequestContext(
            user_id=metadata.telex_user_id if metadata else None,
            channel_id=metadata.telex_channel_id if metadata else None,
            message_id=message.message_id,
            request_id=request.id,
        )
        return message.parts, context

    def _from_legacy_chat(self, payload: Dict[str, Any]) -> Tuple[List[MessagePart], RequestContext]:
        try:
            request = LegacyChatRequest.model_validate(payload)
        except ValidationError as e:
            raise InvalidRequestError(f"Invalid chat request: {self._first_error(e)}")

        context = RequestContext(user_id=request.user_id, channel_id=request.channel_id)
        user_messages = [m for m in request.messages if m.role == "user"]
        if not user_messages:
            raise EmptyMessageError("No user message found in request")

        return [MessagePart(kind="text", text=user_messages[-1].content)], context

    @staticmethod
    def _first_error(error: ValidationError) -> str:
        first = error.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        return f"{location}: {first.get('msg')}"
