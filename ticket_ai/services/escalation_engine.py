"""Deterministic escalation heuristic.

evaluate() is a pure function of the conversation history and the provider's raw
reply. The rules are keyword checks on lower-cased text, so every verdict can be
explained by pointing at the phrase that triggered it.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from ticket_ai.models import Message, MessageRole, TicketCategory, TicketPriority
from ticket_ai.services.errors import ValidationError

ESCALATION_MARKER = "[ESCALATE]"

ESCALATION_KEYWORDS = (
    "speak to human",
    "talk to person",
    "human agent",
    "representative",
    "manager",
    "supervisor",
    "escalate",
    "frustrated",
    "angry",
    "terrible service",
    "cancel subscription",
    "refund",
    "billing issue",
    "account problem",
)

UNCERTAIN_PHRASES = ("i think", "maybe", "possibly", "not sure", "might be")

REPEATED_ATTEMPT_THRESHOLD = 3
LONG_CONVERSATION_THRESHOLD = 5
SHORT_REPLY_LENGTH = 50

BASE_CONFIDENCE = 0.8
UNCERTAINTY_PENALTY = 0.3
SHORT_REPLY_PENALTY = 0.2
LONG_CONVERSATION_PENALTY = 0.1
MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 1.0

REASON_AI_RECOMMENDED = "AI recommended escalation"
REASON_HUMAN_REQUEST = "User requested human agent"
REASON_FRUSTRATION = "User expressed frustration"
REASON_BILLING = "Billing/financial issue requires human intervention"
REASON_CANCELLATION = "Account cancellation request"
REASON_AUTOMATIC = "Automatic escalation trigger activated"
REASON_PROVIDER_ERROR = "technical error with completion system"

# Checked in order; the first bucket with a hit names the reason.
REASON_RULES = (
    (("human", "person"), REASON_HUMAN_REQUEST),
    (("frustrated", "angry"), REASON_FRUSTRATION),
    (("billing", "refund"), REASON_BILLING),
    (("cancel",), REASON_CANCELLATION),
)

CATEGORY_RULES = (
    (("billing", "payment", "refund"), TicketCategory.BILLING),
    (("bug", "error", "not working"), TicketCategory.TECHNICAL),
    (("feature", "suggestion", "improvement"), TicketCategory.FEATURE_REQUEST),
    (("angry", "frustrated", "terrible"), TicketCategory.COMPLAINT),
)

URGENT_TERMS = ("urgent", "emergency")
BILLING_PRIORITY_TERMS = ("billing", "payment")
FEATURE_PRIORITY_TERMS = ("feature", "suggestion")

FALLBACK_MESSAGE = (
    "I apologize, but I'm experiencing technical difficulties. "
    "Let me connect you with a human agent who can assist you better."
)

DEFAULT_SYSTEM_PROMPT = """You are a helpful customer support AI assistant. Your goal is to help users with their questions and issues efficiently and courteously.

Guidelines:
1. Be helpful, professional, and empathetic
2. Provide clear, concise answers
3. If you don't know something, admit it rather than guessing
4. For complex technical issues, gather relevant information before providing solutions
5. If a user seems frustrated or asks to speak to a human, recommend escalation
6. Keep responses conversational but informative

Escalation triggers:
- User explicitly asks for human help
- You cannot provide a satisfactory answer after 2-3 attempts
- Technical issues requiring system access or account changes
- Billing or refund requests
- Complaints or escalated frustration
- Complex troubleshooting that requires back-and-forth

When you think an issue should be escalated, include [ESCALATE] in your response and explain why."""


@dataclass(frozen=True)
class EscalationSignal:
    should_escalate: bool
    confidence: float
    reason: Optional[str] = None
    suggested_category: Optional[TicketCategory] = None
    suggested_priority: Optional[TicketPriority] = None


def _contains_any(text: str, terms: Iterable[str]) -> bool:
    return any(term in text for term in terms)


def _last_user_text(history: Sequence[Message]) -> Optional[str]:
    for message in reversed(history):
        if message.role == MessageRole.USER:
            return message.content.lower()
    return None


def _user_message_count(history: Sequence[Message]) -> int:
    return sum(1 for m in history if m.role == MessageRole.USER)


def _transcript(history: Sequence[Message]) -> str:
    return " ".join(m.content for m in history).lower()


def should_escalate(history: Sequence[Message], reply: str) -> bool:
    if ESCALATION_MARKER in reply:
        return True

    last_user = _last_user_text(history)
    if last_user is not None and _contains_any(last_user, ESCALATION_KEYWORDS):
        return True

    return _user_message_count(history) >= REPEATED_ATTEMPT_THRESHOLD


def escalation_reason(history: Sequence[Message], reply: str) -> str:
    if ESCALATION_MARKER in reply:
        return REASON_AI_RECOMMENDED

    last_user = _last_user_text(history)
    if last_user is not None:
        for terms, reason in REASON_RULES:
            if _contains_any(last_user, terms):
                return reason

    return REASON_AUTOMATIC


def calculate_confidence(history: Sequence[Message], reply: str) -> float:
    confidence = BASE_CONFIDENCE

    if _contains_any(reply.lower(), UNCERTAIN_PHRASES):
        confidence -= UNCERTAINTY_PENALTY
    if len(reply) < SHORT_REPLY_LENGTH:
        confidence -= SHORT_REPLY_PENALTY
    if _user_message_count(history) > LONG_CONVERSATION_THRESHOLD:
        confidence -= LONG_CONVERSATION_PENALTY

    return round(max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, confidence)), 2)


def suggest_category(history: Sequence[Message]) -> TicketCategory:
    transcript = _transcript(history)
    for terms, category in CATEGORY_RULES:
        if _contains_any(transcript, terms):
            return category
    return TicketCategory.GENERAL


def suggest_priority(history: Sequence[Message], escalate: bool) -> TicketPriority:
    transcript = _transcript(history)
    if escalate or _contains_any(transcript, URGENT_TERMS):
        return TicketPriority.HIGH
    if _contains_any(transcript, BILLING_PRIORITY_TERMS):
        return TicketPriority.MEDIUM
    if _contains_any(transcript, FEATURE_PRIORITY_TERMS):
        return TicketPriority.LOW
    return TicketPriority.MEDIUM


def evaluate(history: Sequence[Message], generated_reply: str) -> EscalationSignal:
    """Turn a conversation plus the provider's raw reply into an escalation verdict."""
    if not history:
        raise ValidationError("history must contain at least one message")

    reply = generated_reply or ""
    escalate = should_escalate(history, reply)

    return EscalationSignal(
        should_escalate=escalate,
        confidence=calculate_confidence(history, reply),
        reason=escalation_reason(history, reply) if escalate else None,
        suggested_category=suggest_category(history),
        suggested_priority=suggest_priority(history, escalate),
    )


def clean_reply(generated_reply: str) -> str:
    """Text shown to the user: the reply without the escalation marker."""
    return (generated_reply or "").replace(ESCALATION_MARKER, "").strip()


def fallback_signal() -> EscalationSignal:
    """Signal used when the completion provider failed or timed out."""
    return EscalationSignal(
        should_escalate=True,
        confidence=0.0,
        reason=REASON_PROVIDER_ERROR,
        suggested_category=TicketCategory.GENERAL,
        suggested_priority=TicketPriority.HIGH,
    )
