"""
Perception Stage: utterance text in, structured Perception out.

Two paths:
  1. Model path: an LLM classifies intent, entities, sentiment and context.
  2. Keyword path: a fixed intent → keyword table plus regex entity
     extraction. Used whenever the model path is unavailable or fails.

Behavioral Contract:
- perceive() never raises.
- Memory retrieval failure degrades to an empty memory list.
- Every perception is recorded in the Pattern Learner.
"""

import json
import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Pattern, Tuple

from action_kernel.errors import ProviderError
from action_kernel.learning.patterns import PatternLearner
from action_kernel.memory.store import MemoryStore
from action_kernel.models.actor import ActorProfile
from action_kernel.models.config import PipelineConfig
from action_kernel.models.perception import Perception, Sentiment
from action_kernel.providers.llm import LLMProvider, extract_json_object
from action_kernel.result import Result

logger = logging.getLogger(__name__)

# Ordered: the first intent with a matching keyword wins.
INTENT_KEYWORDS: List[Tuple[str, List[str]]] = [
    ("call", ["call", "phone", "dial", "ring"]),
    ("sms", ["text", "sms", "message", "send message"]),
    ("email", ["email", "mail", "send email"]),
    ("note", ["note", "write down", "remember", "jot down"]),
    ("task", ["task", "todo", "remind me to"]),
    ("search", ["search", "find", "look up", "what is"]),
    ("analyze", ["analyze", "explain", "understand", "why"]),
    ("create", ["create", "make", "generate", "build"]),
    ("schedule", ["schedule", "calendar", "meeting", "appointment"]),
    ("summarize", ["summarize", "summary", "tldr", "brief"]),
    ("routine", ["routine", "automate", "workflow", "always"]),
    ("suggestion", ["suggest", "recommend", "what should", "help me decide"]),
]
DEFAULT_INTENT = "conversation"
KNOWN_INTENTS = [intent for intent, _ in INTENT_KEYWORDS] + [DEFAULT_INTENT]

POSITIVE_WORDS = ["good", "great", "excellent", "happy", "love", "thank", "wonderful", "amazing", "perfect"]
NEGATIVE_WORDS = ["bad", "terrible", "sad", "hate", "angry", "problem", "issue", "wrong", "error"]

PHONE_RE = re.compile(r"\+?1?\s*\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}")
EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
DATE_RE = re.compile(r"\b(?:\d{1,2}/\d{1,2}/\d{2,4}|\d{4}-\d{2}-\d{2})\b")
TIME_RE = re.compile(r"\b\d{1,2}:\d{2}(?:\s*(?:am|pm))?", re.IGNORECASE)
NUMBER_RE = re.compile(r"\b\d+(?:\.\d+)?\b")
URL_RE = re.compile(r"https?://\S+")

TIME_REFERENCES: List[Tuple[str, str]] = [
    ("tomorrow", "tomorrow"),
    ("today", "today"),
    ("next week", "next_week"),
]

# Leading command phrases stripped to recover the payload text.
_MESSAGE_RE = re.compile(r"\b(?:saying|that says|to say)\b\s*[:,-]?\s*(.+)$", re.IGNORECASE)
_NOTE_PREFIX_RE = re.compile(
    r"^\s*(?:please\s+)?(?:remember(?:\s+that)?|take a note(?:\s+that)?|note(?:\s+that)?"
    r"|write down(?:\s+that)?|jot down(?:\s+that)?)\s*[:,-]?\s*",
    re.IGNORECASE,
)
_TASK_PREFIX_RE = re.compile(
    r"^\s*(?:please\s+)?(?:remind me to|add (?:a )?task(?: to)?|todo\s*:?|create (?:a )?task(?: to)?)\s*[:,-]?\s*",
    re.IGNORECASE,
)
_SEARCH_PREFIX_RE = re.compile(
    r"^\s*(?:please\s+)?(?:search(?: for)?|look up|find)\s+", re.IGNORECASE
)

PERCEPTION_SYSTEM_PROMPT = """You are a perception analyzer for an AI assistant. Analyze user input and extract:
1. PRIMARY INTENT: call, sms, email, note, task, search, analyze, create, schedule, summarize, routine, suggestion, or conversation
2. ENTITIES: Extract phone numbers, emails, dates, times, names, locations, URLs, amounts
3. SENTIMENT: positive, negative, or neutral
4. CONTEXT: Any additional contextual information

Return ONLY valid JSON in this exact format:
{
  "intent": "string",
  "entities": {"type": ["value1", "value2"]},
  "sentiment": "positive|negative|neutral",
  "context": {"key": "value"},
  "confidence": 0.0-1.0
}"""


def _keyword_regex(keyword: str) -> Pattern:
    return re.compile(r"\b" + re.escape(keyword).replace(r"\ ", r"\s+"))


_INTENT_REGEXES: List[Tuple[str, List[Pattern]]] = [
    (intent, [_keyword_regex(k) for k in keywords]) for intent, keywords in INTENT_KEYWORDS
]
_POSITIVE_REGEXES = [_keyword_regex(w) for w in POSITIVE_WORDS]
_NEGATIVE_REGEXES = [_keyword_regex(w) for w in NEGATIVE_WORDS]


def classify_intent(text: str) -> str:
    """Keyword intent classification; 'conversation' when nothing matches."""
    lower = text.lower()
    for intent, regexes in _INTENT_REGEXES:
        if any(r.search(lower) for r in regexes):
            return intent
    return DEFAULT_INTENT


def extract_entities(text: str) -> Dict[str, Any]:
    """Regex entity extraction. Only keys with at least one match are present."""
    entities: Dict[str, Any] = {}

    phones = [p.strip() for p in PHONE_RE.findall(text)]
    if phones:
        entities["phones"] = phones
    emails = EMAIL_RE.findall(text)
    if emails:
        entities["emails"] = emails
    dates = DATE_RE.findall(text)
    if dates:
        entities["dates"] = dates
    times = TIME_RE.findall(text)
    if times:
        entities["times"] = times
    numbers = NUMBER_RE.findall(text)
    if numbers:
        entities["numbers"] = [float(n) for n in numbers]
    urls = URL_RE.findall(text)
    if urls:
        entities["urls"] = urls

    lower = text.lower()
    for phrase, label in TIME_REFERENCES:
        if phrase in lower:
            entities["time_reference"] = label
            break
    return entities


def analyze_sentiment(text: str) -> Sentiment:
    """Keyword-bag vote; ties and no matches are neutral."""
    lower = text.lower()
    positive = sum(1 for r in _POSITIVE_REGEXES if r.search(lower))
    negative = sum(1 for r in _NEGATIVE_REGEXES if r.search(lower))
    if positive > negative:
        return Sentiment.POSITIVE
    if negative > positive:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def derive_payloads(text: str) -> Dict[str, str]:
    """Recover message, note, task and search text from the utterance."""
    payloads = {}
    match = _MESSAGE_RE.search(text)
    payloads["message"] = match.group(1).strip() if match else text.strip()
    payloads["note_content"] = _NOTE_PREFIX_RE.sub("", text, count=1).strip() or text.strip()
    payloads["task_content"] = _TASK_PREFIX_RE.sub("", text, count=1).strip() or text.strip()
    payloads["search_query"] = _SEARCH_PREFIX_RE.sub("", text, count=1).strip() or text.strip()
    return payloads


def _coerce_sentiment(value: Any) -> Sentiment:
    try:
        return Sentiment(str(value).lower())
    except ValueError:
        return Sentiment.NEUTRAL


def _coerce_confidence(value: Any, default: float) -> float:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return default
    return min(max(confidence, 0.0), 1.0)


class PerceptionStage:
    """Builds Perceptions from utterances."""

    def __init__(
        self,
        learner: PatternLearner,
        memory: Optional[MemoryStore] = None,
        llm: Optional[LLMProvider] = None,
        config: Optional[PipelineConfig] = None,
    ):
        self.learner = learner
        self.memory = memory
        self.llm = llm
        self.config = config or PipelineConfig()

    async def perceive(self, utterance: str, actor: ActorProfile) -> Perception:
        """Perceive one utterance. Never raises."""
        recent_patterns = self.learner.recent_patterns(self.config.recent_pattern_count)

        model_result = await self._try_model_path(utterance, actor)
        perception = model_result.or_else(
            lambda error: self._keyword_perception(utterance, error)
        )
        if model_result.is_ok:
            await self._persist_perception(perception)

        memories = await self._recall(utterance)
        context: Dict[str, Any] = {
            "actor": actor.name,
            "memories": memories,
            "user_profile": dict(actor.user_profile),
            "current_time": datetime.utcnow().isoformat(),
            "recent_patterns": [list(p) for p in recent_patterns],
        }
        context.update(perception.context)
        for key, value in derive_payloads(utterance).items():
            context.setdefault(key, value)

        perception = perception.model_copy(update={"context": context})
        self._learn(perception)
        return perception

    async def _try_model_path(self, utterance: str, actor: ActorProfile) -> Result[Perception]:
        if self.llm is None:
            return Result.fail(ProviderError("No model provider configured"))
        if not actor.model:
            return Result.fail(ProviderError(f"No model configured for {actor.name}"))

        messages = [
            {"role": "system", "content": PERCEPTION_SYSTEM_PROMPT},
            {"role": "user", "content": f'Analyze this user input:\n"{utterance}"'},
        ]
        try:
            reply = await self.llm.send_message(messages)
            parsed = extract_json_object(reply or "")
        except ProviderError as e:
            return Result.fail(e)
        except Exception as e:
            return Result.fail(ProviderError(f"Model perception failed: {e}"))

        entities = parsed.get("entities")
        context = parsed.get("context")
        return Result.ok(Perception(
            input=utterance,
            intent=str(parsed.get("intent") or DEFAULT_INTENT).lower(),
            entities={
                **extract_entities(utterance),
                **(entities if isinstance(entities, dict) else {}),
            },
            sentiment=_coerce_sentiment(parsed.get("sentiment")),
            context=context if isinstance(context, dict) else {},
            confidence=_coerce_confidence(
                parsed.get("confidence"), self.config.default_model_confidence
            ),
            timestamp=datetime.utcnow(),
        ))

    def _keyword_perception(self, utterance: str, error: ProviderError) -> Perception:
        logger.warning("Model perception unavailable, using keyword fallback: %s", error)
        return Perception(
            input=utterance,
            intent=classify_intent(utterance),
            entities=extract_entities(utterance),
            sentiment=analyze_sentiment(utterance),
            context={},
            confidence=self.config.heuristic_confidence,
            timestamp=datetime.utcnow(),
        )

    async def _recall(self, utterance: str) -> List[dict]:
        if self.memory is None:
            return []
        try:
            hits = await self.memory.query_memories(utterance, self.config.memory_query_limit)
        except Exception as e:
            logger.warning("Memory query failed, continuing without memories: %s", e)
            return []
        return [hit.model_dump(mode="json") for hit in hits]

    async def _persist_perception(self, perception: Perception) -> None:
        if self.memory is None or not self.config.persist_model_perceptions:
            return
        try:
            await self.memory.add_memory(
                f"Intent: {perception.intent}, "
                f"Entities: {json.dumps(perception.entities, default=str)}, "
                f"Sentiment: {perception.sentiment.value}",
                "agent",
                "system_status",
                metadata={
                    "type": "perception",
                    "intent": perception.intent,
                    "sentiment": perception.sentiment.value,
                    "confidence": perception.confidence,
                },
            )
        except Exception as e:
            logger.warning("Failed to persist perception: %s", e)

    def _learn(self, perception: Perception) -> None:
        self.learner.record_pattern(f"intent_{perception.intent}")
        self.learner.record_pattern(f"{perception.intent}_{perception.sentiment.value}")
        if perception.entities:
            self.learner.record_pattern(f"entities_{'_'.join(perception.entities)}")
