"""
Document classification.

Three tiers, first hit wins:
1. Explicit command in the accompanying message ("/invoice", "/упд", ...)
2. Delegated LLM suggestion (only when a credential is configured)
3. Local keyword rules on the filename, default "misc"

classify() never raises: any failure of tier 2 falls through to tier 3.
"""

from typing import Optional, Protocol

import anthropic
from openai import AsyncOpenAI

from kin_archive.agents.prompts import CLASSIFICATION_SYSTEM_PROMPT, build_classification_prompt
from kin_archive.agents.schemas import AIAnalysisResult, ClassificationResult, ClassificationSource
from kin_archive.config import Settings
from kin_archive.folders import FolderId, FolderRegistry
from kin_archive.logging_config import service_logger as logger

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_ANTHROPIC_MODEL = "claude-3-5-haiku-latest"

# Checked in order; first matching rule wins
FALLBACK_RULES: list[tuple[FolderId, tuple[str, ...], str]] = [
    (FolderId.INVOICES, ("счет", "счёт", "inv"), 'Найдено ключевое слово "Счет"'),
    (FolderId.WAYBILLS, ("накл", "упд", "waybill"), 'Найдено ключевое слово "Накладная"'),
    (FolderId.CONTRACTS, ("договор", "contract"), 'Найдено ключевое слово "Договор"'),
    (FolderId.TAXES, ("налог", "фнс", "отчет", "отчёт", "tax"), 'Найдено ключевое слово "Налог/Отчет"'),
]
DEFAULT_REASONING = "Папка по умолчанию"
EMPTY_NAME_REASONING = "Имя файла не определено."


class ClassificationError(Exception):
    """Delegated classifier returned nothing usable."""


class FolderClassifier(Protocol):
    async def suggest(self, filename: str) -> AIAnalysisResult: ...


def parse_ai_response(text: Optional[str]) -> AIAnalysisResult:
    """Validate the raw LLM body. Raises ClassificationError when unusable."""
    if not text or not text.strip():
        raise ClassificationError("Empty response body")

    body = text.strip()
    # Tolerate ```json fences around the object
    if body.startswith("```"):
        body = body.strip("`")
        if body.lower().startswith("json"):
            body = body[4:]

    try:
        result = AIAnalysisResult.model_validate_json(body)
    except ValueError as e:
        raise ClassificationError(f"Malformed response: {e}") from e

    if not result.reasoning.strip():
        raise ClassificationError("Blank reasoning")
    return result


class OpenAIFolderClassifier:
    """GPT classifier with JSON response format."""

    def __init__(self, api_key: str, model: str = DEFAULT_OPENAI_MODEL, client: Optional[AsyncOpenAI] = None):
        self.model = model
        self.client = client or AsyncOpenAI(api_key=api_key)

    async def suggest(self, filename: str) -> AIAnalysisResult:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": CLASSIFICATION_SYSTEM_PROMPT},
                {"role": "user", "content": build_classification_prompt(filename)},
            ],
            response_format={"type": "json_object"},
            temperature=0,
            max_tokens=200
        )
        return parse_ai_response(response.choices[0].message.content)


class AnthropicFolderClassifier:
    """Claude classifier. Claude has no JSON mode, the prompt pins the format."""

    def __init__(self, api_key: str, model: str = DEFAULT_ANTHROPIC_MODEL, client: Optional[anthropic.AsyncAnthropic] = None):
        self.model = model
        self.client = client or anthropic.AsyncAnthropic(api_key=api_key)

    async def suggest(self, filename: str) -> AIAnalysisResult:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=200,
            system=CLASSIFICATION_SYSTEM_PROMPT,
            messages=[{"role": "user", "content": build_classification_prompt(filename)}],
        )
        text = "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        )
        return parse_ai_response(text)


def create_classifier(settings: Settings) -> Optional[FolderClassifier]:
    """Classifier for the configured provider, or None without a credential."""
    provider = settings.classifier_provider.lower()

    if provider == "openai":
        if not settings.openai_api_key:
            logger.warning("OPENAI_API_KEY missing, using local rules.")
            return None
        return OpenAIFolderClassifier(settings.openai_api_key, settings.classifier_model or DEFAULT_OPENAI_MODEL)

    if provider == "anthropic":
        if not settings.anthropic_api_key:
            logger.warning("ANTHROPIC_API_KEY missing, using local rules.")
            return None
        return AnthropicFolderClassifier(settings.anthropic_api_key, settings.classifier_model or DEFAULT_ANTHROPIC_MODEL)

    logger.warning(f"Unknown classifier provider '{settings.classifier_provider}', using local rules.")
    return None


def fallback_classify(filename: str) -> ClassificationResult:
    """Keyword rules on the filename."""
    name = filename.casefold()
    for folder_id, keywords, reasoning in FALLBACK_RULES:
        if any(keyword in name for keyword in keywords):
            return ClassificationResult(
                suggested_folder=folder_id,
                reasoning=reasoning,
                source=ClassificationSource.FALLBACK
            )
    return ClassificationResult(
        suggested_folder=FolderId.MISC,
        reasoning=DEFAULT_REASONING,
        source=ClassificationSource.FALLBACK
    )


class ClassificationEngine:
    def __init__(self, registry: FolderRegistry, classifier: Optional[FolderClassifier] = None):
        self.registry = registry
        self.classifier = classifier

    def match_command(self, message_text: Optional[str]) -> Optional[ClassificationResult]:
        """Explicit routing by command token anywhere in the message."""
        if not message_text:
            return None

        text = message_text.casefold()
        found = [
            (text.find(token), token, folder)
            for token, folder in self.registry.routing_tokens()
            if token in text
        ]
        if not found:
            return None

        # earliest in the text wins, longer token on a tie
        _, token, folder = min(found, key=lambda item: (item[0], -len(item[1])))
        return ClassificationResult(
            suggested_folder=folder.id,
            reasoning=f"Указана команда {token}",
            source=ClassificationSource.COMMAND
        )

    async def classify(self, filename: str, message_text: str = "") -> ClassificationResult:
        explicit = self.match_command(message_text)
        if explicit:
            return explicit

        if not filename or not filename.strip():
            return ClassificationResult(
                suggested_folder=FolderId.MISC,
                reasoning=EMPTY_NAME_REASONING,
                source=ClassificationSource.FALLBACK
            )

        if self.classifier is not None:
            try:
                suggestion = await self.classifier.suggest(filename)
                logger.info(f"AI classified '{filename}' as {suggestion.suggestedFolder.value}")
                return ClassificationResult(
                    suggested_folder=suggestion.suggestedFolder,
                    reasoning=suggestion.reasoning.strip(),
                    source=ClassificationSource.AI
                )
            except Exception as e:
                logger.warning(f"AI classification failed for '{filename}', using local rules: {e}")

        return fallback_classify(filename)
