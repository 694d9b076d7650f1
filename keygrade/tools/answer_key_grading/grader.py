"""OpenAI-backed grading of one submission against an answer key."""

import asyncio
import contextlib
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from keygrade.libs.config_loader import ConfigType, get_config
from keygrade.libs.llm import create_agent
from keygrade.libs.settings_store import API_KEY_SETTING, GRADING_PROMPT_SETTING, SettingsStore
from .models import GradingRecord, GradingResult, GradingStatus
from .response_parser import DEFAULT_GRADING_PROMPT, build_user_prompt, parse_grading_response
from .scoring import aggregate

LOG = logging.getLogger(__name__)

RecordCallback = Callable[[GradingRecord], None]


class GradingRequestError(Exception):
    """The grading model could not be reached or answered with an error."""


class CompletionClient:
    """Single hosted-model call: (system prompt, user prompt) -> completion text."""

    def __init__(self, configs: ConfigType, model: Optional[str] = None,
                 settings: Optional[Dict[str, Any]] = None,
                 store: Optional[SettingsStore] = None):
        """
        Initialize the client.

        Args:
            configs: Configuration dictionary (required)
            model: Model to use (overrides config value)
            settings: Pydantic AI settings dict (overrides config values)
            store: Settings store holding a user-saved API key (optional)
        """
        self.configs = configs
        self.model_name = model
        self.settings = settings
        self.store = store

    def _api_key(self) -> Optional[str]:
        if self.store is None:
            return None
        return self.store.get(API_KEY_SETTING) or None

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """
        Run one completion.

        Raises:
            GradingRequestError: If the agent can't be built or the call fails
        """
        try:
            agent = create_agent(
                configs=self.configs,
                model=self.model_name,
                settings_dict=self.settings,
                system_prompt=system_prompt,
                api_key=self._api_key(),
            )
            result = await agent.run(user_prompt)
        except Exception as e:  # pylint: disable=broad-except
            raise GradingRequestError(str(e)) from e

        if hasattr(result, 'output'):
            return str(result.output)
        elif hasattr(result, 'data'):
            return str(result.data)
        return str(result)


class AnswerKeyGrader:
    """Drive one record through the grading lifecycle."""

    def __init__(self, client: CompletionClient, grading_prompt: Optional[str] = None,
                 tick_interval: float = 1.0):
        """
        Args:
            client: Grading capability (anything with an async complete(system, user))
            grading_prompt: System prompt; defaults to DEFAULT_GRADING_PROMPT
            tick_interval: Seconds between processing-time updates
        """
        self.client = client
        self.grading_prompt = grading_prompt
        self.tick_interval = tick_interval

    @property
    def grading_prompt(self) -> str:
        return self._grading_prompt

    @grading_prompt.setter
    def grading_prompt(self, prompt: Optional[str]) -> None:
        # Blank prompts fall back to the built-in one
        self._grading_prompt = (prompt or "").strip() or DEFAULT_GRADING_PROMPT

    @classmethod
    def from_configs(cls, configs: ConfigType, store: Optional[SettingsStore] = None,
                     model: Optional[str] = None) -> "AnswerKeyGrader":
        """Build a grader whose prompt and API key come from the store, then config."""
        prompt = store.get(GRADING_PROMPT_SETTING) if store else None
        prompt = prompt or get_config("grading.default_prompt", configs, default=None)
        tick_interval = get_config("grading.tick_interval", configs, default=1.0)
        client = CompletionClient(configs=configs, model=model, store=store)
        return cls(client, grading_prompt=prompt, tick_interval=float(tick_interval))

    async def grade_record(self, record: GradingRecord, answer_key: str,
                           on_update: Optional[RecordCallback] = None) -> GradingRecord:
        """
        Grade one record.

        Goes sent -> processing(elapsed)* -> received -> displayed, or
        sent -> error when the model call fails. A response that can't be
        parsed still ends in displayed, with a ParseError result. Every
        intermediate record is passed to on_update.

        Returns:
            The final record
        """
        current = record.with_status(GradingStatus.SENT, elapsed=0, error=None)

        def publish(new_record: GradingRecord) -> None:
            nonlocal current
            current = new_record
            if on_update:
                on_update(new_record)

        async def tick() -> None:
            elapsed = 0
            while True:
                await asyncio.sleep(self.tick_interval)
                elapsed += 1
                publish(current.with_status(GradingStatus.PROCESSING, elapsed=elapsed))

        LOG.info("Grading %s", record.identifier)
        publish(current)

        ticker = asyncio.create_task(tick())
        try:
            response_text = await self.client.complete(
                self.grading_prompt,
                build_user_prompt(answer_key, record.content),
            )
        except Exception as e:  # pylint: disable=broad-except
            LOG.error("Error grading %s: %s", record.identifier, e)
            publish(current.with_status(GradingStatus.ERROR, error=str(e)))
            return current
        finally:
            ticker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await ticker

        publish(current.with_status(GradingStatus.RECEIVED))
        LOG.debug("Raw response for %s: %s", record.identifier, response_text)

        result = parse_grading_response(response_text)
        graded_at = None
        if isinstance(result, GradingResult):
            graded_at = datetime.now()
            summary = aggregate(result)
            LOG.info("Graded %s: %s/%s (%.1f%%)", record.identifier,
                     summary.total, summary.worth, summary.percentage)
        else:
            LOG.warning("Response for %s could not be parsed; keeping raw text", record.identifier)

        publish(current.with_status(GradingStatus.DISPLAYED, result=result, graded_at=graded_at))
        return current
