"""Business search orchestrator.

Expands the form selection into one task per neighborhood / sub-category
combination and runs the tasks one after another against the LLM,
parsing each streamed response line by line as it arrives.
"""
from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple

from core.providers.audit import AuditLogger, AuditRecord
from core.providers.base import LLMConfig, LLMError, LLMJSONError, LLMProvider, LLMQuotaError
from core.providers.guards import JSONOutputGuard

from ..config.locations import (
    ALL_NEIGHBORHOODS_LABEL,
    LocationCatalog,
    get_catalog,
    label_for,
)
from ..config.models import Business, Option, SearchCriteria
from .ndjson import NDJSONStreamParser
from .normalizer import normalize_business
from .prompts import PromptTemplateError, build_search_prompt

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Lütfen tüm alanları doldurun."


class SearchValidationError(ValueError):
    """The criteria cannot be turned into search tasks."""


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SearchTask:
    """One LLM request: a single neighborhood + sub-category combination.

    ``neighborhood`` / ``sub_category`` are empty when the catalog has no
    finer level to split on; the request then covers the whole district
    or main category.
    """

    province: str
    district: str
    neighborhood: str
    main_category: str
    sub_category: str
    province_label: str
    district_label: str
    neighborhood_label: str
    main_category_label: str
    sub_category_label: str

    def label(self) -> str:
        return f"{self.neighborhood_label} / {self.sub_category_label}"


def plan_tasks(
    criteria: SearchCriteria,
    catalog: Optional[LocationCatalog] = None,
) -> List[SearchTask]:
    """Expand "all" selections into the list of tasks to run.

    Neighborhoods form the outer loop and sub-categories the inner one.

    Raises
    ------
    SearchValidationError
        When a required field is empty or a value is unknown.
    """
    if not criteria.is_complete():
        raise SearchValidationError(MISSING_FIELDS_MESSAGE)
    catalog = catalog or get_catalog()

    province_label = label_for(catalog.provinces, criteria.province)
    if not province_label:
        raise SearchValidationError(f"Bilinmeyen il: {criteria.province}")
    district_label = label_for(catalog.get_district_options(criteria.province), criteria.district)
    if not district_label:
        raise SearchValidationError(f"Bilinmeyen ilçe: {criteria.district}")
    main_category_label = label_for(catalog.main_categories, criteria.main_category)
    if not main_category_label:
        raise SearchValidationError(f"Bilinmeyen ana kategori: {criteria.main_category}")

    neighborhood_options = catalog.get_neighborhood_options(criteria.province, criteria.district)
    if criteria.neighborhood:
        label = label_for(neighborhood_options, criteria.neighborhood)
        if not label:
            raise SearchValidationError(f"Bilinmeyen mahalle: {criteria.neighborhood}")
        neighborhoods = [Option(value=criteria.neighborhood, label=label)]
    elif neighborhood_options:
        neighborhoods = neighborhood_options
    else:
        neighborhoods = [Option(value="", label=ALL_NEIGHBORHOODS_LABEL)]

    sub_options = catalog.get_sub_category_options(criteria.main_category)
    if criteria.sub_category:
        label = label_for(sub_options, criteria.sub_category)
        if not label:
            raise SearchValidationError(f"Bilinmeyen alt kategori: {criteria.sub_category}")
        sub_categories = [Option(value=criteria.sub_category, label=label)]
    elif sub_options:
        sub_categories = sub_options
    else:
        sub_categories = [Option(value="", label=main_category_label)]

    return [
        SearchTask(
            province=criteria.province,
            district=criteria.district,
            neighborhood=n.value,
            main_category=criteria.main_category,
            sub_category=s.value,
            province_label=province_label,
            district_label=district_label,
            neighborhood_label=n.label,
            main_category_label=main_category_label,
            sub_category_label=s.label,
        )
        for n in neighborhoods
        for s in sub_categories
    ]


# ---------------------------------------------------------------------------
# Events / results
# ---------------------------------------------------------------------------

@dataclass
class SearchResult:
    """Outcome of a complete search run."""

    criteria: SearchCriteria
    tasks: List[SearchTask] = field(default_factory=list)
    businesses: List[Business] = field(default_factory=list)
    failed_tasks: List[Tuple[SearchTask, str]] = field(default_factory=list)
    skipped_lines: int = 0
    aborted: bool = False
    error: Optional[str] = None
    run_id: str = ""

    @property
    def ok(self) -> bool:
        return not self.aborted and not self.failed_tasks


@dataclass
class SearchEvent:
    """Progress notification emitted by :meth:`BusinessFinder.iter_search`.

    kind is one of ``task_started``, ``business``, ``task_failed``,
    ``task_finished`` or ``finished`` (always last; carries ``result``).
    """

    kind: str
    task_index: int = 0
    task_count: int = 0
    task: Optional[SearchTask] = None
    business: Optional[Business] = None
    error: Optional[str] = None
    result: Optional[SearchResult] = None


# ---------------------------------------------------------------------------
# Finder
# ---------------------------------------------------------------------------

class BusinessFinder:
    """Runs a search task by task and streams unique businesses out."""

    def __init__(
        self,
        provider: LLMProvider,
        *,
        config: Optional[LLMConfig] = None,
        audit: Optional[AuditLogger] = None,
        catalog: Optional[LocationCatalog] = None,
        max_results: int = 50,
        prompt_overrides: Optional[Dict[str, str]] = None,
        stream: bool = True,
    ):
        self.provider = provider
        self.config = config or LLMConfig()
        self.audit = audit or AuditLogger()
        self.catalog = catalog
        self.max_results = max_results
        self.prompt_overrides = prompt_overrides or {}
        self.stream = stream

    def iter_search(self, criteria: SearchCriteria) -> Iterator[SearchEvent]:
        """Run the search, yielding events as results arrive.

        Tasks run strictly one after another.  A quota error stops the
        remaining tasks; any other provider error only fails the current
        task.  Validation errors are raised before the first request.
        """
        tasks = plan_tasks(criteria, self.catalog)
        try:
            build_search_prompt(tasks[0], self.max_results, self.prompt_overrides)
        except PromptTemplateError as e:
            raise SearchValidationError(str(e)) from e
        result = SearchResult(criteria=criteria, tasks=tasks, run_id=uuid.uuid4().hex[:12])
        seen: Set[str] = set()
        count = len(tasks)
        logger.info("Search %s: %d task(s) planned", result.run_id, count)

        for index, task in enumerate(tasks):
            yield SearchEvent("task_started", index, count, task=task)
            try:
                for business in self._run_task(task, result):
                    key = business.dedup_key()
                    if key in seen:
                        continue
                    seen.add(key)
                    result.businesses.append(business)
                    yield SearchEvent("business", index, count, task=task, business=business)
            except LLMQuotaError as e:
                logger.error("Search %s aborted on quota error: %s", result.run_id, e)
                result.failed_tasks.append((task, str(e)))
                result.aborted = True
                result.error = str(e)
                yield SearchEvent("task_failed", index, count, task=task, error=str(e))
                break
            except LLMError as e:
                logger.warning("Task %s failed: %s", task.label(), e)
                result.failed_tasks.append((task, str(e)))
                result.error = str(e)
                yield SearchEvent("task_failed", index, count, task=task, error=str(e))
                continue
            yield SearchEvent("task_finished", index, count, task=task)

        if count and len(result.failed_tasks) == count:
            # Nothing succeeded (e.g. missing API key)
            result.aborted = True

        logger.info(
            "Search %s finished: %d businesses, %d failed task(s), %d skipped line(s)",
            result.run_id, len(result.businesses), len(result.failed_tasks), result.skipped_lines,
        )
        yield SearchEvent("finished", count, count, result=result)

    def search(
        self,
        criteria: SearchCriteria,
        on_business: Optional[Callable[[Business], None]] = None,
    ) -> SearchResult:
        """Blocking variant of :meth:`iter_search`."""
        result: Optional[SearchResult] = None
        for event in self.iter_search(criteria):
            if event.kind == "business" and on_business is not None:
                on_business(event.business)
            elif event.kind == "finished":
                result = event.result
        assert result is not None
        return result

    def _run_task(self, task: SearchTask, result: SearchResult) -> Iterator[Business]:
        system_prompt, user_prompt = build_search_prompt(
            task, self.max_results, self.prompt_overrides,
        )
        parser = NDJSONStreamParser()
        record = AuditRecord(
            run_id=result.run_id,
            task=task.label(),
            provider=self.provider.provider_name,
            model=self.config.model or self.provider.default_model,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )
        invalid = 0
        t0 = time.time()
        try:
            if self.stream:
                chunks = self.provider.stream_text(system_prompt, user_prompt, config=self.config)
            else:
                chunks = self._complete(system_prompt, user_prompt, record)
            for chunk in chunks:
                for raw in parser.feed(chunk):
                    business = normalize_business(raw, task)
                    if business is None:
                        invalid += 1
                        continue
                    record.result_count += 1
                    yield business

            tail = parser.close()
            skipped = parser.skipped_lines
            if parser.parsed_count == 0 and parser.raw_text.strip():
                # The model ignored NDJSON (e.g. a pretty-printed array)
                try:
                    tail = JSONOutputGuard.enforce_array(parser.raw_text)
                    skipped = 0
                except LLMJSONError:
                    logger.warning(
                        "Task %s: response contained no JSON: %.200s",
                        task.label(), parser.raw_text,
                    )
            for raw in tail:
                business = normalize_business(raw, task)
                if business is None:
                    invalid += 1
                    continue
                record.result_count += 1
                yield business

            record.skipped_lines = skipped + invalid
            result.skipped_lines += record.skipped_lines
        except LLMError as e:
            record.error = str(e)
            raise
        finally:
            record.latency_ms = int((time.time() - t0) * 1000)
            self.audit.record(record)

    def _complete(self, system_prompt: str, user_prompt: str, record: AuditRecord) -> Iterator[str]:
        """Non-streaming request, re-emitted as NDJSON lines for the parser."""
        try:
            response = self.provider.generate_json(system_prompt, user_prompt, config=self.config)
            record.prompt_hash = response.prompt_hash
            record.input_tokens = response.input_tokens
            record.output_tokens = response.output_tokens
            items = JSONOutputGuard.enforce_array(response.raw_text, response.stop_reason)
        except LLMJSONError as e:
            # A prose answer yields no results
            logger.warning("Task %s: response contained no JSON: %.200s", record.task, e.raw_text)
            return
        for item in items:
            yield json.dumps(item, ensure_ascii=False) + "\n"
