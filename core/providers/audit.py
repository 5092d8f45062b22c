"""LLM audit logging: tracks every LLM call for cost monitoring and debugging.

Audit records are stored in-memory by default, with an optional
``persist_fn`` hook for writing them elsewhere.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class AuditRecord:
    """Single LLM call audit entry."""

    run_id: str = ""
    task: str = ""
    provider: str = ""
    model: str = ""
    prompt_hash: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    latency_ms: int = 0
    temperature: float = 0.2
    max_tokens: int = 16384
    result_count: int = 0
    skipped_lines: int = 0
    timestamp: float = field(default_factory=time.time)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "task": self.task,
            "provider": self.provider,
            "model": self.model,
            "prompt_hash": self.prompt_hash,
            "token_usage": {
                "input": self.input_tokens,
                "output": self.output_tokens,
            },
            "latency_ms": self.latency_ms,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "result_count": self.result_count,
            "skipped_lines": self.skipped_lines,
            "timestamp": self.timestamp,
            "error": self.error,
        }


class AuditLogger:
    """Collects and persists LLM audit records.

    Usage::

        audit = AuditLogger()
        # ... after a streamed search task ...
        audit.record(AuditRecord(task="Moda / Kafe", result_count=12))

        print(audit.summary())
    """

    def __init__(self, persist_fn: Optional[Callable[[AuditRecord], None]] = None):
        self._records: List[AuditRecord] = []
        self._persist_fn = persist_fn

    def record(self, record: AuditRecord) -> AuditRecord:
        """Store a finished per-task record."""
        self._records.append(record)

        if self._persist_fn:
            try:
                self._persist_fn(record)
            except Exception as e:
                logger.error("Failed to persist audit record: %s", e)

        logger.info(
            "LLM audit: provider=%s model=%s task=%s results=%d skipped=%d latency=%dms%s",
            record.provider,
            record.model,
            record.task,
            record.result_count,
            record.skipped_lines,
            record.latency_ms,
            f" error={record.error}" if record.error else "",
        )
        return record

    def summary(self) -> Dict[str, Any]:
        """Return aggregate stats for all recorded calls."""
        return {
            "total_calls": len(self._records),
            "total_input_tokens": sum(r.input_tokens for r in self._records),
            "total_output_tokens": sum(r.output_tokens for r in self._records),
            "total_latency_ms": sum(r.latency_ms for r in self._records),
            "total_results": sum(r.result_count for r in self._records),
            "total_skipped_lines": sum(r.skipped_lines for r in self._records),
            "errors": sum(1 for r in self._records if r.error),
        }

    @property
    def records(self) -> List[AuditRecord]:
        return list(self._records)
