"""
Fits a display payload into the TRMNL webhook limit.

Progressive truncation, least aggressive first:
1. Shorten step text to 60 chars
2. Keep the first 8 steps across all sections
3. Keep the first 6 steps across all sections
The payload is re-measured after every stage. If the last stage still does
not fit, its output is returned anyway and the webhook decides.
"""
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, List, Sequence

from core.display_models import DisplayPayload, DisplaySection

BYTE_BUDGET = 2048
COMPRESSED_STEP_CHARS = 60
STEP_CAPS = (8, 6)


@dataclass(frozen=True)
class CompressionStage:
    name: str
    apply: Callable[[DisplayPayload], DisplayPayload]


@dataclass
class CompressionResult:
    payload: DisplayPayload
    bytes: int
    stages_applied: List[str] = field(default_factory=list)

    @property
    def within_budget(self) -> bool:
        return self.bytes <= BYTE_BUDGET


def shorten_steps(payload: DisplayPayload, max_chars: int = COMPRESSED_STEP_CHARS) -> DisplayPayload:
    sections = tuple(
        DisplaySection(name=s.name, steps=tuple(step[:max_chars] for step in s.steps))
        for s in payload.sections
    )
    return payload.model_copy(update={"sections": sections, "truncated": True})


def cap_steps(payload: DisplayPayload, limit: int) -> DisplayPayload:
    """Keep a prefix of at most `limit` steps, dropping sections left empty."""
    kept = []
    step_count = 0
    for section in payload.sections:
        remaining = limit - step_count
        if remaining <= 0:
            break
        steps = section.steps[:remaining]
        step_count += len(steps)
        if steps:
            kept.append(DisplaySection(name=section.name, steps=steps))

    dropped = step_count < payload.steps_present()
    return payload.model_copy(update={
        "sections": tuple(kept),
        "step_count": step_count,
        "truncated": payload.truncated or dropped,
    })


COMPRESSION_STAGES = (
    CompressionStage("shortened steps", partial(shorten_steps, max_chars=COMPRESSED_STEP_CHARS)),
) + tuple(
    CompressionStage(f"{cap} steps", partial(cap_steps, limit=cap))
    for cap in STEP_CAPS
)


def plan_compression(
    payload: DisplayPayload,
    budget: int = BYTE_BUDGET,
    stages: Sequence[CompressionStage] = COMPRESSION_STAGES,
) -> CompressionResult:
    size = payload.measure().bytes
    if size <= budget:
        return CompressionResult(payload=payload, bytes=size)

    print(f"[TRMNL] Payload size {size} bytes, compressing...")
    result = CompressionResult(payload=payload, bytes=size)
    for stage in stages:
        result.payload = stage.apply(result.payload)
        result.bytes = result.payload.measure().bytes
        result.stages_applied.append(stage.name)
        if result.bytes <= budget:
            print(f"[TRMNL] Compressed to {result.bytes} bytes ({stage.name})")
            return result

    print(f"[TRMNL] Compressed to {result.bytes} bytes, still over {budget} after {len(result.stages_applied)} stages")
    return result


def compress_payload(payload: DisplayPayload, budget: int = BYTE_BUDGET) -> DisplayPayload:
    return plan_compression(payload, budget=budget).payload


compress = compress_payload
