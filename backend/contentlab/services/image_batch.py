"""
Bounded-concurrency batch image generation.

Subclasses implement `generate_one`; the batch runs up to `concurrency`
requests at a time and turns per-image exceptions into failed results, so
one bad prompt never sinks the batch.
"""
from __future__ import annotations

import asyncio
import logging
from abc import abstractmethod
from pathlib import Path

from contentlab.domain import ImageResult
from contentlab.services.collaborators import ImageBatchGenerator

logger = logging.getLogger(__name__)


class ConcurrentImageBatchGenerator(ImageBatchGenerator):
    def __init__(self, concurrency: int = 3):
        self.concurrency = max(1, concurrency)

    @abstractmethod
    async def generate_one(self, prompt: str, index: int, fmt: str, output_dir: Path) -> ImageResult:
        ...

    async def generate_batch(
        self, script: str, prompts: list[str], fmt: str, *, output_dir: Path
    ) -> list[ImageResult]:
        output_dir.mkdir(parents=True, exist_ok=True)
        semaphore = asyncio.Semaphore(self.concurrency)

        async def run_one(index: int, prompt: str) -> ImageResult:
            async with semaphore:
                try:
                    return await self.generate_one(prompt, index, fmt, output_dir)
                except Exception as e:
                    logger.warning(f"[images] Image {index} failed: {e}")
                    return ImageResult(index=index, prompt=prompt, error=str(e)[:500])

        results = await asyncio.gather(*(run_one(i, p) for i, p in enumerate(prompts)))
        failed = sum(1 for r in results if not r.ok)
        logger.info(f"[images] Batch done: {len(results) - failed}/{len(results)} ok (concurrency={self.concurrency})")
        return sorted(results, key=lambda r: r.index)
