"""Small instrumented service used by the ``example`` CLI command."""

import asyncio
from typing import Dict, Optional

from loguru import logger

from .tracing import span


class GreetingService:
    """Greets callers and loads records, one span per call."""

    def __init__(self, prefix: str = "hi", records: Optional[Dict[str, str]] = None):
        self.prefix = prefix
        self.records = records if records is not None else {"7": "seven"}

    @span(
        name=lambda self, record_id: f"greet-{record_id}",
        attributes=lambda self, record_id: {"greeting.id": record_id, "greeting.prefix": self.prefix},
    )
    def greet(self, record_id: str) -> str:
        return f"{self.prefix}-{record_id}"

    @span(attributes=lambda self, record_id: {"record.id": record_id})
    async def load(self, record_id: str) -> str:
        await asyncio.sleep(0)
        if record_id not in self.records:
            raise LookupError("nf")
        return self.records[record_id]

    @span(name="greet-and-load")
    async def greet_and_load(self, record_id: str) -> Dict[str, str]:
        greeting = self.greet(record_id)
        record = await self.load(record_id)
        logger.debug(f"Greeted and loaded record {record_id}")
        return {"greeting": greeting, "record": record}
