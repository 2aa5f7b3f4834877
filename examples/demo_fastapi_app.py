"""
Versioned product catalogue cache.

Each category is its own namespace. Clearing a category bumps
"<category>-version" in Redis; entries written under older versions stay
in Redis, unreachable, until their TTL runs out.

Run:
    REDIS_URL=redis://localhost:6379/0 uvicorn examples.demo_fastapi_app:app
"""

import os

import redis.asyncio as redis
from fastapi import FastAPI

from namespaced_cache import CacheConfig
from namespaced_cache.backend.redis import RedisCacheBackend

app = FastAPI(title="namespaced-cache catalogue")

PRICES = {"books": {1: 12.5, 2: 30.0}, "games": {1: 59.99}}


@app.on_event("startup")
async def _startup() -> None:
    client = redis.Redis.from_url(os.getenv("REDIS_URL", "redis://localhost:6379/0"))
    CacheConfig.init(
        RedisCacheBackend(client),
        freshness_window=float(os.getenv("CACHE_FRESHNESS_WINDOW", "10")),
    )


@app.get("/{category}/{item_id}")
async def get_price(category: str, item_id: int) -> dict:
    cache = CacheConfig.namespace(category)
    price = await cache.fetch(["price", item_id], lambda: PRICES.get(category, {}).get(item_id), ttl=300)
    await cache.increment("lookups", ttl=3600)
    return {"category": category, "item_id": item_id, "price": price}


@app.get("/{category}")
async def describe(category: str) -> dict:
    cache = CacheConfig.namespace(category)
    version = await cache.current_version_number()
    cached = await cache.read_multi(*(["price", item_id] for item_id in PRICES.get(category, {})))
    return {
        "version_key": cache.version_key,
        "version": version,
        "sample_physical_key": await cache.prefix_key(["price", 1]),
        "cached": cached,
        "lookups": await cache.read("lookups") or 0,
    }


@app.delete("/{category}")
async def clear(category: str) -> dict:
    cache = CacheConfig.namespace(category)
    previous = await cache.current_version_number()
    return {"previous_version": previous, "version": await cache.clear()}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("examples.demo_fastapi_app:app", host="127.0.0.1", port=8000)
