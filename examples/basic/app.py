import asyncio
from dataclasses import dataclass
from typing import List

from txtest import SQLitePool, TransactionalTestContext


@dataclass
class City:
    id: int
    name: str
    population: int


async def add_city(pool: SQLitePool, name: str, population: int) -> None:
    async def work(manager):
        await manager.execute(
            "INSERT INTO city (name, population) VALUES ($name, $population)",
            params={"name": name, "population": population},
        )

    await pool.transaction(work)


async def all_cities(pool: SQLitePool) -> List[City]:
    return await pool.manager.fetch_all("SELECT * FROM city", model=City)


async def run():
    pool = SQLitePool(":memory:")
    await pool.open()
    await pool.manager.execute(
        "CREATE TABLE city "
        "(id INTEGER PRIMARY KEY, name TEXT, population INTEGER)"
    )

    async with TransactionalTestContext(pool):
        await add_city(pool, "Minas Tirith", 50000)
        print(await all_cities(pool))

    print(await all_cities(pool))
    await pool.close()


asyncio.run(run())
