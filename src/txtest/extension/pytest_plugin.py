"""
pytest fixtures wrapping every test that asks for them in a
`TransactionalTestContext`.

Enable them from a `conftest.py`:

```python
pytest_plugins = ["txtest.extension.pytest_plugin"]

@pytest.fixture
async def txtest_interface():
    pool = SQLitePool("test.db")
    await pool.open()
    yield pool
    await pool.close()
```

and then request `transactional_context` in a test. The context is started
before the test and finished after it, unless the test already finished it.
"""

from __future__ import annotations

from typing import AsyncIterator

import pytest
import pytest_asyncio

from txtest.context import TransactionalTestContext
from txtest.exception import TxTestError


@pytest.fixture
def txtest_interface():
    raise TxTestError(
        "Override the txtest_interface fixture to return the interface "
        "the transactional context should run on"
    )


@pytest_asyncio.fixture
async def transactional_context(
    txtest_interface,
) -> AsyncIterator[TransactionalTestContext]:
    context = TransactionalTestContext(txtest_interface)
    await context.start()
    yield context
    if context.is_active:
        await context.finish()
