import os
import tempfile

# must be set before salesops.db is imported
_DB_PATH = os.path.join(tempfile.gettempdir(), f"salesops_test_{os.getpid()}.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_PATH}"
os.environ.setdefault("OVERDUE_SWEEP_SECONDS", "0")

import pytest

from salesops import catalog, models
from salesops.db import database, engine
from salesops.pricing import LineRequest
from salesops.sequences import ensure_sequences
from salesops.services.workflow import build_workflow


# Force AnyIO to use asyncio only
@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def db(anyio_backend):
    models.Base.metadata.drop_all(bind=engine)
    models.Base.metadata.create_all(bind=engine)
    await database.connect()
    await ensure_sequences()
    try:
        yield database
    finally:
        await database.disconnect()


@pytest.fixture
def wf():
    return build_workflow()


@pytest.fixture
async def refs(db):
    """A client, an employee and two products priced 10.00 and 25.00."""
    client = await catalog.create_client(name="Acme SARL", email="buyer@acme.com")
    employee = await catalog.create_employee(first_name="Lea", last_name="Martin", email="lea@salesops.com")
    widget = await catalog.create_product(name="Widget", sku="W-1", price_cents=1000)
    gadget = await catalog.create_product(name="Gadget", sku="G-1", price_cents=2500)
    return {"client": client, "employee": employee, "widget": widget, "gadget": gadget}


@pytest.fixture
def two_lines(refs):
    return [
        LineRequest(product_id=refs["widget"]["id"], quantity=3, unit_price_cents=1000, description="widgets"),
        LineRequest(product_id=refs["gadget"]["id"], quantity=1),
    ]


@pytest.fixture
async def quote(wf, refs, two_lines):
    return await wf.quotes.create_quote(
        client_id=refs["client"]["id"],
        employee_id=refs["employee"]["id"],
        items=two_lines,
        notes="first proposal",
    )
