from prometheus_fastapi_instrumentator import Instrumentator

from beanbook.core.logging import setup_logging
from . import app as beanbook_app

setup_logging()
app = beanbook_app
instrumentator = Instrumentator()
instrumentator.instrument(app).expose(app, include_in_schema=False)


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}
