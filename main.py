# SchoolGate - RBAC decision service
# Every permission check goes through the DecisionEngine and is audited.
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

from fastapi import FastAPI

from config import Settings, get_settings
from rbac import (
    AuditLogStore,
    AuditSink,
    DecisionEngine,
    PermissionCatalog,
    RolePermissionMatrix,
    read_audit_file,
)
from server.endpoints import router as rbac_router

log = logging.getLogger("schoolgate")


def build_engine(settings: Settings) -> tuple[DecisionEngine, AuditSink | None]:
    """Load and validate the static tables; a bad matrix aborts startup."""
    catalog = PermissionCatalog()
    matrix = RolePermissionMatrix(catalog)

    sink = AuditSink(settings.audit_log_file) if settings.audit_log_file else None
    store = AuditLogStore(max_entries=settings.audit_max_entries, sink=sink)
    if sink is not None:
        store.restore(read_audit_file(sink.filepath))
    if settings.audit_retention_days:
        cutoff = datetime.now(timezone.utc) - timedelta(days=settings.audit_retention_days)
        store.prune(cutoff)

    log.info(
        "Loaded %d permissions, %d role pairings, %d audit entries",
        len(catalog), len(matrix.pairings()), len(store),
    )
    return DecisionEngine(matrix, store), sink


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    engine, sink = build_engine(settings)
    if sink is not None:
        sink.start()
    app.state.engine = engine
    yield
    # shutdown
    if sink is not None:
        sink.stop()


app = FastAPI(
    title="SchoolGate RBAC",
    description="Role-based access decisions with a filterable audit trail",
    lifespan=lifespan,
)

app.include_router(rbac_router)


@app.get("/health")
async def health():
    return {"status": "ok", "rbac": "active", "audit_logger": "QueueHandler"}


if __name__ == "__main__":
    import os
    import uvicorn
    host = os.environ.get("UVICORN_HOST", "127.0.0.1")
    port = int(os.environ.get("PORT", "8000"))
    print(f"\n  SchoolGate RBAC - http://localhost:{port}/docs\n")
    uvicorn.run("main:app", host=host, port=port, reload=False)
