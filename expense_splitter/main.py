import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from expense_splitter.db.database import Base, engine, check_db_connection
from expense_splitter.models import groups, records  # noqa: F401  (register tables)
from expense_splitter.api.v1.routes.groups import router as groups_router
from expense_splitter.api.v1.routes.records import router as records_router
from expense_splitter.api.v1.routes.balances import router as balances_router
from expense_splitter.rabbitmq.setup import init_rabbitmq
from expense_splitter.rabbitmq.producer import close_rabbitmq_producer

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)

Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Declare the balance events exchange (no-op unless RABBITMQ_EVENTS_ENABLED)
    init_rabbitmq()
    yield
    close_rabbitmq_producer()


app = FastAPI(
    title="Expense Splitter - Group Balances",
    description="Records shared expenses and settlements, computes balances and settlement plans",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(groups_router)
app.include_router(records_router)
app.include_router(balances_router)

@app.get("/")
def read_root():
    return {"message": "Expense Splitter API", "version": "1.0.0"}

@app.get("/health")
def health_check():
    return {"status": "healthy" if check_db_connection() else "degraded"}
