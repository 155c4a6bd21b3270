import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared_ledger.config import FRONTEND_ORIGINS
from shared_ledger.routes import family, groups

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(
    title="Shared Ledger API",
    description="Family and event-group expense balances, installment months, settlements and reports.",
)

# CORS
origins = [o.strip() for o in FRONTEND_ORIGINS.split(',') if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins if origins else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(family.router)
app.include_router(groups.router)

@app.get("/")
def read_root():
    return {"message": "Shared ledger service running"}

@app.get("/health")
def health():
    return {"status": "ok"}
